#!/usr/bin/env python3
"""
Script de démarrage pour Guess the Jam
"""
import uvicorn

from guessjam.config import Settings
from guessjam.main import app

if __name__ == "__main__":
    settings = Settings.from_env()
    print("🎵 Démarrage du serveur Guess the Jam...")
    print(f"🌐 API disponible sur: http://localhost:{settings.port}/api/state")

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level="info"
    )
