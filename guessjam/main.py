"""Assemblage de l'application ASGI (FastAPI + Socket.IO)."""

from __future__ import annotations

import functools
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import socketio
from fastapi import FastAPI

from .config import Settings
from .events import register_handlers
from .http import create_http_app
from .persistence import JsonFileStore
from .playback import SocketPlaybackController
from .playlist_loader import resolve_playlist
from .rules import GameRules
from .session import GameSession
from .sockets import create_socket_server

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> socketio.ASGIApp:
    settings = settings or Settings.from_env()
    rules = GameRules.from_settings(settings)

    sio = create_socket_server(settings.cors_origins)
    playback = SocketPlaybackController(sio.emit, start_seconds=settings.snippet_start_seconds)
    session = GameSession(
        playback=playback,
        rules=rules,
        store=JsonFileStore(settings.state_path),
        song_source=functools.partial(resolve_playlist, api_key=settings.youtube_api_key),
    )
    register_handlers(sio, session, playback)

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        # La reprise passe avant toute autre action
        session.rehydrate()
        session.start()
        logger.info("Partie prête (phase %s)", session.state.phase.value)
        try:
            yield
        finally:
            await session.aclose()

    fastapi_app = create_http_app(session, lifespan=lifespan)
    fastapi_app.state.session = session
    # Application ASGI combinée
    return socketio.ASGIApp(sio, fastapi_app)


app = create_app()
