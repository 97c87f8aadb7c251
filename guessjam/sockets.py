"""Initialisation Socket.IO asynchrone."""

from __future__ import annotations

from typing import List, Union

import socketio


def parse_origins(raw: str) -> Union[str, List[str]]:
    """``"*"`` ou une liste d'origines séparées par des virgules."""
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    if not origins or "*" in origins:
        return "*"
    return origins


def create_socket_server(cors_origins: str = "*") -> socketio.AsyncServer:
    # Async Server pour ASGI, un seul écran hôte par serveur
    return socketio.AsyncServer(
        async_mode="asgi",
        cors_allowed_origins=parse_origins(cors_origins),
        logger=False,
        engineio_logger=False,
    )
