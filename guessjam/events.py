"""Gestion des événements Socket.IO de l'écran de l'hôte.

Chaque événement est traduit en opération de ``GameSession`` ; l'état
résultant est diffusé par l'écouteur ``state``. Les requêtes refusées
renvoient un événement ``error`` au seul émetteur.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

import socketio

from .exceptions import GuessJamError
from .payloads import state_payload
from .playback import SocketPlaybackController
from .session import GameSession

logger = logging.getLogger(__name__)

Handler = Callable[..., Awaitable[Any]]


def _field(data: Any, key: str) -> Any:
    """Accepte ``{"key": valeur}`` ou la valeur brute."""
    if isinstance(data, dict):
        return data.get(key)
    return data


def register_handlers(
    sio: socketio.AsyncServer,
    session: GameSession,
    playback: Optional[SocketPlaybackController] = None,
) -> None:
    """Attache les handlers de l'hôte et les diffusions d'état à ``sio``."""

    async def broadcast_state(_state: Any) -> None:
        await sio.emit("state", state_payload(session))

    async def broadcast_timer(kind: str, remaining: Optional[int]) -> None:
        await sio.emit("timer", {"timer": remaining, "kind": kind})

    session.add_listener(broadcast_state)
    session.add_timer_listener(broadcast_timer)

    def host_action(fn: Handler) -> Handler:
        @functools.wraps(fn)
        async def wrapper(sid: str, *args: Any) -> Any:
            try:
                return await fn(sid, *args)
            except GuessJamError as e:
                logger.info("Requête %s refusée: %s", fn.__name__, e)
                await sio.emit("error", {"code": e.code, "message": str(e)}, to=sid)
                return None

        sio.on(fn.__name__, wrapper)
        return wrapper

    @host_action
    async def host_connected(sid: str, _data: Any = None) -> None:
        await sio.emit("state", state_payload(session), to=sid)

    @host_action
    async def load_playlist(sid: str, data: Any = None) -> None:
        await session.load_playlist(_field(data, "url"))

    @host_action
    async def add_team(sid: str, data: Any = None) -> Dict[str, Any]:
        team = session.add_team(_field(data, "name"))
        return {"id": team.id, "name": team.name}

    @host_action
    async def remove_team(sid: str, data: Any = None) -> None:
        session.remove_team(_field(data, "team_id"))

    @host_action
    async def set_playback_duration(sid: str, data: Any = None) -> None:
        session.set_playback_duration(_field(data, "duration"))

    @host_action
    async def start_game(sid: str, _data: Any = None) -> None:
        session.start_game()

    @host_action
    async def select_team(sid: str, data: Any = None) -> None:
        session.select_team(_field(data, "team_id"))

    @host_action
    async def mark_correct(sid: str, _data: Any = None) -> None:
        session.mark_correct()

    @host_action
    async def mark_incorrect(sid: str, _data: Any = None) -> None:
        session.mark_incorrect()

    @host_action
    async def reveal_answer(sid: str, _data: Any = None) -> None:
        session.reveal_answer()

    @host_action
    async def next_round(sid: str, _data: Any = None) -> None:
        session.next_round()

    @host_action
    async def end_game(sid: str, _data: Any = None) -> None:
        session.end_game()

    @host_action
    async def reset_game(sid: str, _data: Any = None) -> None:
        session.reset()

    @host_action
    async def replay_snippet(sid: str, _data: Any = None) -> None:
        session.replay_snippet()

    @host_action
    async def playback_error(sid: str, data: Any = None) -> None:
        if playback is None:
            return
        try:
            code = int(_field(data, "code"))
        except (TypeError, ValueError):
            logger.warning("Code d'erreur lecteur invalide: %r", data)
            return
        playback.report_error(code)
