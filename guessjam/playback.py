"""Contrôle du lecteur distant (l'écran de l'hôte).

Le serveur ne joue rien lui-même : il envoie des ordres ``music_control``
au navigateur de l'hôte et chronomètre l'extrait. Le navigateur remonte les
erreurs du lecteur (``playback_error``), que l'on transmet au moteur.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Protocol

from .timer import Countdown

logger = logging.getLogger(__name__)

# Codes d'erreur du lecteur YouTube: intégration interdite par l'ayant droit
EMBED_BLOCKED_CODES = frozenset({101, 150})

SnippetEndCallback = Callable[[str], Any]
ErrorCallback = Callable[[int, Optional[str]], Any]
Emit = Callable[..., Awaitable[Any]]


class PlaybackController(Protocol):
    on_snippet_end: Optional[SnippetEndCallback]
    on_error: Optional[ErrorCallback]

    async def play(self, song_id: str, duration_seconds: int) -> None: ...

    async def stop(self) -> None: ...

    async def resume(self) -> None: ...


class SocketPlaybackController:
    """Pilote le lecteur via Socket.IO (événement ``music_control``)."""

    def __init__(
        self,
        emit: Emit,
        start_seconds: int = 30,
        interval: float = 1.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._emit = emit
        self.start_seconds = start_seconds
        self.on_snippet_end: Optional[SnippetEndCallback] = None
        self.on_error: Optional[ErrorCallback] = None
        self.current_song_id: Optional[str] = None
        self._snippet = Countdown(
            on_end=self._snippet_finished, interval=interval, sleep=sleep, name="snippet"
        )

    async def _music_control(self, payload: Dict[str, Any]) -> None:
        await self._emit("music_control", payload)

    async def play(self, song_id: str, duration_seconds: int) -> None:
        self._snippet.stop()
        self.current_song_id = song_id
        await self._music_control(
            {
                "action": "play",
                "song_id": song_id,
                "start_seconds": self.start_seconds,
                "duration": duration_seconds,
            }
        )
        self._snippet.start(duration_seconds)
        logger.info("Extrait %s lancé pour %ss", song_id, duration_seconds)

    async def stop(self) -> None:
        self._snippet.stop()
        await self._music_control({"action": "pause"})

    async def resume(self) -> None:
        await self._music_control({"action": "resume"})

    def report_error(self, code: int) -> None:
        """Erreur remontée par le lecteur distant pour l'extrait en cours."""
        self._snippet.stop()
        logger.warning("Erreur lecteur %s sur %s", code, self.current_song_id)
        if self.on_error is not None:
            self.on_error(code, self.current_song_id)

    def _snippet_finished(self) -> None:
        if self.on_snippet_end is not None and self.current_song_id is not None:
            self.on_snippet_end(self.current_song_id)

    async def aclose(self) -> None:
        await self._snippet.aclose()
