"""Compte à rebours asyncio redémarrable et annulable.

Sert au compte à rebours d'avant-partie, à la fenêtre de réponse d'une
équipe, à la pause entre deux manches et à la durée des extraits.
Garanties :

- ``on_tick(restant)`` une fois par intervalle tant que ``restant > 0``,
  puis ``on_end()`` exactement une fois à zéro ;
- les callbacks tournent dans la tâche du timer, jamais pendant l'appel à
  ``start``/``stop`` qui les a déclenchés ;
- après ``stop()`` (ou un nouveau ``start``) aucun callback de l'ancien
  lancement n'est délivré.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

TickCallback = Callable[[int], Any]
EndCallback = Callable[[], Any]


class TimerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


class Countdown:
    def __init__(
        self,
        on_tick: Optional[TickCallback] = None,
        on_end: Optional[EndCallback] = None,
        interval: float = 1.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        name: str = "countdown",
    ) -> None:
        self.on_tick = on_tick
        self.on_end = on_end
        self.interval = interval
        self.name = name
        self._sleep = sleep
        self._task: Optional[asyncio.Task[None]] = None
        self._generation = 0
        self._remaining = 0

    @property
    def state(self) -> TimerState:
        return TimerState.RUNNING if self._task is not None else TimerState.IDLE

    @property
    def running(self) -> bool:
        return self._task is not None

    @property
    def remaining(self) -> int:
        return self._remaining

    def start(self, from_seconds: int) -> None:
        """Démarre un nouveau lancement (annule le précédent s'il tourne)."""
        self.stop()
        self._generation += 1
        self._remaining = max(0, int(from_seconds))
        self._task = asyncio.get_running_loop().create_task(
            self._run(self._generation), name=f"{self.name}-{self._generation}"
        )
        logger.debug("Timer %s démarré à %ss", self.name, self._remaining)

    def stop(self) -> None:
        """Annule le lancement en cours ; sans effet si le timer est au repos."""
        task = self._task
        if task is None:
            return
        self._task = None
        self._generation += 1
        # Appelé depuis un callback du timer lui-même : la boucle voit le
        # changement de génération et s'arrête d'elle-même.
        if task is not asyncio.current_task() and not task.done():
            task.cancel()
        logger.debug("Timer %s arrêté", self.name)

    async def aclose(self) -> None:
        """Arrête le timer et attend la fin de sa tâche."""
        task = self._task
        self.stop()
        if task is not None and task is not asyncio.current_task():
            try:
                await task
            except asyncio.CancelledError:
                pass

    def _current(self, generation: int) -> bool:
        return generation == self._generation

    async def _run(self, generation: int) -> None:
        while True:
            await self._sleep(self.interval)
            if not self._current(generation):
                return
            self._remaining = max(0, self._remaining - 1)
            if self._remaining > 0:
                if self.on_tick is not None:
                    self._invoke(self.on_tick, self._remaining)
                if not self._current(generation):
                    return
                continue
            self._task = None
            if self.on_end is not None:
                self._invoke(self.on_end)
            return

    def _invoke(self, callback: Callable[..., Any], *args: Any) -> None:
        try:
            callback(*args)
        except Exception:
            logger.exception("Erreur dans le callback du timer %s", self.name)
