import asyncio

import pytest

from guessjam.rules import GameRules


class ManualClock:
    """Remplace ``asyncio.sleep`` : les timers n'avancent que sur ``advance()``."""

    def __init__(self):
        self.pending = []

    async def sleep(self, _delay):
        fut = asyncio.get_running_loop().create_future()
        self.pending.append(fut)
        await fut

    def release(self):
        pending, self.pending = self.pending, []
        for fut in pending:
            if not fut.done():
                fut.set_result(None)

    async def advance(self, steps=1):
        for _ in range(steps):
            await self.settle()
            self.release()
            await self.settle()

    @staticmethod
    async def settle():
        # Laisse tourner les tâches prêtes (timers, boîte d'envoi)
        for _ in range(10):
            await asyncio.sleep(0)


class FakePlayback:
    def __init__(self):
        self.calls = []
        self.on_snippet_end = None
        self.on_error = None

    async def play(self, song_id, duration_seconds):
        self.calls.append(("play", song_id, duration_seconds))

    async def stop(self):
        self.calls.append(("stop",))

    async def resume(self):
        self.calls.append(("resume",))

    def plays(self):
        return [c for c in self.calls if c[0] == "play"]


@pytest.fixture()
def rules():
    return GameRules(
        min_songs=3,
        max_teams=4,
        win_score=3,
        countdown_seconds=3,
        answer_time_limit=2,
        default_playback_duration=3,
        next_round_seconds=2,
    )


@pytest.fixture()
def clock():
    return ManualClock()


@pytest.fixture()
def playback():
    return FakePlayback()
