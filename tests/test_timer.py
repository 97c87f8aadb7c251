import asyncio

from guessjam.timer import Countdown, TimerState


def _recording_timer(clock, events, name="test"):
    return Countdown(
        on_tick=lambda remaining: events.append(remaining),
        on_end=lambda: events.append("end"),
        sleep=clock.sleep,
        name=name,
    )


def test_ticks_then_ends_once(clock):
    events = []

    async def scenario():
        timer = _recording_timer(clock, events)
        timer.start(3)
        assert timer.state == TimerState.RUNNING
        # Aucun callback pendant l'appel à start
        assert events == []
        await clock.advance(3)
        assert events == [2, 1, "end"]
        assert timer.state == TimerState.IDLE
        await clock.advance(2)
        assert events == [2, 1, "end"]

    asyncio.run(scenario())


def test_start_from_zero_ends_on_first_interval(clock):
    events = []

    async def scenario():
        timer = _recording_timer(clock, events)
        timer.start(0)
        assert events == []
        await clock.advance()
        assert events == ["end"]

    asyncio.run(scenario())


def test_stop_cancels_pending_callbacks(clock):
    events = []

    async def scenario():
        timer = _recording_timer(clock, events)
        timer.start(3)
        await clock.advance()
        timer.stop()
        assert not timer.running
        await clock.advance(5)
        assert events == [2]

    asyncio.run(scenario())


def test_stopped_run_never_delivers_after_wakeup(clock):
    events = []

    async def scenario():
        timer = _recording_timer(clock, events)
        timer.start(1)
        await clock.settle()
        # Le sommeil de l'ancien lancement est terminé, sa tâche n'a pas encore repris
        clock.release()
        timer.stop()
        timer.start(10)
        await clock.settle()
        assert events == []
        await clock.advance()
        assert events == [9]
        await timer.aclose()

    asyncio.run(scenario())


def test_restart_replaces_running_countdown(clock):
    events = []

    async def scenario():
        timer = _recording_timer(clock, events)
        timer.start(3)
        await clock.advance()
        timer.start(2)
        await clock.advance(3)
        assert events == [2, 1, "end"]

    asyncio.run(scenario())


def test_stop_is_idempotent(clock):
    async def scenario():
        timer = _recording_timer(clock, [])
        timer.stop()
        timer.start(2)
        timer.stop()
        timer.stop()
        assert timer.state == TimerState.IDLE
        await timer.aclose()

    asyncio.run(scenario())


def test_callback_can_stop_its_own_timer(clock):
    events = []

    async def scenario():
        timer = Countdown(sleep=clock.sleep)

        def on_tick(remaining):
            events.append(remaining)
            timer.stop()

        timer.on_tick = on_tick
        timer.on_end = lambda: events.append("end")
        timer.start(5)
        await clock.advance(4)
        assert events == [4]
        assert not timer.running

    asyncio.run(scenario())


def test_failing_callback_does_not_kill_the_timer(clock):
    events = []

    async def scenario():
        def on_tick(remaining):
            raise RuntimeError("boom")

        timer = Countdown(on_tick=on_tick, on_end=lambda: events.append("end"), sleep=clock.sleep)
        timer.start(2)
        await clock.advance(2)
        assert events == ["end"]

    asyncio.run(scenario())


def test_real_sleep_countdown():
    events = []

    async def scenario():
        done = asyncio.Event()
        timer = Countdown(
            on_tick=events.append,
            on_end=done.set,
            interval=0.01,
        )
        timer.start(3)
        await asyncio.wait_for(done.wait(), timeout=2)
        assert events == [2, 1]

    asyncio.run(scenario())
