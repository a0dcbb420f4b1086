from datetime import datetime, timedelta

from radio_progression.timers import ManualScheduler, RepeatingTimer

START = datetime(2024, 1, 1, 8, 0, 0)

def test_manual_scheduler_fires_due_callbacks_in_order():
    scheduler = ManualScheduler(start=START)
    fired = []
    scheduler.call_later(2, lambda: fired.append(("b", scheduler.now())))
    scheduler.call_later(1, lambda: fired.append(("a", scheduler.now())))
    scheduler.call_later(5, lambda: fired.append(("c", scheduler.now())))

    scheduler.advance(3)

    assert fired == [("a", START + timedelta(seconds=1)), ("b", START + timedelta(seconds=2))]
    assert scheduler.now() == START + timedelta(seconds=3)
    assert scheduler.pending() == 1

def test_cancelled_handle_never_fires():
    scheduler = ManualScheduler(start=START)
    fired = []
    handle = scheduler.call_later(1, lambda: fired.append(1))
    handle.cancel()
    handle.cancel()

    scheduler.advance(10)

    assert fired == []
    assert scheduler.pending() == 0

def test_repeating_timer_fires_every_interval_until_cancelled():
    scheduler = ManualScheduler(start=START)
    ticks = []
    timer = RepeatingTimer(scheduler, 1.0, lambda: ticks.append(scheduler.now()))

    scheduler.advance(5)
    assert len(ticks) == 5
    assert scheduler.pending() == 1

    timer.cancel()
    scheduler.advance(5)
    assert len(ticks) == 5
    assert scheduler.pending() == 0

def test_failing_callback_does_not_stop_repeating_timer():
    scheduler = ManualScheduler(start=START)
    calls = []

    def flaky():
        calls.append(1)
        raise RuntimeError("boom")

    RepeatingTimer(scheduler, 1.0, flaky)
    scheduler.advance(3)

    assert len(calls) == 3
