import logging
import threading
from datetime import datetime

from clock import FixedClock, seconds_until_next_hour
from sweeper import StatusSweeper


def test_tick_sums_all_sweeps():
    sweeper = StatusSweeper([lambda: 2, lambda: 1], FixedClock())

    assert sweeper.tick() == 3


def test_tick_keeps_going_when_a_sweep_fails(caplog):
    calls = []

    def broken():
        raise RuntimeError("boom")

    def working():
        calls.append(1)
        return 4

    sweeper = StatusSweeper([broken, working], FixedClock())

    with caplog.at_level(logging.ERROR, logger="sweeper"):
        assert sweeper.tick() == 4

    assert calls == [1]
    assert "Booking status sweep failed" in caplog.text


def test_thread_ticks_until_stopped():
    ticked = threading.Event()

    def sweep():
        ticked.set()
        return 0

    # A clock sitting just before the hour makes the first tick come quickly.
    sweeper = StatusSweeper([sweep], FixedClock(datetime(2030, 1, 1, 8, 59, 59, 950000)), interval_seconds=1)
    sweeper.start()
    try:
        assert sweeper.running
        assert ticked.wait(2)
    finally:
        sweeper.stop()

    assert not sweeper.running


def test_start_twice_keeps_one_thread():
    sweeper = StatusSweeper([lambda: 0], FixedClock(), interval_seconds=3600)
    sweeper.start()
    try:
        first = sweeper._thread
        sweeper.start()
        assert sweeper._thread is first
    finally:
        sweeper.stop()


def test_seconds_until_next_hour():
    assert seconds_until_next_hour(datetime(2030, 1, 1, 8, 0)) == 3600
    assert seconds_until_next_hour(datetime(2030, 1, 1, 8, 59, 30)) == 30
