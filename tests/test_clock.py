import pytest

from watchsync.clock import ManualClock, MonotonicClock, extrapolate


def test_extrapolate_playing_advances_by_elapsed_time():
    assert extrapolate(10.0, last_update=50.0, now=55.0, is_playing=True) == 15.0


def test_extrapolate_paused_stays_put():
    assert extrapolate(10.0, last_update=50.0, now=55.0, is_playing=False) == 10.0


@pytest.mark.parametrize(("t1", "t2"), [(50.0, 50.001), (51.0, 52.0), (60.0, 600.0)])
def test_extrapolate_is_monotonic_while_playing(t1, t2):
    assert extrapolate(10.0, 50.0, t2, True) > extrapolate(10.0, 50.0, t1, True)


def test_manual_clock_only_moves_when_advanced():
    clock = ManualClock(start=5.0, epoch_ms=1000.0)
    assert clock.now() == 5.0
    assert clock.timestamp() == 1000.0

    assert clock.advance(1.5) == 6.5
    assert clock.now() == 6.5
    assert clock.timestamp() == 2500.0


def test_manual_clock_rejects_going_backwards():
    clock = ManualClock()
    with pytest.raises(ValueError):
        clock.advance(-1.0)


def test_monotonic_clock_never_decreases():
    clock = MonotonicClock()
    first = clock.now()
    assert clock.now() >= first
    assert clock.timestamp() > 1_000_000_000_000
