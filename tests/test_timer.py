"""Tests for the cooperative countdown."""

import pytest

from ydsprep.application.assessment.timer import CountdownTimer

from conftest import FakeClock


def test_expiry_fires_once_on_the_zero_edge():
    calls = []
    timer = CountdownTimer(3, on_expire=lambda: calls.append(True))
    timer.start()
    for _ in range(10):
        timer.tick()
    assert calls == [True]
    assert timer.remaining == 0
    assert timer.expired
    assert not timer.running


def test_ticks_are_ignored_until_started():
    timer = CountdownTimer(5)
    assert timer.tick() is False
    assert timer.remaining == 5


def test_stop_prevents_expiry():
    calls = []
    timer = CountdownTimer(2, on_expire=lambda: calls.append(True))
    timer.start()
    timer.tick()
    timer.stop()
    timer.tick()
    timer.tick()
    assert timer.remaining == 1
    assert calls == []


def test_poll_applies_whole_elapsed_seconds():
    clock = FakeClock()
    timer = CountdownTimer(10, clock=clock)
    timer.start()

    clock.advance(2.6)
    assert timer.poll() == 2
    assert timer.remaining == 8

    # The fractional 0.6s carries over to the next poll
    clock.advance(0.5)
    assert timer.poll() == 1
    assert timer.remaining == 7


def test_poll_past_the_deadline_expires_exactly_once():
    calls = []
    clock = FakeClock()
    timer = CountdownTimer(5, on_expire=lambda: calls.append(True), clock=clock)
    timer.start()

    clock.advance(60)
    timer.poll()
    timer.poll()
    assert calls == [True]
    assert timer.remaining == 0


def test_non_positive_duration_is_rejected():
    with pytest.raises(ValueError):
        CountdownTimer(0)
