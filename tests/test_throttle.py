"""Tests for progress throttling."""

from __future__ import annotations

from xfer.workers.base_worker import ProgressThrottle


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def test_first_call_is_always_ready() -> None:
    assert ProgressThrottle(interval=10.0, clock=FakeClock()).ready()


def test_calls_within_interval_are_suppressed() -> None:
    clock = FakeClock()
    throttle = ProgressThrottle(interval=0.5, clock=clock)

    assert throttle.ready()
    clock.now += 0.25
    assert not throttle.ready()
    clock.now += 0.25
    assert throttle.ready()
    assert not throttle.ready()


def test_zero_interval_is_always_ready() -> None:
    clock = FakeClock()
    throttle = ProgressThrottle(interval=0.0, clock=clock)

    assert all(throttle.ready() for _ in range(5))
