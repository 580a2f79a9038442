"""Tests for per-action cooldown tracking."""

from __future__ import annotations

from agora.engine.config.settings import CooldownConfig
from agora.engine.cooldowns import ActionType, CooldownTracker, format_cooldown


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_actions_start_available() -> None:
    tracker = CooldownTracker(CooldownConfig(), clock=FakeClock())

    assert all(tracker.can_perform(action) for action in ActionType)
    assert tracker.availability()[ActionType.PREACH].remaining == "Available"


def test_cooldown_runs_out_after_its_duration() -> None:
    clock = FakeClock()
    tracker = CooldownTracker(CooldownConfig(preach=600, challenge=1800), clock=clock)

    tracker.record(ActionType.PREACH)
    clock.now += 270

    assert not tracker.can_perform(ActionType.PREACH)
    assert tracker.remaining(ActionType.PREACH) == 330
    assert tracker.availability()[ActionType.PREACH].remaining == "5m 30s"
    assert tracker.can_perform(ActionType.CHALLENGE)

    clock.now += 330
    assert tracker.can_perform(ActionType.PREACH)


def test_zero_cooldown_never_blocks() -> None:
    tracker = CooldownTracker(CooldownConfig(debate_turn=0), clock=FakeClock())

    tracker.record(ActionType.DEBATE_TURN)

    assert tracker.can_perform(ActionType.DEBATE_TURN)


def test_format_cooldown() -> None:
    assert format_cooldown(0) == "Available"
    assert format_cooldown(-5) == "Available"
    assert format_cooldown(45) == "45s"
    assert format_cooldown(300) == "5m"
    assert format_cooldown(330) == "5m 30s"
