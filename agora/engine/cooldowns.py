"""Per-action cooldown tracking for autonomous agent actions."""

import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from agora.engine.config.settings import CooldownConfig


class ActionType(Enum):
    """Rate-limited agent actions."""

    PREACH = "preach"
    CHALLENGE = "challenge"
    DEBATE_TURN = "debate_turn"


@dataclass
class ActionAvailability:
    available: bool
    remaining: str


def format_cooldown(seconds: float) -> str:
    """Render a remaining cooldown as 'Available', '45s', '5m' or '5m 30s'."""
    if seconds <= 0:
        return "Available"
    total = int(round(seconds))
    if total < 60:
        return f"{total}s"
    minutes, secs = divmod(total, 60)
    if secs == 0:
        return f"{minutes}m"
    return f"{minutes}m {secs}s"


class CooldownTracker:
    """Tracks when each action was last performed by one agent."""

    def __init__(
        self,
        config: CooldownConfig | None = None,
        clock: Callable[[], float] = time.time,
    ):
        config = config or CooldownConfig()
        self._durations = {
            ActionType.PREACH: config.preach,
            ActionType.CHALLENGE: config.challenge,
            ActionType.DEBATE_TURN: config.debate_turn,
        }
        self._last_performed: dict[ActionType, float] = {}
        self._clock = clock

    def remaining(self, action: ActionType) -> float:
        """Seconds until the action is available again (0 when available)."""
        last = self._last_performed.get(action)
        if last is None:
            return 0.0
        return max(0.0, last + self._durations[action] - self._clock())

    def can_perform(self, action: ActionType) -> bool:
        return self.remaining(action) <= 0

    def record(self, action: ActionType) -> None:
        """Mark the action as performed now."""
        self._last_performed[action] = self._clock()

    def availability(self) -> dict[ActionType, ActionAvailability]:
        return {
            action: ActionAvailability(
                available=self.can_perform(action),
                remaining=format_cooldown(self.remaining(action)),
            )
            for action in ActionType
        }
