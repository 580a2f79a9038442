"""Debate engine exceptions."""

from __future__ import annotations


class NoActiveDebateError(RuntimeError):
    """Raised when an operation needs a debate session that does not exist."""

    def __init__(self, debate_id: int | None = None):
        self.debate_id = debate_id
        if debate_id is None:
            super().__init__("No active debate")
        else:
            super().__init__(f"No active debate #{debate_id}")


class TurnOrderError(RuntimeError):
    """Raised when an agent tries to speak out of turn."""

    def __init__(self, agent_name: str, phase: str, detail: str = "Not my turn"):
        self.agent_name = agent_name
        self.phase = phase
        super().__init__(f"{detail}: {agent_name} cannot speak in phase {phase}")


class PhaseRegressionError(ValueError):
    """Raised when a transition would move a debate backwards."""

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move debate from {current} back to {target}")


class DiversityExhaustedError(RuntimeError):
    """Raised when no sufficiently distinct argument could be produced."""

    def __init__(self, agent_name: str, attempts: int):
        self.agent_name = agent_name
        self.attempts = attempts
        super().__init__(
            f"{agent_name} could not produce a sufficiently distinct argument after {attempts} attempts"
        )
