"""Debate state machine and turn orchestration.

Only the dependency-free pieces are re-exported here; import
``agora.engine.debate_engine.core`` for the DebateEngine itself.
"""

from .exceptions import (
    DiversityExhaustedError,
    NoActiveDebateError,
    PhaseRegressionError,
    TurnOrderError,
)
from .models import DebateSession, Participant, Turn
from .types import (
    PHASE_DISPLAY,
    PHASE_SEQUENCE,
    PHASE_SPEAKER,
    DebatePhase,
    DebateRole,
    StrategyType,
)

__all__ = [
    "DebatePhase",
    "DebateRole",
    "DebateSession",
    "DiversityExhaustedError",
    "NoActiveDebateError",
    "PHASE_DISPLAY",
    "PHASE_SEQUENCE",
    "PHASE_SPEAKER",
    "Participant",
    "PhaseRegressionError",
    "StrategyType",
    "Turn",
    "TurnOrderError",
]
