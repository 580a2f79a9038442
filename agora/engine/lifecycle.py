"""Derives an agent's lifecycle state from its belief record and debate session."""

from dataclasses import dataclass
from enum import Enum

from agora.engine.conviction.types import BeliefRecord
from agora.engine.debate_engine.models import DebateSession
from agora.engine.debate_engine.state import is_awaiting_verdict, is_debate_active


class LifecycleState(Enum):
    UNINITIALIZED = "UNINITIALIZED"
    ENTERED = "ENTERED"
    ACTIVE = "ACTIVE"
    IN_DEBATE = "IN_DEBATE"
    AWAITING_VERDICT = "AWAITING_VERDICT"
    CONVERTING = "CONVERTING"
    EXITED = "EXITED"


STATE_EMOJI = {
    LifecycleState.UNINITIALIZED: "⬜",
    LifecycleState.ENTERED: "🚪",
    LifecycleState.ACTIVE: "🟢",
    LifecycleState.IN_DEBATE: "⚔️",
    LifecycleState.AWAITING_VERDICT: "⏳",
    LifecycleState.CONVERTING: "🔄",
    LifecycleState.EXITED: "🔴",
}


@dataclass(frozen=True)
class LifecycleContext:
    """Snapshot of where an agent stands and what it may do next."""

    state: LifecycleState
    agent_name: str
    current_belief: str
    conviction: int
    conversion_threshold: int
    active_debate_id: int | None = None
    opponent_name: str | None = None

    @property
    def can_debate(self) -> bool:
        return self.state is LifecycleState.ACTIVE

    @property
    def can_preach(self) -> bool:
        return self.state in (LifecycleState.ACTIVE, LifecycleState.IN_DEBATE)

    @property
    def needs_onboarding(self) -> bool:
        return self.state in (LifecycleState.UNINITIALIZED, LifecycleState.ENTERED)

    @property
    def needs_conversion(self) -> bool:
        return self.state is LifecycleState.CONVERTING

    def describe(self) -> str:
        line = f"{STATE_EMOJI[self.state]} {self.agent_name}: {self.state.value} ({self.current_belief}, conviction {self.conviction})"
        if self.active_debate_id is not None:
            line += f" debate #{self.active_debate_id} vs {self.opponent_name}"
        return line


def resolve_lifecycle(record: BeliefRecord, session: DebateSession | None = None) -> LifecycleContext:
    """Decide the lifecycle state. First matching rule wins."""
    in_debate = is_debate_active(session)
    awaiting = is_awaiting_verdict(session)

    if not record.has_entered:
        state = LifecycleState.UNINITIALIZED
    elif not record.is_staked:
        state = LifecycleState.ENTERED
    elif awaiting:
        state = LifecycleState.AWAITING_VERDICT
    elif in_debate:
        state = LifecycleState.IN_DEBATE
    elif record.conviction < record.conversion_threshold:
        state = LifecycleState.CONVERTING
    elif record.is_staked:
        state = LifecycleState.ACTIVE
    else:
        state = LifecycleState.EXITED

    debate_id = None
    opponent_name = None
    if session is not None and (in_debate or awaiting):
        debate_id = session.debate_id
        opponent = session.opponent_of(record.agent)
        opponent_name = opponent.name if opponent else None

    return LifecycleContext(
        state=state,
        agent_name=record.agent,
        current_belief=record.current_belief,
        conviction=record.conviction,
        conversion_threshold=record.conversion_threshold,
        active_debate_id=debate_id,
        opponent_name=opponent_name,
    )
