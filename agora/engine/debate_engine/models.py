"""Data models for the debate engine."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .types import DebatePhase, DebateRole, StrategyType


class Participant(BaseModel):
    """One side of a debate."""

    agent_id: int
    name: str
    belief: str


class Turn(BaseModel):
    """A single utterance in the debate."""

    model_config = ConfigDict(frozen=True)

    speaker_id: int
    speaker_name: str
    role: DebateRole
    phase: DebatePhase
    content: str
    strategy: StrategyType
    timestamp: datetime = Field(default_factory=datetime.now)


class DebateSession(BaseModel):
    """Full state of one debate between a challenger and a challenged agent."""

    debate_id: int
    topic: str
    stake_amount: int
    challenger: Participant
    challenged: Participant
    channel_id: str = "agora"
    current_phase: DebatePhase = DebatePhase.CHALLENGE_ISSUED
    rounds_completed: int = 0
    max_rounds: int = 2
    transcript: tuple[Turn, ...] = ()
    arguments_used: tuple[str, ...] = ()
    started_at: datetime = Field(default_factory=datetime.now)
    last_activity_at: datetime = Field(default_factory=datetime.now)
    forfeited_by: DebateRole | None = None

    def participant(self, role: DebateRole) -> Participant:
        if role is DebateRole.CHALLENGER:
            return self.challenger
        return self.challenged

    def role_of(self, agent_name: str) -> DebateRole | None:
        """Return the role played by the named agent, if any."""
        lowered = agent_name.lower()
        if self.challenger.name.lower() == lowered:
            return DebateRole.CHALLENGER
        if self.challenged.name.lower() == lowered:
            return DebateRole.CHALLENGED
        return None

    def opponent_of(self, agent_name: str) -> Participant | None:
        role = self.role_of(agent_name)
        if role is None:
            return None
        return self.participant(role.opponent)
