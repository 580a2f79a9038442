"""Belief state and conviction evaluation models."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from agora.engine.debate_engine.types import StrategyType

Relationship = Literal["rival", "ally", "neutral"]
DebateResult = Literal["win", "loss", "stalemate"]


class EvaluationContext(Enum):
    """Setting in which an argument was heard."""

    DEBATE = "debate"
    SERMON = "sermon"


class ConvictionHistoryEntry(BaseModel):
    delta: int
    timestamp: datetime = Field(default_factory=datetime.now)
    opponent: str
    debate_id: int | None = None


class ExposureEntry(BaseModel):
    agent: str
    belief: str
    strategy: StrategyType
    delta: int
    timestamp: datetime = Field(default_factory=datetime.now)


class StrategyStats(BaseModel):
    attempts: int = 0
    conversions: int = 0


class DebateHistoryEntry(BaseModel):
    debate_id: int
    opponent: str
    result: DebateResult
    conviction_delta: int = 0
    timestamp: datetime = Field(default_factory=datetime.now)


class DebateRecord(BaseModel):
    wins: int = 0
    losses: int = 0
    stalemates: int = 0
    history: list[DebateHistoryEntry] = Field(default_factory=list)


class StakingRecord(BaseModel):
    total_staked: int = 0
    total_won: int = 0
    total_lost: int = 0
    active_escrows: list[int] = Field(default_factory=list)


class BeliefMigrationIntent(BaseModel):
    """Instruction for the ledger to move an agent's stake to its new belief."""

    model_config = ConfigDict(frozen=True)

    agent_id: int
    from_belief_id: int
    to_belief_id: int


class BeliefRecord(BaseModel):
    """Everything an agent believes and has been through, persisted per agent."""

    agent: str
    agent_id: int
    core_belief_id: int
    current_belief: str
    conviction: int = Field(default=85, description="Confidence in the current belief, 0-100")
    conversion_threshold: int = 30
    post_conversion_conviction: int = 40
    conviction_history: list[ConvictionHistoryEntry] = Field(default_factory=list)
    exposure_history: list[ExposureEntry] = Field(default_factory=list)
    strategy_effectiveness: dict[StrategyType, StrategyStats] = Field(
        default_factory=lambda: {s: StrategyStats() for s in StrategyType}
    )
    relationship_map: dict[str, Relationship] = Field(default_factory=dict)
    allegiance_changes: int = 0
    conversion_count: int = 0
    conversions: list[str] = Field(default_factory=list, description="Beliefs this agent has held")
    converted_agents: list[str] = Field(default_factory=list)
    last_conversion_time: datetime | None = None

    has_entered: bool = False
    entry_time: datetime | None = None
    is_staked: bool = False
    staked_amount: int = 0
    staked_belief_id: int | None = None
    pending_migration: BeliefMigrationIntent | None = Field(
        default=None, description="Stake move the ledger has not confirmed yet"
    )

    active_debate_id: int | None = None
    evaluated_debates: list[int] = Field(default_factory=list)
    debates: DebateRecord = Field(default_factory=DebateRecord)
    staking_record: StakingRecord = Field(default_factory=StakingRecord)
    sermons_delivered: int = 0
    strategy_notes: str = ""

    @field_validator("conviction")
    @classmethod
    def clamp_conviction(cls, v):
        return max(0, min(100, v))

    def relationship(self, agent_name: str) -> Relationship:
        return self.relationship_map.get(agent_name, "neutral")


@dataclass(frozen=True)
class RawEvaluation:
    """Structured answer from the evaluation collaborator, before clamping."""

    delta: float
    reasoning: str
    vulnerability_notes: str
    strategy_effectiveness: float
    failed: bool = False


@dataclass(frozen=True)
class EvaluationRequest:
    """An argument an agent heard, to be weighed against its belief."""

    agent_name: str
    persona: str
    current_belief: str
    current_conviction: int
    incoming_argument: str
    opponent_name: str
    opponent_belief: str
    strategy_used: StrategyType
    transcript: str | None = None
    context: EvaluationContext = EvaluationContext.DEBATE


@dataclass(frozen=True)
class ConvictionResult:
    previous_conviction: int
    new_conviction: int
    delta: int
    converted: bool
    reasoning: str
    vulnerability_notes: str
    strategy_effectiveness: int
    failed: bool = False
