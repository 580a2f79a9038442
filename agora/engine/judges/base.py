"""Judging criteria and decisions."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from agora.engine.debate_engine.types import DebateRole
from agora.engine.verdicts.formatting import VerdictKind


class JudgmentCriterion(Enum):
    """Criteria a debate is judged on."""

    COHERENCE = "coherence"
    EVIDENCE = "evidence"
    ENGAGEMENT = "engagement"
    DEPTH = "depth"


CRITERION_WEIGHTS = {
    JudgmentCriterion.COHERENCE: 0.30,
    JudgmentCriterion.EVIDENCE: 0.25,
    JudgmentCriterion.ENGAGEMENT: 0.25,
    JudgmentCriterion.DEPTH: 0.20,
}


@dataclass
class CriterionScore:
    """Score for a single judging criterion."""

    criterion: JudgmentCriterion
    role: DebateRole
    score: float  # 0.0 to 10.0


@dataclass
class JudgeDecision:
    """Complete judge decision with reasoning."""

    verdict: VerdictKind
    reasoning: str
    winner_name: Optional[str] = None
    loser_name: Optional[str] = None
    criterion_scores: List[CriterionScore] = field(default_factory=list)
    fallback: bool = False

    def weighted_score(self, role: DebateRole) -> float:
        """Weighted 0-10 score for one side; 0.0 when it was not scored."""
        scores: Dict[JudgmentCriterion, float] = {
            s.criterion: s.score for s in self.criterion_scores if s.role is role
        }
        if not scores:
            return 0.0
        return sum(CRITERION_WEIGHTS[c] * v for c, v in scores.items())
