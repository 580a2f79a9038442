"""Judging of concluded debates."""

from .base import CriterionScore, JudgeDecision, JudgmentCriterion
from .chronicler import Chronicler

__all__ = ["Chronicler", "CriterionScore", "JudgeDecision", "JudgmentCriterion"]
