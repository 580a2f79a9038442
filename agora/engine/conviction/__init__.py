"""Conviction scoring and belief conversion."""

from .engine import ConvictionEngine, is_near_conversion, is_vulnerable
from .exceptions import EvaluationParseError
from .parser import parse_evaluation_response
from .prompts import build_evaluation_prompt, extract_core_tenets
from .types import (
    BeliefMigrationIntent,
    BeliefRecord,
    ConvictionResult,
    EvaluationContext,
    EvaluationRequest,
)

__all__ = [
    "BeliefMigrationIntent",
    "BeliefRecord",
    "ConvictionEngine",
    "ConvictionResult",
    "EvaluationContext",
    "EvaluationParseError",
    "EvaluationRequest",
    "build_evaluation_prompt",
    "extract_core_tenets",
    "is_near_conversion",
    "is_vulnerable",
    "parse_evaluation_response",
]
