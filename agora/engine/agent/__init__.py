"""Autonomous agent behaviour: onboarding, outcomes, action choice and the decision loop."""

from .actions import ActionDecision, ActionSelector, AgentAction, parse_decision
from .loop import AgentLoop
from .onboarding import create_belief_record, onboard_agent
from .outcomes import STALEMATE_PENALTY, record_outcome

__all__ = [
    "ActionDecision",
    "ActionSelector",
    "AgentAction",
    "AgentLoop",
    "STALEMATE_PENALTY",
    "create_belief_record",
    "onboard_agent",
    "parse_decision",
    "record_outcome",
]
