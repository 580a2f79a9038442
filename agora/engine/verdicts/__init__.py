"""Verdict announcements: reading them back and producing them."""

from .formatting import VerdictKind, format_verdict_announcement
from .parser import ParsedVerdict, determine_agent_outcome, parse_verdict

__all__ = [
    "ParsedVerdict",
    "VerdictKind",
    "determine_agent_outcome",
    "format_verdict_announcement",
    "parse_verdict",
]
