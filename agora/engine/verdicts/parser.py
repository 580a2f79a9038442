"""Parse verdict announcements posted by the judge."""

import logging
import re
from dataclasses import dataclass

from agora.engine.conviction.types import DebateResult

logger = logging.getLogger(__name__)

SCALES = "⚖"

_DEBATE_ID = re.compile(r"Debate #(\d+)")
# Winner is either bolded or a single bare token, so labels like "WINNER:" are skipped
_WINNER = re.compile(
    r"(?:\*\*(?P<bold>[^*\n]+?)\*\*|(?P<bare>[^\s*:]+)) prevails over "
    r"\*{0,2}(?P<loser>[^*\n]+?)\*{0,2}[ \t]*$",
    re.MULTILINE,
)
_STALEMATE = re.compile(r"STALEMATE.*?— (.+?) and (.+?) fought")


@dataclass(frozen=True)
class ParsedVerdict:
    is_verdict: bool
    debate_id: int | None = None
    winner_name: str | None = None
    loser_name: str | None = None
    is_stalemate: bool = False
    participants: tuple[str, str] | None = None


NOT_A_VERDICT = ParsedVerdict(is_verdict=False)


def _has_header(message: str) -> bool:
    # The scales glyph may or may not carry the emoji variation selector
    return SCALES in message and "VERDICT" in message


def parse_verdict(message: str) -> ParsedVerdict:
    """Read a verdict announcement.

    Anything that does not parse cleanly is reported as not a verdict; this
    function never raises on malformed input.
    """
    if not _has_header(message):
        return NOT_A_VERDICT

    debate_id_match = _DEBATE_ID.search(message)
    if not debate_id_match:
        logger.warning("Verdict header without a debate id, ignoring")
        return NOT_A_VERDICT
    debate_id = int(debate_id_match.group(1))

    winner_match = _WINNER.search(message)
    if winner_match:
        winner = (winner_match.group("bold") or winner_match.group("bare")).strip()
        loser = winner_match.group("loser").strip()
        return ParsedVerdict(
            is_verdict=True,
            debate_id=debate_id,
            winner_name=winner,
            loser_name=loser,
            participants=(winner, loser),
        )

    stalemate_match = _STALEMATE.search(message)
    if stalemate_match:
        return ParsedVerdict(
            is_verdict=True,
            debate_id=debate_id,
            is_stalemate=True,
            participants=(stalemate_match.group(1).strip(), stalemate_match.group(2).strip()),
        )

    logger.warning(f"Found verdict header for debate #{debate_id} but could not parse the outcome")
    return NOT_A_VERDICT


def determine_agent_outcome(verdict: ParsedVerdict, agent_name: str) -> DebateResult | None:
    """How the verdict went for the named agent; None if it was not a participant."""
    if not verdict.is_verdict or not verdict.participants:
        return None

    lowered = agent_name.lower()
    if not any(p.lower() == lowered for p in verdict.participants):
        return None
    if verdict.is_stalemate:
        return "stalemate"
    if verdict.winner_name and verdict.winner_name.lower() == lowered:
        return "win"
    return "loss"
