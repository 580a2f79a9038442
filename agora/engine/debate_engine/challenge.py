"""Challenge messages and the decision to accept one."""

import re
from dataclasses import dataclass

from agora.engine.beliefs import beliefs_conflict

from .prompts import WEI_PER_MON, format_stake

ACCEPT_BELOW_CONVICTION = 50
ALLY_DECLINE_ABOVE_CONVICTION = 80


@dataclass(frozen=True)
class ChallengeNotice:
    """A challenge read back from the channel."""

    challenger_name: str
    target_name: str
    debate_id: int | None = None
    topic: str | None = None
    stake_amount: int | None = None


@dataclass(frozen=True)
class ChallengeDecision:
    accept: bool
    reason: str


def format_challenge_message(
    debate_id: int,
    challenger_name: str,
    challenger_belief: str,
    target_name: str,
    target_belief: str,
    topic: str,
    stake_amount: int,
    max_rounds: int,
) -> str:
    return f"""⚔️ **DEBATE CHALLENGE** ⚔️ — Debate #{debate_id}

**{challenger_name}** ({challenger_belief}) challenges **{target_name}** ({target_belief}) to a formal debate!

📜 **Topic:** {topic}
💰 **Stake:** {format_stake(stake_amount)} MON each
🔄 **Format:** {max_rounds} rebuttal rounds (Opening → Rebuttals → Closing)

Do you accept, {target_name}?"""


def format_acceptance_message(accepter_name: str, challenger_name: str, total_pot: int) -> str:
    return (
        f"✅ **{accepter_name}** accepts **{challenger_name}**'s challenge!\n\n"
        f"🔒 Stakes locked: **{format_stake(total_pot)} MON** in escrow.\n\n"
        "*Let the debate begin.*"
    )


def format_decline_message(decliner_name: str, challenger_name: str, reason: str) -> str:
    return f"🚫 **{decliner_name}** declines **{challenger_name}**'s challenge.\n\n*{reason}*"


def detect_challenge(message: str) -> ChallengeNotice | None:
    """Parse a challenge announcement; None if the message is not one."""
    if "⚔" not in message or "DEBATE CHALLENGE" not in message:
        return None

    challenger = re.search(r"\*\*(.+?)\*\* \(.+?\) challenges", message)
    target = re.search(r"challenges \*\*(.+?)\*\*", message)
    if not challenger or not target:
        return None

    debate_id = re.search(r"Debate #(\d+)", message)
    topic = re.search(r"\*\*Topic:\*\* (.+)", message)
    stake = re.search(r"\*\*Stake:\*\* ([\d.]+) MON", message)

    return ChallengeNotice(
        challenger_name=challenger.group(1),
        target_name=target.group(1),
        debate_id=int(debate_id.group(1)) if debate_id else None,
        topic=topic.group(1).strip() if topic else None,
        stake_amount=round(float(stake.group(1)) * WEI_PER_MON) if stake else None,
    )


def should_accept_challenge(
    own_belief: str,
    conviction: int,
    challenger_name: str,
    challenger_belief: str,
    relationship: str,
) -> ChallengeDecision:
    if beliefs_conflict(own_belief, challenger_belief):
        return ChallengeDecision(True, "Direct philosophical opposition. I must defend.")
    if relationship == "rival":
        return ChallengeDecision(True, f"{challenger_name} is a rival. I will not back down.")
    if conviction < ACCEPT_BELOW_CONVICTION:
        return ChallengeDecision(True, "My conviction wavers. This debate may clarify my position.")
    if relationship == "ally" and conviction > ALLY_DECLINE_ABOVE_CONVICTION:
        return ChallengeDecision(False, "We share a worldview. Better uses of our time exist.")
    return ChallengeDecision(True, "The Agora calls. Let truth be tested.")
