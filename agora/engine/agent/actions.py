"""Model-backed choice of the next autonomous action."""

import json
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Iterable

from agora.engine.conviction.types import BeliefRecord
from agora.engine.cooldowns import ActionType, CooldownTracker

from .outcomes import debate_record_summary

if TYPE_CHECKING:
    from agora.engine.models.generator import TextGenerator

logger = logging.getLogger(__name__)


class AgentAction(Enum):
    PREACH = "preach"
    CHALLENGE = "challenge"
    IDLE = "idle"


@dataclass(frozen=True)
class ActionDecision:
    action: AgentAction
    reasoning: str
    target: str | None = None


def idle(reasoning: str) -> ActionDecision:
    return ActionDecision(action=AgentAction.IDLE, reasoning=reasoning)


def parse_decision(response: str) -> ActionDecision:
    """Read ``{action, target, reasoning}``; anything malformed means idle."""
    match = re.search(r"\{.*\}", response, re.DOTALL)
    if not match:
        logger.warning(f"No JSON in action decision: {response[:200]}")
        return idle("Failed to parse decision, observing instead")

    try:
        data = json.loads(match.group())
    except json.JSONDecodeError as e:
        logger.warning(f"Malformed action decision ({e}): {response[:200]}")
        return idle("Failed to parse decision, observing instead")
    if not isinstance(data, dict):
        return idle("Failed to parse decision, observing instead")

    try:
        action = AgentAction(str(data.get("action", "")).strip().lower())
    except ValueError:
        logger.warning(f"Unknown action in decision: {data.get('action')!r}")
        return idle("Failed to parse decision, observing instead")

    target = data.get("target") or None
    if action is AgentAction.CHALLENGE and not target:
        logger.warning("Challenge decision missing target, defaulting to idle")
        return idle("Challenge target not specified")

    return ActionDecision(
        action=action,
        target=str(target) if target else None,
        reasoning=str(data.get("reasoning") or "No reasoning provided"),
    )


def _relationships_summary(record: BeliefRecord) -> str:
    if not record.relationship_map:
        return "- Relationships: None yet"
    lines = ["- Relationships:"]
    for kind, label in (("rival", "Rivals"), ("ally", "Allies"), ("neutral", "Neutral")):
        names = [n for n, rel in record.relationship_map.items() if rel == kind]
        if names:
            lines.append(f"  - {label}: {', '.join(names)}")
    return "\n".join(lines)


class ActionSelector:
    """Asks the generator what the agent should do next."""

    def __init__(self, generator: "TextGenerator"):
        self.generator = generator

    def build_prompt(
        self,
        record: BeliefRecord,
        persona: str,
        cooldowns: CooldownTracker,
        candidates: Iterable[str],
        recent_activity: str | None = None,
    ) -> str:
        availability = cooldowns.availability()
        preach = availability[ActionType.PREACH]
        challenge = availability[ActionType.CHALLENGE]

        actions = [
            "1. preach - Deliver sermon at Temple Steps"
            if preach.available
            else f"1. preach - (On cooldown: {preach.remaining})",
            "2. challenge:<agent_name> - Issue debate challenge"
            if challenge.available
            else f"2. challenge - (On cooldown: {challenge.remaining})",
            "3. idle - Observe and wait",
        ]
        others = ", ".join(candidates) or "none known"
        activity = f"\nRECENT ACTIVITY:\n{recent_activity}\n" if recent_activity else ""

        return f"""You are {record.agent}, a philosophical agent in The Agora.

PERSONALITY AND PHILOSOPHY:
{persona}

CURRENT STATE:
- Belief: {record.current_belief}
- Conviction: {record.conviction}/100
- Debate Record: {debate_record_summary(record)}
{_relationships_summary(record)}
- Other agents: {others}

AVAILABLE ACTIONS:
{chr(10).join(actions)}
{activity}
DECISION GUIDELINES:
- High conviction (80+): challenge rivals, assert your worldview
- Medium conviction (50-79): preach to strengthen your belief
- Low conviction (below 50): defend, rebuild conviction through preaching
- Challenge agents with opposing worldviews or rivals; avoid allies

Respond in JSON format:
{{
  "action": "preach|challenge|idle",
  "target": "<agent_name if challenging, otherwise omit>",
  "reasoning": "<1-2 sentence explanation>"
}}

Only output valid JSON."""

    async def decide(
        self,
        record: BeliefRecord,
        persona: str,
        cooldowns: CooldownTracker,
        candidates: Iterable[str] = (),
        can_preach: bool = True,
        can_challenge: bool = True,
        recent_activity: str | None = None,
    ) -> ActionDecision:
        """Choose preach, challenge or idle.

        Generator failures, malformed replies and actions that are not
        currently allowed all come back as idle.
        """
        candidates = list(candidates)
        prompt = self.build_prompt(record, persona, cooldowns, candidates, recent_activity)
        try:
            response = await self.generator.generate(prompt, max_tokens=512, temperature=0.7)
        except Exception as e:
            logger.error(f"Action selection failed for {record.agent}: {e}")
            return idle("Error during decision-making, defaulting to observation")

        decision = parse_decision(response)

        if decision.action is AgentAction.PREACH and not (
            can_preach and cooldowns.can_perform(ActionType.PREACH)
        ):
            return idle(f"Wanted to preach but cannot right now ({decision.reasoning})")
        if decision.action is AgentAction.CHALLENGE:
            if not (can_challenge and cooldowns.can_perform(ActionType.CHALLENGE)):
                return idle(f"Wanted to challenge but cannot right now ({decision.reasoning})")
            if candidates and decision.target.lower() not in {c.lower() for c in candidates}:
                return idle(f"Unknown challenge target {decision.target}")

        logger.info(
            f"{record.agent} decided: {decision.action.value}"
            + (f" (target: {decision.target})" if decision.target else "")
            + f" - {decision.reasoning}"
        )
        return decision
