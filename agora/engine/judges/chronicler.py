"""The Chronicler: an impartial model-backed judge of concluded debates."""

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Any, Dict, Optional, Set

from agora.engine.conviction.parser import extract_json_text, repair_json
from agora.engine.debate_engine.models import DebateSession
from agora.engine.debate_engine.types import DebatePhase, DebateRole
from agora.engine.verdicts.formatting import VerdictKind, format_verdict_announcement

from .base import CriterionScore, JudgeDecision, JudgmentCriterion

if TYPE_CHECKING:
    from agora.engine.collaborators import Ledger, MessageChannel
    from agora.engine.models.generator import TextGenerator
    from agora.engine.storage import SessionStore

logger = logging.getLogger(__name__)

DEFAULT_CRITERION_SCORE = 5.0

# Judge replies are mapped by side, never by agent name
_VERDICTS = {
    "winner_challenger": VerdictKind.WINNER_CHALLENGER,
    "winner_defendant": VerdictKind.WINNER_CHALLENGED,
    "stalemate": VerdictKind.STALEMATE,
}

_SECTIONS = [
    ("OPENING ARGUMENTS", (DebatePhase.OPENING_A, DebatePhase.OPENING_B)),
    (
        "REBUTTALS",
        (
            DebatePhase.REBUTTAL_A_1,
            DebatePhase.REBUTTAL_B_1,
            DebatePhase.REBUTTAL_A_2,
            DebatePhase.REBUTTAL_B_2,
        ),
    ),
    ("CLOSING ARGUMENTS", (DebatePhase.CLOSING_A, DebatePhase.CLOSING_B)),
]


class Chronicler:
    """Judges debates that are awaiting a verdict and announces the result."""

    def __init__(
        self,
        generator: "TextGenerator",
        sessions: "SessionStore",
        channel: "MessageChannel",
        ledger: "Ledger",
        channel_id: str = "agora",
        timeout_seconds: float = 30.0,
    ):
        self.generator = generator
        self.sessions = sessions
        self.channel = channel
        self.ledger = ledger
        self.channel_id = channel_id
        self.timeout_seconds = timeout_seconds
        self.judged: Set[int] = set()

    @property
    def name(self) -> str:
        return "The Chronicler"

    async def evaluate_debate(self, session: DebateSession) -> JudgeDecision:
        """Decide the debate. Falls back to a stalemate rather than raising."""
        logger.info(
            f"Judging debate #{session.debate_id}: {session.challenger.name} vs {session.challenged.name}"
        )

        if session.forfeited_by is not None:
            return self._forfeit_decision(session, session.forfeited_by)

        prompt = self._create_evaluation_prompt(session)
        try:
            evaluation = await asyncio.wait_for(
                self.generator.generate(prompt, max_tokens=2048, temperature=0.7),
                timeout=self.timeout_seconds,
            )
        except Exception as e:
            logger.error(f"Judge evaluation for debate #{session.debate_id} failed: {e}")
            return JudgeDecision(
                verdict=VerdictKind.STALEMATE,
                reasoning="Analysis failed; declaring a stalemate as the fair outcome.",
                fallback=True,
            )

        decision = self._parse_evaluation(evaluation, session)
        logger.info(f"Debate #{session.debate_id} verdict: {decision.verdict.value}")
        return decision

    def _forfeit_decision(self, session: DebateSession, forfeited_by: DebateRole) -> JudgeDecision:
        winner = session.participant(forfeited_by.opponent)
        loser = session.participant(forfeited_by)
        verdict = (
            VerdictKind.WINNER_CHALLENGER
            if forfeited_by is DebateRole.CHALLENGED
            else VerdictKind.WINNER_CHALLENGED
        )
        return JudgeDecision(
            verdict=verdict,
            reasoning=f"{loser.name} forfeited by failing to respond in time.",
            winner_name=winner.name,
            loser_name=loser.name,
        )

    def _format_transcript(self, session: DebateSession) -> str:
        lines = []
        for title, phases in _SECTIONS:
            lines.append(f"=== {title} ===")
            for turn in session.transcript:
                if turn.phase in phases:
                    lines.append(f"\n{turn.speaker_name}:\n{turn.content}")
            lines.append("")
        return "\n".join(lines)

    def _create_evaluation_prompt(self, session: DebateSession) -> str:
        return f"""You are The Chronicler, an impartial judge of philosophical debates in The Agora.

DEBATE DETAILS:
- Debate ID: {session.debate_id}
- Topic: {session.topic}
- Challenger: {session.challenger.name}
- Defendant: {session.challenged.name}

FULL DEBATE TRANSCRIPT:

{self._format_transcript(session)}
EVALUATION CRITERIA:

Judge PURELY on argument quality:

1. **Logical Coherence (30%)**: Are arguments consistent? Do conclusions follow from premises?
2. **Evidence & Examples (25%)**: Are claims supported with concrete reasoning and examples?
3. **Engagement (25%)**: Do they address the opponent's points directly?
4. **Philosophical Depth (20%)**: Do they show nuanced understanding of the topic?

VERDICT OPTIONS:
- "winner_challenger" - the Challenger argued better
- "winner_defendant" - the Defendant argued better
- "stalemate" - both argued equally well, or both failed to convince

Respond in valid JSON only:
{{
  "verdict": "winner_challenger" | "winner_defendant" | "stalemate",
  "reasoning": "2-3 sentences",
  "scores": {{
    "challenger": {{"coherence": 0-10, "evidence": 0-10, "engagement": 0-10, "depth": 0-10}},
    "defendant": {{"coherence": 0-10, "evidence": 0-10, "engagement": 0-10, "depth": 0-10}}
  }}
}}"""

    def _parse_scores(self, scores: Any) -> list:
        if not isinstance(scores, dict):
            return []
        parsed = []
        for key, role in (("challenger", DebateRole.CHALLENGER), ("defendant", DebateRole.CHALLENGED)):
            side = scores.get(key) or {}
            for criterion in JudgmentCriterion:
                value = side.get(criterion.value) if isinstance(side, dict) else None
                try:
                    score = float(value) if value is not None else DEFAULT_CRITERION_SCORE
                except (TypeError, ValueError):
                    score = DEFAULT_CRITERION_SCORE
                parsed.append(CriterionScore(criterion=criterion, role=role, score=score))
        return parsed

    def _parse_evaluation(self, evaluation: str, session: DebateSession) -> JudgeDecision:
        """Parse the judge reply; unparseable replies become a stalemate."""
        json_text = extract_json_text(evaluation)
        data: Optional[Dict[str, Any]] = None
        for candidate in (json_text, repair_json(json_text)):
            try:
                loaded = json.loads(candidate)
            except json.JSONDecodeError:
                continue
            if isinstance(loaded, dict):
                data = loaded
                break

        if data is None:
            logger.error(f"Could not parse judge response: {evaluation[:300]}")
            return JudgeDecision(
                verdict=VerdictKind.STALEMATE,
                reasoning="Could not parse the verdict; declaring a stalemate as the fair outcome.",
                fallback=True,
            )

        verdict = _VERDICTS.get(str(data.get("verdict", "")).strip().lower(), VerdictKind.STALEMATE)
        reasoning = data.get("reasoning") or "No reasoning provided"
        if not isinstance(reasoning, str):
            reasoning = str(reasoning)

        winner_name = loser_name = None
        if verdict is VerdictKind.WINNER_CHALLENGER:
            winner_name, loser_name = session.challenger.name, session.challenged.name
        elif verdict is VerdictKind.WINNER_CHALLENGED:
            winner_name, loser_name = session.challenged.name, session.challenger.name

        return JudgeDecision(
            verdict=verdict,
            reasoning=reasoning,
            winner_name=winner_name,
            loser_name=loser_name,
            criterion_scores=self._parse_scores(data.get("scores")),
        )

    async def adjudicate(self, session: DebateSession) -> JudgeDecision:
        """Judge, submit the verdict to the ledger and announce it."""
        decision = await self.evaluate_debate(session)
        tx_hash = await self.ledger.submit_verdict(session.debate_id, decision.verdict.value)
        await self.channel.post(
            self.channel_id,
            format_verdict_announcement(
                debate_id=session.debate_id,
                verdict=decision.verdict,
                challenger_name=session.challenger.name,
                challenged_name=session.challenged.name,
                stake_amount=session.stake_amount,
                tx_hash=tx_hash,
            ),
            author=self.name,
        )
        self.judged.add(session.debate_id)
        logger.info(f"Verdict for debate #{session.debate_id} announced: {decision.reasoning}")
        return decision

    async def run_cycle(self) -> int:
        """Judge every debate waiting for a verdict; returns how many were judged."""
        judged = 0
        for session in self.sessions.active_sessions():
            if session.current_phase is not DebatePhase.AWAITING_VERDICT:
                continue
            if session.debate_id in self.judged:
                continue
            await self.adjudicate(session)
            judged += 1
        return judged
