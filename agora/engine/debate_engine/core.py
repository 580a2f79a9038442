"""Core debate engine driving one agent's side of its debates."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING

from agora.engine.beliefs import default_topic
from agora.engine.config.settings import DebateRulesConfig

from .challenge import (
    format_acceptance_message,
    format_challenge_message,
    format_decline_message,
)
from .diversity import DiversityChecker
from .exceptions import DiversityExhaustedError, NoActiveDebateError, TurnOrderError
from .models import DebateSession, Participant, Turn
from .prompts import (
    PromptBuilder,
    format_conclusion_message,
    format_forfeit_message,
    format_turn_message,
)
from .state import (
    TimeoutCheck,
    add_turn,
    advance_phase,
    check_timeout,
    create_session,
    is_awaiting_verdict,
    is_debate_active,
    is_my_turn,
    previous_arguments,
    recent_strategies,
    transition,
)
from .strategy import StrategySelector
from .types import DebatePhase, DebateRole, StrategyType

if TYPE_CHECKING:
    from agora.engine.collaborators import Ledger, MessageChannel
    from agora.engine.models.generator import TextGenerator
    from agora.engine.storage import SessionStore

logger = logging.getLogger(__name__)


class DebateProgress(Enum):
    """What continue_debate did this cycle."""

    INACTIVE = "inactive"
    WAITING = "waiting"
    TURN_TAKEN = "turn_taken"
    FORFEITED = "forfeited"
    CONCLUDED = "concluded"


@dataclass(frozen=True)
class DebateStatus:
    status: str
    phase: DebatePhase | None = None
    my_turn: bool = False


class DebateEngine:
    """Debate operations performed on behalf of a single agent."""

    def __init__(
        self,
        agent: Participant,
        generator: "TextGenerator",
        sessions: "SessionStore",
        channel: "MessageChannel",
        ledger: "Ledger",
        rules: DebateRulesConfig | None = None,
        persona: str = "",
        strategy_selector: StrategySelector | None = None,
    ):
        self.agent = agent
        self.generator = generator
        self.sessions = sessions
        self.channel = channel
        self.ledger = ledger
        self.rules = rules or DebateRulesConfig()
        self.prompts = PromptBuilder(agent, persona)
        self.diversity = DiversityChecker(self.rules.similarity_threshold)
        self.strategy_selector = strategy_selector or StrategySelector(
            generator, delegation_probability=self.rules.delegation_probability
        )

    # ------------------------------------------------------------------
    # Session access
    # ------------------------------------------------------------------

    def _load(self, debate_id: int | None) -> DebateSession:
        session = self.sessions.load(debate_id)
        if session is None:
            raise NoActiveDebateError(debate_id)
        return session

    def _my_role(self, session: DebateSession) -> DebateRole:
        role = session.role_of(self.agent.name)
        if role is None:
            raise TurnOrderError(
                self.agent.name, session.current_phase.value, detail="Not a participant"
            )
        return role

    async def _post(self, session: DebateSession, text: str) -> None:
        await self.channel.post(session.channel_id, text, author=self.agent.name)

    # ------------------------------------------------------------------
    # Challenge protocol
    # ------------------------------------------------------------------

    async def issue_challenge(
        self,
        target: Participant,
        topic: str | None = None,
        stake_amount: int | None = None,
        channel_id: str = "agora",
    ) -> DebateSession:
        """Lock the challenger's stake in escrow and announce the challenge."""
        stake = stake_amount if stake_amount is not None else self.rules.default_stake
        debate_id = await self.ledger.create_escrow(self.agent.agent_id, target.agent_id, stake)

        session = create_session(
            debate_id=debate_id,
            topic=topic or default_topic(self.agent.belief, target.belief),
            stake_amount=stake,
            challenger=self.agent,
            challenged=target,
            channel_id=channel_id,
            max_rounds=self.rules.max_rounds,
        )
        self.sessions.save(session)

        await self._post(
            session,
            format_challenge_message(
                debate_id=debate_id,
                challenger_name=self.agent.name,
                challenger_belief=self.agent.belief,
                target_name=target.name,
                target_belief=target.belief,
                topic=session.topic,
                stake_amount=stake,
                max_rounds=session.max_rounds,
            ),
        )
        logger.info(f"{self.agent.name} challenged {target.name} (debate #{debate_id})")
        return session

    async def accept_challenge(self, debate_id: int) -> DebateSession:
        """Match the escrow and lock the debate in."""
        session = self._load(debate_id)
        if self._my_role(session) is not DebateRole.CHALLENGED:
            raise TurnOrderError(
                self.agent.name, session.current_phase.value, detail="Only the challenged agent may accept"
            )

        await self.ledger.match_escrow(debate_id, session.stake_amount)
        session = transition(session, DebatePhase.ESCROW_LOCKED)
        self.sessions.save(session)

        await self._post(
            session,
            format_acceptance_message(
                self.agent.name, session.challenger.name, session.stake_amount * 2
            ),
        )
        logger.info(f"{self.agent.name} accepted debate #{debate_id}")
        return session

    async def decline_challenge(self, debate_id: int, reason: str) -> DebateSession:
        session = self._load(debate_id)
        if self._my_role(session) is not DebateRole.CHALLENGED:
            raise TurnOrderError(
                self.agent.name, session.current_phase.value, detail="Only the challenged agent may decline"
            )

        await self.ledger.decline_escrow(debate_id)
        session = transition(session, DebatePhase.SETTLED)
        self.sessions.save(session)

        await self._post(session, format_decline_message(self.agent.name, session.challenger.name, reason))
        logger.info(f"{self.agent.name} declined debate #{debate_id}: {reason}")
        return session

    # ------------------------------------------------------------------
    # Turns
    # ------------------------------------------------------------------

    async def generate_argument(self, session: DebateSession) -> tuple[str, StrategyType]:
        """Produce a new, sufficiently distinct argument for the current phase."""
        opponent = session.opponent_of(self.agent.name)
        strategy = await self.strategy_selector.select(
            self.agent.name,
            opponent.name if opponent else "",
            recent_strategies(session, self.agent.name),
            session.current_phase,
        )

        earlier = previous_arguments(session, self.agent.name)
        diversity_instruction = ""

        for attempt in range(1, self.rules.argument_attempts + 1):
            prompt = self.prompts.build_argument_prompt(
                session, session.current_phase, strategy, diversity_instruction
            )
            text = (await self.generator.generate(prompt, max_tokens=600, temperature=0.8)).strip()

            if len(text) < self.rules.min_argument_length:
                logger.debug(
                    f"{self.agent.name}: attempt {attempt} too short ({len(text)} chars)"
                )
                continue

            check = self.diversity.check(text, earlier)
            if check.is_diverse:
                return text[: self.rules.max_argument_chars], strategy

            logger.info(
                f"{self.agent.name}: attempt {attempt} too similar ({check.similarity_score}%)"
            )
            diversity_instruction = self.diversity.instruction(earlier)

        raise DiversityExhaustedError(self.agent.name, self.rules.argument_attempts)

    async def execute_turn(self, debate_id: int) -> DebateSession:
        """Speak in the current phase, persist, and post the turn."""
        session = self._load(debate_id)
        role = self._my_role(session)
        if not is_my_turn(session, role):
            raise TurnOrderError(self.agent.name, session.current_phase.value)

        content, strategy = await self.generate_argument(session)

        turn = Turn(
            speaker_id=self.agent.agent_id,
            speaker_name=self.agent.name,
            role=role,
            phase=session.current_phase,
            content=content,
            strategy=strategy,
        )
        updated = advance_phase(add_turn(session, turn))
        self.sessions.save(updated)

        await self._post(
            updated, format_turn_message(turn.phase, content, strategy, session.stake_amount)
        )
        logger.info(
            f"{self.agent.name} spoke in {turn.phase.value} of debate #{debate_id} "
            f"({strategy.value}); next: {updated.current_phase.value}"
        )
        return updated

    def check_timeout(self, debate_id: int, now: datetime | None = None) -> TimeoutCheck:
        return check_timeout(
            self._load(debate_id),
            timedelta(seconds=self.rules.response_timeout_seconds),
            now,
        )

    # ------------------------------------------------------------------
    # Debate progression
    # ------------------------------------------------------------------

    async def open_floor(self, session: DebateSession) -> DebateSession:
        """Move a freshly locked debate to its opening statement."""
        if session.current_phase is not DebatePhase.ESCROW_LOCKED:
            return session
        session = advance_phase(session)
        self.sessions.save(session)
        logger.info(f"Debate #{session.debate_id} is open: {session.topic}")
        return session

    async def forfeit(self, session: DebateSession, timeout: TimeoutCheck) -> DebateSession:
        session = transition(session, DebatePhase.AWAITING_VERDICT).model_copy(
            update={"forfeited_by": timeout.forfeit_role}
        )
        self.sessions.save(session)
        await self._post(session, format_forfeit_message(session.debate_id, timeout.forfeit_agent or "unknown"))
        logger.warning(f"Debate #{session.debate_id}: {timeout.forfeit_agent} forfeited on timeout")
        return session

    async def conclude(self, session: DebateSession) -> DebateSession:
        """Announce the end of the exchange and hand over to the judge."""
        if session.current_phase is not DebatePhase.CONCLUDED:
            return session
        session = transition(session, DebatePhase.AWAITING_VERDICT)
        self.sessions.save(session)
        await self._post(session, format_conclusion_message(session))
        logger.info(f"Debate #{session.debate_id} concluded after {len(session.transcript)} turns")
        return session

    async def continue_debate(self, debate_id: int, now: datetime | None = None) -> DebateProgress:
        """Do whatever this agent owes the debate right now.

        Raises DiversityExhaustedError when our turn could not be produced; the
        caller retries on its next cycle.
        """
        session = self._load(debate_id)
        self._my_role(session)

        if session.current_phase is DebatePhase.CONCLUDED:
            await self.conclude(session)
            return DebateProgress.CONCLUDED
        if not is_debate_active(session):
            return DebateProgress.INACTIVE

        timeout = check_timeout(
            session, timedelta(seconds=self.rules.response_timeout_seconds), now
        )
        if timeout.timed_out:
            await self.forfeit(session, timeout)
            return DebateProgress.FORFEITED

        if session.current_phase is DebatePhase.ESCROW_LOCKED:
            session = await self.open_floor(session)

        if not is_my_turn(session, self._my_role(session)):
            return DebateProgress.WAITING

        session = await self.execute_turn(debate_id)
        if session.current_phase is DebatePhase.CONCLUDED:
            await self.conclude(session)
            return DebateProgress.CONCLUDED
        return DebateProgress.TURN_TAKEN

    def status(self, debate_id: int | None) -> DebateStatus:
        session = self.sessions.load(debate_id)
        if session is None or session.current_phase is DebatePhase.SETTLED:
            return DebateStatus(status="idle")
        if is_awaiting_verdict(session):
            return DebateStatus(status="awaiting_verdict", phase=session.current_phase)
        role = session.role_of(self.agent.name)
        return DebateStatus(
            status="active" if is_debate_active(session) else "pending",
            phase=session.current_phase,
            my_turn=role is not None and is_my_turn(session, role),
        )
