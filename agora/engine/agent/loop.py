"""The per-agent decision loop tying lifecycle, debates, conviction and actions together."""

import asyncio
import logging
import random
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Iterable

from agora.engine.beliefs import base_belief
from agora.engine.config.settings import AgentConfig, AppConfig
from agora.engine.conviction.engine import ConvictionEngine
from agora.engine.conviction.types import BeliefRecord, EvaluationContext, EvaluationRequest
from agora.engine.cooldowns import ActionType, CooldownTracker
from agora.engine.debate_engine.challenge import detect_challenge, should_accept_challenge
from agora.engine.debate_engine.core import DebateEngine, DebateProgress
from agora.engine.debate_engine.exceptions import DiversityExhaustedError
from agora.engine.debate_engine.models import DebateSession, Participant
from agora.engine.debate_engine.state import format_transcript, opponent_last_turn
from agora.engine.debate_engine.strategy import StrategySelector
from agora.engine.debate_engine.types import DebatePhase, StrategyType
from agora.engine.lifecycle import LifecycleContext, LifecycleState, resolve_lifecycle
from agora.engine.registry import AgentDirectory, AgentInfo
from agora.engine.sermons import Preacher, SermonValidationError, format_sermon, parse_sermon
from agora.engine.verdicts import determine_agent_outcome, parse_verdict
from agora.engine.vulnerabilities import lookup_vulnerability

from .actions import ActionSelector, AgentAction
from .onboarding import create_belief_record, onboard_agent
from .outcomes import record_outcome

if TYPE_CHECKING:
    from agora.engine.collaborators import ChannelMessage, Ledger, MessageChannel
    from agora.engine.models.generator import TextGenerator
    from agora.engine.storage import BeliefStore, SessionStore

logger = logging.getLogger(__name__)


class AgentLoop:
    """Runs one agent's decision cycles.

    Each cycle re-derives the lifecycle state from persisted documents, so the
    loop holds no debate state of its own beyond cooldowns and the time of
    the last channel read.
    """

    def __init__(
        self,
        agent: AgentConfig,
        config: AppConfig,
        generator: "TextGenerator",
        beliefs: "BeliefStore",
        sessions: "SessionStore",
        ledger: "Ledger",
        channel: "MessageChannel",
        directory: AgentDirectory,
        conviction: ConvictionEngine | None = None,
        cooldowns: CooldownTracker | None = None,
        rng: random.Random | None = None,
    ):
        self.agent = agent
        self.config = config
        self.generator = generator
        self.beliefs = beliefs
        self.sessions = sessions
        self.ledger = ledger
        self.channel = channel
        self.directory = directory
        self.conviction = conviction or ConvictionEngine(generator, config.conviction)
        self.cooldowns = cooldowns or CooldownTracker(config.cooldowns)
        self.rng = rng or random.Random()
        self.strategy_selector = StrategySelector(
            generator, rng=self.rng, delegation_probability=config.debate.delegation_probability
        )
        self.action_selector = ActionSelector(generator)
        self.preacher = Preacher(agent.name, agent.persona, generator, rng=self.rng)
        self.channel_id = config.system.arena_channel
        self._last_check: datetime | None = None

    @property
    def name(self) -> str:
        return self.agent.name

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _load_record(self) -> BeliefRecord:
        record = self.beliefs.load(self.name)
        if record is None:
            record = create_belief_record(self.agent, self.config.conviction)
            self.beliefs.save(record)
            logger.info(f"Created belief record for {self.name} ({record.current_belief})")
        return record

    def _debate_engine(self, record: BeliefRecord) -> DebateEngine:
        # Built per use so the participant carries the current belief
        participant = Participant(
            agent_id=record.agent_id, name=record.agent, belief=record.current_belief
        )
        return DebateEngine(
            participant,
            self.generator,
            self.sessions,
            self.channel,
            self.ledger,
            rules=self.config.debate,
            persona=self.agent.persona,
            strategy_selector=self.strategy_selector,
        )

    def _save_debate_pointer(self, record: BeliefRecord, debate_id: int) -> BeliefRecord:
        staking = record.staking_record.model_copy(
            update={"active_escrows": record.staking_record.active_escrows + [debate_id]}
        )
        updated = record.model_copy(
            update={"active_debate_id": debate_id, "staking_record": staking}
        )
        self.beliefs.save(updated)
        return updated

    # ------------------------------------------------------------------
    # Cycle
    # ------------------------------------------------------------------

    async def run_cycle(self) -> LifecycleState:
        """Run one decision cycle and return the lifecycle state it acted on."""
        messages: list["ChannelMessage"] = []
        try:
            messages = await self.channel.get_recent_messages(self.channel_id, since=self._last_check)
            discovered = self.directory.discover(m.content for m in messages)
            if discovered:
                logger.info(f"{self.name} discovered {discovered} new agent(s)")

            record = self._load_record()
            if record.pending_migration is not None:
                record = await self._settle_migration()
            session = self.sessions.load_any(record.active_debate_id)
            lifecycle = resolve_lifecycle(record, session)
            logger.info(lifecycle.describe())

            if lifecycle.needs_onboarding:
                await self._onboard(record)
            elif lifecycle.state is LifecycleState.IN_DEBATE:
                await self._continue_debate(record, session)
            elif lifecycle.state is LifecycleState.AWAITING_VERDICT:
                await self._await_verdict(record, session)
            elif lifecycle.state is LifecycleState.CONVERTING:
                logger.info(f"{self.name} is below its conversion threshold; waiting for migration")
            elif lifecycle.state is LifecycleState.EXITED:
                logger.info(f"{self.name} has exited the Agora")
            else:
                await self._act(record, session, lifecycle, messages)
            return lifecycle.state
        finally:
            # Messages from a failed cycle are not replayed. The watermark is the
            # newest message actually read, so later posts are never skipped or
            # seen twice.
            if messages:
                self._last_check = max(m.timestamp for m in messages)

    async def run_forever(self, interval: float | None = None, max_cycles: int | None = None) -> None:
        """Run cycles back to back; a failing cycle is logged and the loop carries on."""
        interval = self.config.system.loop_interval_seconds if interval is None else interval
        logger.info(f"Starting decision loop for {self.name} (every {interval}s)")
        cycles = 0
        while max_cycles is None or cycles < max_cycles:
            try:
                await self.run_cycle()
            except Exception:
                logger.exception(f"Decision cycle failed for {self.name}")
            cycles += 1
            await asyncio.sleep(interval)

    async def _settle_migration(self) -> BeliefRecord:
        try:
            await self.conviction.settle_migration(self.beliefs, self.name, self.ledger)
        except Exception as e:
            logger.warning(f"{self.name}: stake migration still pending ({e}); retrying next cycle")
        return self._load_record()

    # ------------------------------------------------------------------
    # Lifecycle handlers
    # ------------------------------------------------------------------

    async def _onboard(self, record: BeliefRecord) -> None:
        record = await onboard_agent(
            record,
            self.ledger,
            self.channel,
            self.beliefs,
            stake_amount=self.config.debate.default_stake,
            channel_id=self.channel_id,
        )
        self.directory.register(
            AgentInfo(
                agent_id=record.agent_id,
                name=record.agent,
                belief=record.current_belief,
                belief_id=record.core_belief_id,
            )
        )

    async def _continue_debate(self, record: BeliefRecord, session: DebateSession) -> None:
        engine = self._debate_engine(record)
        try:
            progress = await engine.continue_debate(session.debate_id)
        except DiversityExhaustedError as e:
            logger.warning(f"{e}; will try again next cycle")
            return

        if progress is DebateProgress.TURN_TAKEN:
            self.cooldowns.record(ActionType.DEBATE_TURN)
        logger.info(f"{self.name}: debate #{session.debate_id} {progress.value}")

    async def _await_verdict(self, record: BeliefRecord, session: DebateSession) -> None:
        if session.current_phase is DebatePhase.CONCLUDED:
            session = await self._debate_engine(record).conclude(session)

        await self._evaluate_debate(record, session)
        record = self._load_record()
        delta = sum(
            entry.delta for entry in record.conviction_history if entry.debate_id == session.debate_id
        )

        messages = await self.channel.get_recent_messages(self.channel_id, since=session.started_at)
        for message in messages:
            verdict = parse_verdict(message.content)
            if not verdict.is_verdict or verdict.debate_id != session.debate_id:
                continue

            outcome = determine_agent_outcome(verdict, self.name)
            if outcome is None:
                continue

            opponent = session.opponent_of(self.name)
            updated = record_outcome(
                record,
                session.debate_id,
                outcome,
                session.stake_amount,
                opponent.name if opponent else "unknown",
                conviction_delta=delta,
            )
            self.beliefs.save(updated)
            self.sessions.archive(session.debate_id)
            logger.info(f"📊 {self.name}: debate #{session.debate_id} result {outcome}")
            return

        logger.info(f"⏳ {self.name}: no verdict yet for debate #{session.debate_id}")

    async def _evaluate_debate(self, record: BeliefRecord, session: DebateSession) -> None:
        """Weigh the opponent's final argument once per debate."""
        if session.debate_id in record.evaluated_debates:
            return

        turn = opponent_last_turn(session, self.name)
        opponent = session.opponent_of(self.name)
        if turn is None or opponent is None:
            return

        request = EvaluationRequest(
            agent_name=self.name,
            persona=self.agent.persona,
            current_belief=record.current_belief,
            current_conviction=record.conviction,
            incoming_argument=turn.content,
            opponent_name=opponent.name,
            opponent_belief=opponent.belief,
            strategy_used=turn.strategy,
            transcript=format_transcript(session),
        )
        await self.conviction.process(
            self.beliefs, self.name, request, turn.strategy, ledger=self.ledger, debate_id=session.debate_id
        )

    # ------------------------------------------------------------------
    # ACTIVE: reactive then autonomous
    # ------------------------------------------------------------------

    async def _act(
        self,
        record: BeliefRecord,
        session: DebateSession | None,
        lifecycle: LifecycleContext,
        messages: list["ChannelMessage"],
    ) -> None:
        record, pending = self._check_pending_challenge(record, session)

        if await self._respond_to_challenges(record, messages, pending):
            return

        record = await self._hear_sermons(record, messages)

        candidates = [a.name for a in self.directory.others(self.name)]
        decision = await self.action_selector.decide(
            record,
            self.agent.persona,
            self.cooldowns,
            candidates,
            can_preach=lifecycle.can_preach,
            can_challenge=lifecycle.can_debate and not pending,
        )
        if decision.action is AgentAction.PREACH:
            await self._preach(record)
        elif decision.action is AgentAction.CHALLENGE:
            await self._challenge(record, decision.target)
        else:
            logger.info(f"{self.name} is observing: {decision.reasoning}")

    def _check_pending_challenge(
        self, record: BeliefRecord, session: DebateSession | None
    ) -> tuple[BeliefRecord, bool]:
        """Return the record and whether an issued challenge is still unanswered.

        Declined or unanswered-too-long challenges release the debate pointer.
        """
        if record.active_debate_id is None:
            return record, False

        if session is not None and session.current_phase is DebatePhase.CHALLENGE_ISSUED:
            waited = datetime.now() - session.last_activity_at
            if waited <= timedelta(seconds=self.config.debate.response_timeout_seconds):
                return record, True
            logger.info(f"{self.name}: challenge #{session.debate_id} went unanswered")

        released = record.model_copy(update={"active_debate_id": None})
        self.beliefs.save(released)
        if session is not None and session.current_phase is DebatePhase.SETTLED:
            self.sessions.archive(session.debate_id)
        return released, False

    async def _respond_to_challenges(
        self, record: BeliefRecord, messages: Iterable["ChannelMessage"], pending: bool
    ) -> bool:
        for message in messages:
            notice = detect_challenge(message.content)
            if notice is None or notice.target_name.lower() != self.name.lower():
                continue
            if notice.debate_id is None:
                logger.warning(f"Challenge from {notice.challenger_name} has no debate id, ignoring")
                continue

            session = self.sessions.load(notice.debate_id)
            if session is None or session.current_phase is not DebatePhase.CHALLENGE_ISSUED:
                continue

            logger.info(f"🔔 {self.name} challenged by {notice.challenger_name} (debate #{notice.debate_id})")
            engine = self._debate_engine(record)

            if pending:
                await engine.decline_challenge(notice.debate_id, "Already committed to another debate.")
                continue

            decision = should_accept_challenge(
                record.current_belief,
                record.conviction,
                session.challenger.name,
                session.challenger.belief,
                record.relationship(session.challenger.name),
            )
            if not decision.accept:
                await engine.decline_challenge(notice.debate_id, decision.reason)
                continue

            await engine.accept_challenge(notice.debate_id)
            self._save_debate_pointer(record, notice.debate_id)
            self.cooldowns.record(ActionType.DEBATE_TURN)
            return True
        return False

    async def _hear_sermons(
        self, record: BeliefRecord, messages: Iterable["ChannelMessage"]
    ) -> BeliefRecord:
        """Let sermons from other beliefs work on this agent's conviction."""
        own = base_belief(record.current_belief)
        for message in messages:
            sermon = parse_sermon(message.content)
            if sermon is None or sermon.agent_name.lower() == self.name.lower():
                continue
            if base_belief(sermon.belief) in (None, own):
                continue

            preacher = lookup_vulnerability(sermon.agent_name)
            strategy = preacher.natural_strategy if preacher else StrategyType.LOGICAL_DISMANTLING
            request = EvaluationRequest(
                agent_name=self.name,
                persona=self.agent.persona,
                current_belief=record.current_belief,
                current_conviction=record.conviction,
                incoming_argument=sermon.content,
                opponent_name=sermon.agent_name,
                opponent_belief=sermon.belief,
                strategy_used=strategy,
                context=EvaluationContext.SERMON,
            )
            await self.conviction.process(self.beliefs, self.name, request, strategy, ledger=self.ledger)
            record = self._load_record()
            own = base_belief(record.current_belief)
        return record

    async def _preach(self, record: BeliefRecord) -> None:
        try:
            sermon = await self.preacher.deliver(record.current_belief)
        except SermonValidationError as e:
            logger.warning(f"{self.name} discarded a sermon: {e}")
            return

        await self.channel.post(self.channel_id, format_sermon(sermon), author=self.name)
        self.beliefs.save(record.model_copy(update={"sermons_delivered": record.sermons_delivered + 1}))
        self.cooldowns.record(ActionType.PREACH)
        logger.info(f"✅ {self.name} delivered a {sermon.sermon_type.value} sermon")

    async def _challenge(self, record: BeliefRecord, target_name: str) -> None:
        target = self.directory.get_by_name(target_name)
        session = await self._debate_engine(record).issue_challenge(
            target.as_participant(), channel_id=self.channel_id
        )
        self._save_debate_pointer(record, session.debate_id)
        self.cooldowns.record(ActionType.CHALLENGE)
