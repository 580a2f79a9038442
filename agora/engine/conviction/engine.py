"""Conviction engine: turns argument evaluations into bounded belief shifts."""

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from agora.engine.beliefs import base_belief
from agora.engine.config.settings import ConvictionConfig
from agora.engine.retry import RetryPolicy, linear_backoff
from agora.engine.vulnerabilities import DEFAULT_VULNERABILITY_TEXT, lookup_vulnerability
from agora.engine.debate_engine.types import StrategyType

from .parser import parse_evaluation_response
from .prompts import build_evaluation_prompt
from .types import (
    BeliefMigrationIntent,
    BeliefRecord,
    ConvictionHistoryEntry,
    ConvictionResult,
    EvaluationContext,
    EvaluationRequest,
    ExposureEntry,
    RawEvaluation,
    StrategyStats,
)

if TYPE_CHECKING:
    from agora.engine.collaborators import Ledger
    from agora.engine.models.generator import TextGenerator
    from agora.engine.storage import BeliefStore

logger = logging.getLogger(__name__)

FAILED_REASONING = "Evaluation failed — conviction unchanged."
FAILED_NOTES = "Unable to assess."
VULNERABLE_BELOW = 50
NEAR_CONVERSION_MARGIN = 15


def failed_evaluation() -> RawEvaluation:
    return RawEvaluation(
        delta=0,
        reasoning=FAILED_REASONING,
        vulnerability_notes=FAILED_NOTES,
        strategy_effectiveness=50,
        failed=True,
    )


def _chain_migration(
    pending: BeliefMigrationIntent | None, intent: BeliefMigrationIntent
) -> BeliefMigrationIntent | None:
    # An unconfirmed earlier move means the ledger stake still sits on its source
    if pending is None:
        return intent
    if pending.from_belief_id == intent.to_belief_id:
        return None
    return intent.model_copy(update={"from_belief_id": pending.from_belief_id})


def is_vulnerable(record: BeliefRecord) -> bool:
    return record.conviction < VULNERABLE_BELOW


def is_near_conversion(record: BeliefRecord) -> bool:
    return record.conviction < record.conversion_threshold + NEAR_CONVERSION_MARGIN


class ConvictionEngine:
    """Scores arguments against an agent's belief and applies the outcome."""

    def __init__(
        self,
        generator: "TextGenerator",
        config: ConvictionConfig | None = None,
        retry_policy: RetryPolicy[RawEvaluation] | None = None,
    ):
        self.generator = generator
        self.config = config or ConvictionConfig()
        self.retry_policy = retry_policy or RetryPolicy(
            max_attempts=self.config.evaluation_attempts,
            backoff=linear_backoff(self.config.evaluation_backoff_seconds),
            fallback=failed_evaluation,
            name="Conviction evaluation",
        )

    def clamp_delta(self, raw_delta: float) -> int:
        return max(self.config.min_delta, min(self.config.max_delta, round(raw_delta)))

    def scale_delta(self, delta: int, context: EvaluationContext) -> int:
        if context is EvaluationContext.SERMON:
            return round(delta * self.config.sermon_multiplier)
        return delta

    async def _request_evaluation(self, prompt: str) -> RawEvaluation:
        response = await self.generator.generate(
            prompt,
            max_tokens=self.config.evaluation_max_tokens,
            temperature=self.config.evaluation_temperature,
        )
        return parse_evaluation_response(response)

    async def evaluate(
        self, request: EvaluationRequest, conversion_threshold: int | None = None
    ) -> ConvictionResult:
        """Ask the evaluator how much the argument moved the agent.

        Never raises for evaluator failures: after the retry policy gives up
        the result carries delta 0 and ``failed=True``.
        """
        vulnerability = lookup_vulnerability(request.agent_name)
        if vulnerability is None:
            logger.warning(f"Unknown agent {request.agent_name}, using default vulnerabilities")

        prompt = build_evaluation_prompt(
            request,
            vulnerabilities=vulnerability.description if vulnerability else DEFAULT_VULNERABILITY_TEXT,
            persuasion_weakness=(
                vulnerability.persuasion_weakness if vulnerability else StrategyType.LOGICAL_DISMANTLING
            ),
            min_delta=self.config.min_delta,
            max_delta=self.config.max_delta,
        )

        raw = await self.retry_policy.run(lambda: self._request_evaluation(prompt))

        delta = self.scale_delta(self.clamp_delta(raw.delta), request.context)
        new_conviction = max(0, min(100, request.current_conviction + delta))
        threshold = (
            conversion_threshold
            if conversion_threshold is not None
            else self.config.conversion_threshold
        )

        result = ConvictionResult(
            previous_conviction=request.current_conviction,
            new_conviction=new_conviction,
            delta=delta,
            converted=not raw.failed and new_conviction < threshold,
            reasoning=raw.reasoning,
            vulnerability_notes=raw.vulnerability_notes,
            strategy_effectiveness=max(0, min(100, round(raw.strategy_effectiveness))),
            failed=raw.failed,
        )
        logger.info(
            f"{request.agent_name}: conviction {result.previous_conviction} -> {result.new_conviction} "
            f"(delta {result.delta}, {request.context.value}) vs {request.opponent_name}"
        )
        return result

    def apply(
        self,
        record: BeliefRecord,
        result: ConvictionResult,
        opponent_name: str,
        opponent_belief: str,
        strategy: StrategyType,
        debate_id: int | None = None,
    ) -> tuple[BeliefRecord, BeliefMigrationIntent | None]:
        """Fold an evaluation result into a new BeliefRecord.

        Returns the updated record and, on conversion, the migration intent for
        the ledger. A failed evaluation returns the record unchanged.
        """
        if result.failed:
            logger.warning(f"{record.agent}: evaluation failed, belief state left untouched")
            return record, None

        now = datetime.now()
        new_conviction = max(0, min(100, record.conviction + result.delta))
        converted = new_conviction < record.conversion_threshold

        stats = {
            key: value.model_copy() for key, value in record.strategy_effectiveness.items()
        }
        used = stats.setdefault(strategy, StrategyStats())
        used.attempts += 1

        update: dict = {
            "conviction": new_conviction,
            "conviction_history": record.conviction_history
            + [
                ConvictionHistoryEntry(
                    delta=result.delta, timestamp=now, opponent=opponent_name, debate_id=debate_id
                )
            ],
            "exposure_history": record.exposure_history
            + [
                ExposureEntry(
                    agent=opponent_name,
                    belief=opponent_belief,
                    strategy=strategy,
                    delta=result.delta,
                    timestamp=now,
                )
            ],
            "strategy_effectiveness": stats,
        }

        intent = None
        if converted:
            new_belief = base_belief(opponent_belief)
            if new_belief is None:
                raise ValueError(f"Cannot convert {record.agent} to unknown belief {opponent_belief}")

            used.conversions += 1
            intent = BeliefMigrationIntent(
                agent_id=record.agent_id,
                from_belief_id=record.core_belief_id,
                to_belief_id=int(new_belief),
            )
            update.update(
                {
                    "conviction": record.post_conversion_conviction,
                    "core_belief_id": int(new_belief),
                    "current_belief": new_belief.label,
                    "conversions": record.conversions + [new_belief.label],
                    "allegiance_changes": record.allegiance_changes + 1,
                    "conversion_count": record.conversion_count + 1,
                    "last_conversion_time": now,
                    "relationship_map": {**record.relationship_map, opponent_name: "ally"},
                }
            )
            if record.is_staked:
                update["staked_belief_id"] = int(new_belief)
                update["pending_migration"] = _chain_migration(record.pending_migration, intent)
            logger.info(
                f"🔥 {record.agent} converted from {record.current_belief} to {new_belief.label} "
                f"by {opponent_name}"
            )

        return record.model_copy(update=update), intent

    async def process(
        self,
        store: "BeliefStore",
        agent_name: str,
        request: EvaluationRequest,
        strategy: StrategyType,
        ledger: "Ledger | None" = None,
        debate_id: int | None = None,
    ) -> ConvictionResult | None:
        """Evaluate, apply and persist in one step.

        ``debate_id`` guards against applying a debate's evaluation twice;
        returns None when it was already applied.
        """
        record = store.load(agent_name)
        if record is None:
            raise LookupError(f"No belief record for {agent_name}")

        if debate_id is not None and debate_id in record.evaluated_debates:
            logger.info(f"{agent_name}: debate #{debate_id} already evaluated, skipping")
            return None

        result = await self.evaluate(request, conversion_threshold=record.conversion_threshold)
        updated, _ = self.apply(
            record, result, request.opponent_name, request.opponent_belief, strategy, debate_id
        )

        if debate_id is not None and not result.failed:
            updated = updated.model_copy(
                update={"evaluated_debates": updated.evaluated_debates + [debate_id]}
            )

        if updated is not record:
            store.save(updated)

        if updated.pending_migration is not None and ledger is not None:
            await self.settle_migration(store, agent_name, ledger)

        return result

    async def settle_migration(
        self, store: "BeliefStore", agent_name: str, ledger: "Ledger"
    ) -> None:
        """Ask the ledger to carry out a stored stake migration.

        The intent stays on the record until the ledger call succeeds, so a
        failure is retried by the next caller.
        """
        record = store.load(agent_name)
        if record is None or record.pending_migration is None:
            return

        intent = record.pending_migration
        await ledger.migrate_stake(intent.from_belief_id, intent.to_belief_id, intent.agent_id)
        store.save(record.model_copy(update={"pending_migration": None}))
        logger.info(
            f"Stake of agent {intent.agent_id} migrated {intent.from_belief_id} -> {intent.to_belief_id}"
        )
