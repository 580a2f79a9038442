"""Tests for conviction scoring, belief conversion and stake migration."""

from __future__ import annotations

import asyncio

import pytest

from agora.engine.collaborators import InMemoryLedger
from agora.engine.conviction import (
    BeliefRecord,
    ConvictionEngine,
    ConvictionResult,
    EvaluationContext,
    EvaluationRequest,
    is_near_conversion,
    is_vulnerable,
)
from agora.engine.debate_engine.types import StrategyType
from agora.engine.storage import BeliefStore


def _request(
    conviction: int = 85,
    context: EvaluationContext = EvaluationContext.DEBATE,
    agent: str = "Seneca",
) -> EvaluationRequest:
    return EvaluationRequest(
        agent_name=agent,
        persona="# Seneca\n\n## Core Tenets\nVirtue is the only good.\n\n## Style\nCalm.",
        current_belief="Stoicism",
        current_conviction=conviction,
        incoming_argument="Your calm is a wall you built so you would never have to grieve.",
        opponent_name="Kael",
        opponent_belief="Existentialism",
        strategy_used=StrategyType.EMOTIONAL_BYPASS,
        context=context,
    )


def _result(delta: int, previous: int = 85, failed: bool = False) -> ConvictionResult:
    return ConvictionResult(
        previous_conviction=previous,
        new_conviction=max(0, min(100, previous + delta)),
        delta=delta,
        converted=False,
        reasoning="It landed.",
        vulnerability_notes="Grief.",
        strategy_effectiveness=70,
        failed=failed,
    )


def test_large_negative_delta_is_clamped(make_generator, evaluation_reply) -> None:
    engine = ConvictionEngine(make_generator(evaluation_reply(-1000)))

    result = asyncio.run(engine.evaluate(_request()))

    assert result.delta == -30
    assert result.new_conviction == 55
    assert not result.converted
    assert not result.failed


def test_large_positive_delta_is_clamped(make_generator, evaluation_reply) -> None:
    engine = ConvictionEngine(make_generator(evaluation_reply(50)))

    result = asyncio.run(engine.evaluate(_request(conviction=98)))

    assert result.delta == 5
    assert result.new_conviction == 100


def test_sermons_move_conviction_half_as_much(make_generator, evaluation_reply) -> None:
    engine = ConvictionEngine(make_generator(evaluation_reply(-20)))

    result = asyncio.run(engine.evaluate(_request(context=EvaluationContext.SERMON)))

    assert result.delta == -10
    assert result.new_conviction == 75


def test_evaluation_prompt_carries_vulnerabilities(make_generator, evaluation_reply) -> None:
    generator = make_generator(evaluation_reply(-3))

    asyncio.run(ConvictionEngine(generator).evaluate(_request()))

    prompt = generator.prompts[0]
    assert "Virtue is the only good." in prompt
    assert "emotional_bypass" in prompt
    assert "between -30 and +5" in prompt
    assert generator.calls[0] == {"max_tokens": 512, "temperature": 0.7}


def test_evaluation_reports_conversion_below_threshold(make_generator, evaluation_reply) -> None:
    engine = ConvictionEngine(make_generator(evaluation_reply(-20)))

    result = asyncio.run(engine.evaluate(_request(conviction=40), conversion_threshold=30))

    assert result.new_conviction == 20
    assert result.converted


def test_failed_evaluation_retries_with_linear_backoff(
    make_generator, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Three failures back off 1s then 2s and leave conviction untouched."""
    sleeps: list[float] = []

    async def fake_sleep(delay: float) -> None:
        sleeps.append(delay)

    monkeypatch.setattr("agora.engine.retry.asyncio.sleep", fake_sleep)
    generator = make_generator(
        RuntimeError("timeout"), "no json here at all", RuntimeError("timeout")
    )
    engine = ConvictionEngine(generator)

    result = asyncio.run(engine.evaluate(_request()))

    assert sleeps == [1.0, 2.0]
    assert len(generator.prompts) == 3
    assert result.failed
    assert result.delta == 0
    assert result.new_conviction == 85
    assert not result.converted


def test_recovers_after_a_transient_failure(
    make_generator, evaluation_reply, monkeypatch: pytest.MonkeyPatch
) -> None:
    async def fake_sleep(delay: float) -> None:
        return None

    monkeypatch.setattr("agora.engine.retry.asyncio.sleep", fake_sleep)
    engine = ConvictionEngine(make_generator(RuntimeError("busy"), evaluation_reply(-4)))

    result = asyncio.run(engine.evaluate(_request()))

    assert result.delta == -4
    assert not result.failed


def test_apply_records_history_without_conversion(seneca_record: BeliefRecord) -> None:
    engine = ConvictionEngine(generator=None)

    updated, intent = engine.apply(
        seneca_record, _result(-28), "Kael", "Existentialism", StrategyType.EMOTIONAL_BYPASS
    )

    assert intent is None
    assert updated.conviction == 57
    assert updated.current_belief == "Stoicism"
    assert updated.conviction_history[-1].delta == -28
    assert updated.conviction_history[-1].opponent == "Kael"
    assert updated.exposure_history[-1].strategy is StrategyType.EMOTIONAL_BYPASS
    assert updated.strategy_effectiveness[StrategyType.EMOTIONAL_BYPASS].attempts == 1
    assert updated.strategy_effectiveness[StrategyType.EMOTIONAL_BYPASS].conversions == 0
    # The original record is not modified
    assert seneca_record.conviction == 85
    assert seneca_record.conviction_history == []


def test_apply_converts_to_the_opponents_belief(seneca_record: BeliefRecord) -> None:
    engine = ConvictionEngine(generator=None)
    shaken = seneca_record.model_copy(update={"conviction": 40})

    updated, intent = engine.apply(
        shaken, _result(-28, previous=40), "Kael", "Existentialism", StrategyType.EMOTIONAL_BYPASS
    )

    assert updated.current_belief == "Existentialism"
    assert updated.core_belief_id == 2
    assert updated.conviction == 40
    assert updated.conversions == ["Stoicism", "Existentialism"]
    assert updated.allegiance_changes == 1
    assert updated.conversion_count == 1
    assert updated.relationship("Kael") == "ally"
    assert updated.staked_belief_id == 2
    assert updated.last_conversion_time is not None
    assert updated.strategy_effectiveness[StrategyType.EMOTIONAL_BYPASS].conversions == 1
    assert intent is not None
    assert (intent.agent_id, intent.from_belief_id, intent.to_belief_id) == (1, 4, 2)


def test_failed_result_leaves_record_untouched(seneca_record: BeliefRecord) -> None:
    engine = ConvictionEngine(generator=None)

    updated, intent = engine.apply(
        seneca_record, _result(0, failed=True), "Kael", "Existentialism", StrategyType.SOCIAL_PROOF
    )

    assert updated is seneca_record
    assert intent is None


def test_process_applies_a_debate_only_once(
    make_generator, evaluation_reply, belief_store: BeliefStore, seneca_record: BeliefRecord
) -> None:
    belief_store.save(seneca_record)
    generator = make_generator(evaluation_reply(-10), evaluation_reply(-10))
    engine = ConvictionEngine(generator)

    async def run():
        first = await engine.process(
            belief_store, "Seneca", _request(), StrategyType.EMOTIONAL_BYPASS, debate_id=7
        )
        second = await engine.process(
            belief_store, "Seneca", _request(), StrategyType.EMOTIONAL_BYPASS, debate_id=7
        )
        return first, second

    first, second = asyncio.run(run())
    stored = belief_store.load("Seneca")

    assert first is not None and first.delta == -10
    assert second is None
    assert len(generator.prompts) == 1
    assert stored.conviction == 75
    assert stored.evaluated_debates == [7]


def test_process_migrates_stake_on_conversion(
    make_generator, evaluation_reply, belief_store: BeliefStore, seneca_record: BeliefRecord
) -> None:
    ledger = InMemoryLedger()
    belief_store.save(seneca_record.model_copy(update={"conviction": 35}))
    engine = ConvictionEngine(make_generator(evaluation_reply(-25)))

    async def run():
        await ledger.enter_pool(1)
        await ledger.stake(4, 1, 10**17)
        return await engine.process(
            belief_store, "Seneca", _request(conviction=35), StrategyType.EMOTIONAL_BYPASS, ledger=ledger
        )

    result = asyncio.run(run())

    assert result.converted
    assert ledger.migrations == [(4, 2, 1)]
    assert ledger.stakes[1].belief_id == 2
    assert belief_store.load("Seneca").current_belief == "Existentialism"


def test_process_requires_a_record(make_generator, belief_store: BeliefStore) -> None:
    engine = ConvictionEngine(make_generator())

    with pytest.raises(LookupError):
        asyncio.run(
            engine.process(belief_store, "Nobody", _request(agent="Nobody"), StrategyType.SOCIAL_PROOF)
        )


def test_vulnerability_predicates(seneca_record: BeliefRecord) -> None:
    assert not is_vulnerable(seneca_record)
    assert is_vulnerable(seneca_record.model_copy(update={"conviction": 49}))
    assert is_near_conversion(seneca_record.model_copy(update={"conviction": 44}))
    assert not is_near_conversion(seneca_record.model_copy(update={"conviction": 45}))


def test_non_finite_deltas_leave_the_record_untouched(
    make_generator,
    belief_store: BeliefStore,
    seneca_record: BeliefRecord,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    async def fake_sleep(delay: float) -> None:
        return None

    monkeypatch.setattr("agora.engine.retry.asyncio.sleep", fake_sleep)
    belief_store.save(seneca_record)
    reply = '{"delta": NaN, "reasoning": "?", "vulnerabilityNotes": "?", "strategyEffectiveness": NaN}'
    engine = ConvictionEngine(make_generator(reply, reply, reply))

    result = asyncio.run(
        engine.process(belief_store, "Seneca", _request(), StrategyType.EMOTIONAL_BYPASS, debate_id=3)
    )

    assert result.failed
    assert result.delta == 0
    assert belief_store.load("Seneca") == seneca_record


class FlakyLedger(InMemoryLedger):
    """Ledger whose stake migrations fail until told otherwise."""

    def __init__(self):
        super().__init__()
        self.migration_error: Exception | None = RuntimeError("ledger down")

    async def migrate_stake(self, from_belief_id: int, to_belief_id: int, agent_id: int) -> str:
        if self.migration_error is not None:
            raise self.migration_error
        return await super().migrate_stake(from_belief_id, to_belief_id, agent_id)


def test_failed_migration_stays_pending_until_the_ledger_accepts_it(
    make_generator, evaluation_reply, belief_store: BeliefStore, seneca_record: BeliefRecord
) -> None:
    ledger = FlakyLedger()
    belief_store.save(seneca_record.model_copy(update={"conviction": 35}))
    engine = ConvictionEngine(make_generator(evaluation_reply(-25)))

    async def setup():
        await ledger.enter_pool(1)
        await ledger.stake(4, 1, 10**17)

    asyncio.run(setup())
    with pytest.raises(RuntimeError, match="ledger down"):
        asyncio.run(
            engine.process(
                belief_store,
                "Seneca",
                _request(conviction=35),
                StrategyType.EMOTIONAL_BYPASS,
                ledger=ledger,
                debate_id=9,
            )
        )

    stored = belief_store.load("Seneca")
    assert stored.current_belief == "Existentialism"
    assert stored.evaluated_debates == [9]
    assert stored.pending_migration is not None
    assert (stored.pending_migration.from_belief_id, stored.pending_migration.to_belief_id) == (4, 2)
    assert ledger.stakes[1].belief_id == 4

    ledger.migration_error = None
    asyncio.run(engine.settle_migration(belief_store, "Seneca", ledger))

    assert belief_store.load("Seneca").pending_migration is None
    assert ledger.migrations == [(4, 2, 1)]
    assert ledger.stakes[1].belief_id == 2


def test_unconfirmed_migrations_chain_to_the_latest_belief(seneca_record: BeliefRecord) -> None:
    engine = ConvictionEngine(None)
    record = seneca_record.model_copy(update={"conviction": 35})
    converting = ConvictionResult(
        previous_conviction=35,
        new_conviction=10,
        delta=-25,
        converted=True,
        reasoning="Broken.",
        vulnerability_notes="All of it.",
        strategy_effectiveness=90,
    )

    to_existentialism, _ = engine.apply(
        record, converting, "Kael", "Existentialism", StrategyType.EMOTIONAL_BYPASS
    )
    to_nihilism, _ = engine.apply(
        to_existentialism.model_copy(update={"conviction": 35}),
        converting,
        "Nox",
        "Nihilism",
        StrategyType.LOGICAL_DISMANTLING,
    )
    back_home, _ = engine.apply(
        to_existentialism.model_copy(update={"conviction": 35}),
        converting,
        "Marcus",
        "Stoicism",
        StrategyType.STOIC_REFRAME,
    )

    assert (to_nihilism.pending_migration.from_belief_id, to_nihilism.pending_migration.to_belief_id) == (4, 1)
    assert back_home.pending_migration is None
    assert back_home.staked_belief_id == 4
