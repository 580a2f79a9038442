"""Tests for action selection, onboarding and debate outcome bookkeeping."""

from __future__ import annotations

import asyncio

from agora.engine.agent import (
    STALEMATE_PENALTY,
    ActionSelector,
    AgentAction,
    create_belief_record,
    onboard_agent,
    parse_decision,
    record_outcome,
)
from agora.engine.agent.outcomes import debate_record_summary
from agora.engine.collaborators import InMemoryChannel, InMemoryLedger
from agora.engine.config.settings import AgentConfig, ConvictionConfig, CooldownConfig
from agora.engine.conviction.types import BeliefRecord
from agora.engine.cooldowns import ActionType, CooldownTracker
from agora.engine.registry import parse_entry_announcement
from agora.engine.storage import BeliefStore

STAKE = 10**17


# =============================================================================
# Decisions
# =============================================================================


def test_parse_decision_reads_json_inside_chatter() -> None:
    decision = parse_decision(
        'Thinking...\n{"action": "challenge", "target": "Kael", "reasoning": "He is a rival."}'
    )

    assert decision.action is AgentAction.CHALLENGE
    assert decision.target == "Kael"
    assert decision.reasoning == "He is a rival."


def test_malformed_decisions_mean_idle() -> None:
    for response in (
        "I will preach today.",
        '{"action": "preach",}',
        '{"action": "dance"}',
        '{"action": "challenge", "reasoning": "no target"}',
    ):
        assert parse_decision(response).action is AgentAction.IDLE


def test_selector_honours_cooldowns(make_generator, seneca_record: BeliefRecord) -> None:
    cooldowns = CooldownTracker(CooldownConfig(preach=600))
    cooldowns.record(ActionType.PREACH)
    generator = make_generator('{"action": "preach", "reasoning": "Spread the word."}')

    decision = asyncio.run(ActionSelector(generator).decide(seneca_record, "persona", cooldowns))

    assert decision.action is AgentAction.IDLE
    assert "On cooldown" in generator.prompts[0]
    assert generator.calls == [{"max_tokens": 512, "temperature": 0.7}]


def test_selector_rejects_unknown_targets_and_disallowed_challenges(
    make_generator, seneca_record: BeliefRecord
) -> None:
    cooldowns = CooldownTracker(CooldownConfig())
    reply = '{"action": "challenge", "target": "Ghost", "reasoning": "Why not."}'

    unknown = asyncio.run(
        ActionSelector(make_generator(reply)).decide(seneca_record, "", cooldowns, ["Kael"])
    )
    busy = asyncio.run(
        ActionSelector(make_generator(reply)).decide(
            seneca_record, "", cooldowns, ["Ghost"], can_challenge=False
        )
    )

    assert unknown.action is AgentAction.IDLE
    assert busy.action is AgentAction.IDLE


def test_selector_accepts_valid_challenge(make_generator, seneca_record: BeliefRecord) -> None:
    generator = make_generator('{"action": "challenge", "target": "kael", "reasoning": "Test him."}')

    decision = asyncio.run(
        ActionSelector(generator).decide(seneca_record, "", CooldownTracker(), ["Kael", "Camus"])
    )

    assert decision.action is AgentAction.CHALLENGE
    assert decision.target == "kael"
    assert "Other agents: Kael, Camus" in generator.prompts[0]
    assert "Debate Record: No debates yet" in generator.prompts[0]


def test_generator_failure_means_idle(make_generator, seneca_record: BeliefRecord) -> None:
    generator = make_generator(RuntimeError("backend down"))

    decision = asyncio.run(ActionSelector(generator).decide(seneca_record, "", CooldownTracker()))

    assert decision.action is AgentAction.IDLE


# =============================================================================
# Onboarding
# =============================================================================


def test_belief_record_uses_agent_overrides() -> None:
    agent = AgentConfig(agent_id=2, name="Kael", belief_id=2, conversion_threshold=35, seed_conviction=90)

    record = create_belief_record(agent, ConvictionConfig(post_conversion_conviction=45))

    assert record.current_belief == "Existentialism"
    assert record.core_belief_id == 2
    assert record.conviction == 90
    assert record.conversion_threshold == 35
    assert record.post_conversion_conviction == 45
    assert record.conversions == ["Existentialism"]
    assert not record.has_entered


def test_onboarding_enters_stakes_and_announces(belief_store: BeliefStore) -> None:
    ledger = InMemoryLedger({4: 104})
    channel = InMemoryChannel()
    record = create_belief_record(AgentConfig(agent_id=1, name="Seneca", belief_id=4))

    onboarded = asyncio.run(onboard_agent(record, ledger, channel, belief_store, STAKE))

    assert onboarded.has_entered and onboarded.is_staked
    assert onboarded.staked_amount == STAKE
    assert onboarded.staked_belief_id == 4
    assert onboarded.staking_record.total_staked == STAKE
    assert ledger.stakes[1].belief_id == 104
    assert belief_store.load("Seneca") == onboarded

    info = parse_entry_announcement(channel.messages["agora"][0].content)
    assert info is not None and info.name == "Seneca" and info.belief == "Stoicism"


def test_onboarding_resumes_without_restaking(belief_store: BeliefStore) -> None:
    ledger = InMemoryLedger()
    record = create_belief_record(AgentConfig(agent_id=1, name="Seneca", belief_id=4))

    async def run():
        await ledger.enter_pool(1)
        await ledger.stake(4, 1, 5 * STAKE)
        return await onboard_agent(record, ledger, InMemoryChannel(), belief_store, STAKE)

    onboarded = asyncio.run(run())

    assert onboarded.staked_amount == 5 * STAKE
    assert onboarded.staking_record.total_staked == 0


# =============================================================================
# Outcomes
# =============================================================================


def test_loss_makes_a_rival_and_costs_the_stake(seneca_record: BeliefRecord) -> None:
    record = seneca_record.model_copy(
        update={
            "active_debate_id": 4,
            "staking_record": seneca_record.staking_record.model_copy(update={"active_escrows": [4]}),
        }
    )

    updated = record_outcome(record, 4, "loss", STAKE, "Kael", conviction_delta=-12)

    assert updated.debates.losses == 1
    assert updated.staking_record.total_lost == STAKE
    assert updated.staking_record.active_escrows == []
    assert updated.relationship("Kael") == "rival"
    assert updated.active_debate_id is None
    assert updated.debates.history[-1].conviction_delta == -12
    assert debate_record_summary(updated) == "0W-1L-0D"


def test_win_and_stalemate_bookkeeping(seneca_record: BeliefRecord) -> None:
    won = record_outcome(seneca_record, 1, "win", STAKE, "Kael")
    drawn = record_outcome(won, 2, "stalemate", STAKE, "Camus")

    assert won.staking_record.total_won == STAKE
    assert drawn.staking_record.total_lost == int(STAKE * STALEMATE_PENALTY)
    assert drawn.relationship("Camus") == "neutral"
    assert debate_record_summary(drawn) == "1W-0L-1D"
    assert debate_record_summary(seneca_record) == "No debates yet"


def test_recording_twice_is_a_no_op(seneca_record: BeliefRecord) -> None:
    once = record_outcome(seneca_record, 8, "win", STAKE, "Kael")

    assert record_outcome(once, 8, "win", STAKE, "Kael") is once
