"""Bringing a new agent into the Agora: belief record, pool entry and stake."""

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from agora.engine.beliefs import BeliefSystem
from agora.engine.config.settings import AgentConfig, ConvictionConfig
from agora.engine.conviction.types import BeliefRecord
from agora.engine.registry import format_entry_announcement

if TYPE_CHECKING:
    from agora.engine.collaborators import Ledger, MessageChannel
    from agora.engine.storage import BeliefStore

logger = logging.getLogger(__name__)


def create_belief_record(agent: AgentConfig, conviction: ConvictionConfig | None = None) -> BeliefRecord:
    """Seed the belief record for a configured agent."""
    conviction = conviction or ConvictionConfig()
    belief = BeliefSystem(agent.belief_id)
    return BeliefRecord(
        agent=agent.name,
        agent_id=agent.agent_id,
        core_belief_id=int(belief),
        current_belief=belief.label,
        conviction=agent.seed_conviction,
        conversion_threshold=(
            agent.conversion_threshold
            if agent.conversion_threshold is not None
            else conviction.conversion_threshold
        ),
        post_conversion_conviction=(
            agent.post_conversion_conviction
            if agent.post_conversion_conviction is not None
            else conviction.post_conversion_conviction
        ),
        conversions=[belief.label],
    )


async def onboard_agent(
    record: BeliefRecord,
    ledger: "Ledger",
    channel: "MessageChannel",
    store: "BeliefStore",
    stake_amount: int,
    channel_id: str = "agora",
) -> BeliefRecord:
    """Enter the pool, stake on the current belief and announce the arrival.

    Steps already done on the ledger are skipped, so a half-finished
    onboarding resumes where it stopped.
    """
    logger.info(f"Onboarding {record.agent} (ID: {record.agent_id})")

    if not await ledger.has_entered(record.agent_id):
        tx = await ledger.enter_pool(record.agent_id)
        logger.info(f"{record.agent} entered the Agora: {tx}")
    else:
        logger.info(f"{record.agent} already entered, skipping entry")

    update: dict = {"has_entered": True, "entry_time": record.entry_time or datetime.now()}

    existing = await ledger.get_stake(record.agent_id)
    if existing is None or existing.amount <= 0:
        tx = await ledger.stake(record.core_belief_id, record.agent_id, stake_amount)
        logger.info(f"{record.agent} staked {stake_amount} on {record.current_belief}: {tx}")
        staked = stake_amount
        update["staking_record"] = record.staking_record.model_copy(
            update={"total_staked": record.staking_record.total_staked + stake_amount}
        )
    else:
        staked = existing.amount

    update.update(
        {
            "is_staked": True,
            "staked_amount": staked,
            "staked_belief_id": record.core_belief_id,
        }
    )
    onboarded = record.model_copy(update=update)
    store.save(onboarded)

    await channel.post(
        channel_id,
        format_entry_announcement(record.agent, record.agent_id, record.current_belief),
        author=record.agent,
    )
    logger.info(f"🎉 Onboarding complete for {record.agent}")
    return onboarded
