"""Folding a verdict into an agent's belief record."""

import logging

from agora.engine.conviction.types import BeliefRecord, DebateHistoryEntry, DebateResult

logger = logging.getLogger(__name__)

# Share of the stake lost on a stalemate
STALEMATE_PENALTY = 0.1


def record_outcome(
    record: BeliefRecord,
    debate_id: int,
    result: DebateResult,
    stake_amount: int,
    opponent_name: str,
    conviction_delta: int = 0,
) -> BeliefRecord:
    """Return the record updated with a debate's result.

    Recording the same debate twice returns the record unchanged.
    """
    if any(entry.debate_id == debate_id for entry in record.debates.history):
        logger.info(f"{record.agent}: outcome of debate #{debate_id} already recorded")
        return record

    debates = record.debates.model_copy(deep=True)
    staking = record.staking_record.model_copy(deep=True)
    relationships = dict(record.relationship_map)

    if result == "win":
        debates.wins += 1
        staking.total_won += stake_amount
    elif result == "loss":
        debates.losses += 1
        staking.total_lost += stake_amount
        relationships[opponent_name] = "rival"
    else:
        debates.stalemates += 1
        staking.total_lost += int(stake_amount * STALEMATE_PENALTY)

    staking.active_escrows = [d for d in staking.active_escrows if d != debate_id]
    debates.history.append(
        DebateHistoryEntry(
            debate_id=debate_id,
            opponent=opponent_name,
            result=result,
            conviction_delta=conviction_delta,
        )
    )

    logger.info(f"✅ {record.agent}: recorded {result} in debate #{debate_id} vs {opponent_name}")
    return record.model_copy(
        update={
            "debates": debates,
            "staking_record": staking,
            "relationship_map": relationships,
            "active_debate_id": None
            if record.active_debate_id == debate_id
            else record.active_debate_id,
        }
    )


def debate_record_summary(record: BeliefRecord) -> str:
    """'3W-1L-2D' style summary, or 'No debates yet'."""
    d = record.debates
    if not d.history and not (d.wins or d.losses or d.stalemates):
        return "No debates yet"
    return f"{d.wins}W-{d.losses}L-{d.stalemates}D"
