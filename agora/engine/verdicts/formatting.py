"""Verdict announcement text, in the shape ``parse_verdict`` reads back."""

from enum import Enum

from agora.engine.debate_engine.prompts import format_stake


class VerdictKind(Enum):
    WINNER_CHALLENGER = "winner_agent_a"
    WINNER_CHALLENGED = "winner_agent_b"
    STALEMATE = "stalemate"


def _short_tx(tx_hash: str) -> str:
    if len(tx_hash) <= 20:
        return tx_hash
    return f"{tx_hash[:10]}...{tx_hash[-8:]}"


def format_verdict_announcement(
    debate_id: int,
    verdict: VerdictKind,
    challenger_name: str,
    challenged_name: str,
    stake_amount: int,
    tx_hash: str = "",
) -> str:
    total_pot = format_stake(stake_amount * 2)

    if verdict is VerdictKind.STALEMATE:
        outcome = f"⚖️ **STALEMATE** — {challenger_name} and {challenged_name} fought to a draw"
        settled = f"💰 **Escrow Settled:** {total_pot} MON returned (minus penalty)"
    else:
        if verdict is VerdictKind.WINNER_CHALLENGER:
            winner, loser = challenger_name, challenged_name
        else:
            winner, loser = challenged_name, challenger_name
        outcome = f"🏆 **{winner}** prevails over {loser}"
        settled = f"💰 **Escrow Settled:** {total_pot} MON distributed"

    lines = [
        f"⚖️ **VERDICT ANNOUNCED** — Debate #{debate_id}",
        "",
        "The Chronicler has rendered judgment:",
        "",
        outcome,
        "",
        settled,
        "📊 **Reputation Updated**",
        f"🔗 **Debate ID:** {debate_id}",
    ]
    if tx_hash:
        lines.append(f"🧾 **TX:** {_short_tx(tx_hash)}")
    lines += ["", "*The Agora has spoken.*"]
    return "\n".join(lines)
