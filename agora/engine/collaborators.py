"""Interfaces to the ledger and message channel, plus in-memory stand-ins.

The in-memory implementations back local arena runs and tests; real
deployments plug in adapters that satisfy the same protocols.
"""

import itertools
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChannelMessage:
    author: str
    content: str
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class StakeInfo:
    belief_id: int
    amount: int


class Ledger(Protocol):
    """Value-bearing operations. Settlement is entirely the ledger's concern."""

    async def enter_pool(self, agent_id: int) -> str: ...

    async def stake(self, belief_id: int, agent_id: int, amount: int) -> str: ...

    async def create_escrow(self, challenger_id: int, challenged_id: int, amount: int) -> int: ...

    async def match_escrow(self, debate_id: int, amount: int) -> str: ...

    async def decline_escrow(self, debate_id: int) -> str: ...

    async def submit_verdict(self, debate_id: int, verdict: str) -> str: ...

    async def migrate_stake(self, from_belief_id: int, to_belief_id: int, agent_id: int) -> str: ...

    async def has_entered(self, agent_id: int) -> bool: ...

    async def get_stake(self, agent_id: int) -> StakeInfo | None: ...


class MessageChannel(Protocol):
    async def post(self, channel_id: str, text: str, author: str = "") -> None: ...

    async def get_recent_messages(
        self, channel_id: str, since: datetime | None = None
    ) -> list[ChannelMessage]: ...


@dataclass
class Escrow:
    debate_id: int
    challenger_id: int
    challenged_id: int
    amount: int
    matched: bool = False
    declined: bool = False
    verdict: str | None = None


class InMemoryLedger:
    """Ledger kept in process memory.

    ``belief_ids`` translates canonical belief ids into the numbering a
    particular deployment uses on its ledger.
    """

    def __init__(self, belief_ids: dict[int, int] | None = None):
        self.belief_ids = belief_ids or {}
        self.entered: set[int] = set()
        self.stakes: dict[int, StakeInfo] = {}
        self.escrows: dict[int, Escrow] = {}
        self.migrations: list[tuple[int, int, int]] = []
        self._debate_ids = itertools.count(1)
        self._tx_ids = itertools.count(1)

    def _tx(self, action: str) -> str:
        tx = f"MOCK_{action.upper()}_TX_{next(self._tx_ids)}"
        logger.debug(f"Ledger: {tx}")
        return tx

    def _ledger_belief(self, belief_id: int) -> int:
        return self.belief_ids.get(belief_id, belief_id)

    async def enter_pool(self, agent_id: int) -> str:
        self.entered.add(agent_id)
        return self._tx("enter")

    async def stake(self, belief_id: int, agent_id: int, amount: int) -> str:
        if agent_id not in self.entered:
            raise RuntimeError(f"Agent {agent_id} has not entered the pool")
        self.stakes[agent_id] = StakeInfo(self._ledger_belief(belief_id), amount)
        return self._tx("stake")

    async def create_escrow(self, challenger_id: int, challenged_id: int, amount: int) -> int:
        debate_id = next(self._debate_ids)
        self.escrows[debate_id] = Escrow(debate_id, challenger_id, challenged_id, amount)
        logger.info(f"Ledger: escrow for debate #{debate_id} created ({amount})")
        return debate_id

    def _escrow(self, debate_id: int) -> Escrow:
        if debate_id not in self.escrows:
            raise RuntimeError(f"No escrow for debate #{debate_id}")
        return self.escrows[debate_id]

    async def match_escrow(self, debate_id: int, amount: int) -> str:
        escrow = self._escrow(debate_id)
        if amount != escrow.amount:
            raise RuntimeError(f"Stake mismatch for debate #{debate_id}: {amount} != {escrow.amount}")
        escrow.matched = True
        return self._tx("match")

    async def decline_escrow(self, debate_id: int) -> str:
        self._escrow(debate_id).declined = True
        return self._tx("decline")

    async def submit_verdict(self, debate_id: int, verdict: str) -> str:
        self._escrow(debate_id).verdict = verdict
        return self._tx("verdict")

    async def migrate_stake(self, from_belief_id: int, to_belief_id: int, agent_id: int) -> str:
        stake = self.stakes.get(agent_id)
        if stake is None:
            raise RuntimeError(f"Agent {agent_id} has no stake to migrate")
        self.stakes[agent_id] = StakeInfo(self._ledger_belief(to_belief_id), stake.amount)
        self.migrations.append((from_belief_id, to_belief_id, agent_id))
        return self._tx("migrate")

    async def has_entered(self, agent_id: int) -> bool:
        return agent_id in self.entered

    async def get_stake(self, agent_id: int) -> StakeInfo | None:
        return self.stakes.get(agent_id)


class InMemoryChannel:
    """Message channel kept in process memory, shared by all local agents."""

    def __init__(self):
        self.messages: dict[str, list[ChannelMessage]] = {}

    async def post(self, channel_id: str, text: str, author: str = "") -> None:
        self.messages.setdefault(channel_id, []).append(ChannelMessage(author=author, content=text))
        logger.debug(f"#{channel_id} <{author}> {text[:80]}")

    async def get_recent_messages(
        self, channel_id: str, since: datetime | None = None
    ) -> list[ChannelMessage]:
        messages = self.messages.get(channel_id, [])
        if since is None:
            return list(messages)
        return [m for m in messages if m.timestamp > since]
