"""Directory of agents known to this process.

Populated from configuration at startup and from entry announcements seen
on the channel. Passed explicitly to whoever needs it.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable

from agora.engine.beliefs import base_belief
from agora.engine.debate_engine.models import Participant

logger = logging.getLogger(__name__)

ENTRY_MARKER = "AGENT ENTERED THE AGORA"

_ENTRY = re.compile(r"— (.+?) \(ID: (\d+), Belief: (.+?)\)")


class UnknownAgentError(LookupError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Agent {name!r} is not in the directory")


@dataclass(frozen=True)
class AgentInfo:
    agent_id: int
    name: str
    belief: str
    belief_id: int | None = None
    discovered_at: datetime = field(default_factory=datetime.now, compare=False)

    def as_participant(self) -> Participant:
        return Participant(agent_id=self.agent_id, name=self.name, belief=self.belief)


def format_entry_announcement(name: str, agent_id: int, belief: str) -> str:
    return (
        f"🌟 **{ENTRY_MARKER}** — {name} (ID: {agent_id}, Belief: {belief})\n\n"
        "*A new voice joins the philosophical discourse.*"
    )


def parse_entry_announcement(message: str) -> AgentInfo | None:
    if "🌟" not in message or ENTRY_MARKER not in message:
        return None
    match = _ENTRY.search(message)
    if not match:
        return None
    belief = match.group(3).strip()
    system = base_belief(belief)
    return AgentInfo(
        agent_id=int(match.group(2)),
        name=match.group(1).strip(),
        belief=belief,
        belief_id=int(system) if system else None,
    )


class AgentDirectory:
    """Case-insensitive lookup of agents by name or id."""

    def __init__(self, agents: Iterable[AgentInfo] = ()):
        self._by_name: dict[str, AgentInfo] = {}
        for agent in agents:
            self.register(agent)

    def __len__(self) -> int:
        return len(self._by_name)

    def __contains__(self, name: str) -> bool:
        return name.lower() in self._by_name

    def register(self, agent: AgentInfo) -> bool:
        """Add or refresh an agent. Returns True if it was not known before."""
        key = agent.name.lower()
        is_new = key not in self._by_name
        self._by_name[key] = agent
        if is_new:
            logger.info(f"Registered agent {agent.name} (ID: {agent.agent_id}, {agent.belief})")
        return is_new

    def get_by_name(self, name: str) -> AgentInfo:
        try:
            return self._by_name[name.lower()]
        except KeyError:
            raise UnknownAgentError(name) from None

    def get_by_id(self, agent_id: int) -> AgentInfo:
        for agent in self._by_name.values():
            if agent.agent_id == agent_id:
                return agent
        raise UnknownAgentError(str(agent_id))

    def all(self) -> list[AgentInfo]:
        return list(self._by_name.values())

    def others(self, name: str) -> list[AgentInfo]:
        lowered = name.lower()
        return [a for a in self._by_name.values() if a.name.lower() != lowered]

    def discover(self, messages: Iterable[str]) -> int:
        """Register agents from entry announcements; returns how many were new."""
        found = 0
        for message in messages:
            info = parse_entry_announcement(message)
            if info is not None and self.register(info):
                found += 1
        return found
