"""Pytest configuration and shared fixtures.

This file is automatically loaded by pytest and provides:
- A scripted stand-in for the text generation backend
- Stores, ledger and channel wired to a temporary workspace
- Belief records and debate participants for two philosopher agents

Learning notes:
- Fixtures that return a class or a factory let a test build as many
  instances as it needs without importing from conftest
- Every store fixture writes under tmp_path, so tests never share state
"""

from __future__ import annotations

import itertools
from collections.abc import Callable
from pathlib import Path

import pytest

from agora.engine.collaborators import InMemoryChannel, InMemoryLedger
from agora.engine.config.settings import (
    AgentConfig,
    AppConfig,
    CooldownConfig,
    DebateRulesConfig,
    ModelConfig,
)
from agora.engine.conviction.types import BeliefRecord
from agora.engine.debate_engine.models import Participant
from agora.engine.storage import BeliefStore, SessionStore


# =============================================================================
# FAKE COLLABORATORS
# =============================================================================

# Prompt markers used to route scripted replies
ACTION_PROMPT = "AVAILABLE ACTIONS"
ARGUMENT_PROMPT = "Write your argument:"
EVALUATION_PROMPT = "shifted your philosophical conviction"
SERMON_PROMPT = "preaching at the Temple Steps"
JUDGE_PROMPT = "impartial judge"


def _letters(number: int) -> str:
    """Spell a number in base 26 with lowercase letters (at least three)."""
    letters = ""
    while True:
        number, digit = divmod(number, 26)
        letters = chr(ord("a") + digit) + letters
        if number == 0:
            break
    return letters.rjust(3, "a")


def distinct_argument(seed: int) -> str:
    """An argument sharing no significant word with any other seed's argument."""
    words = [f"ponder{_letters(seed * 40 + i)}" for i in range(20)]
    return " ".join(words) + "."


class ArgumentWriter:
    """Callable route that writes a fresh, distinct argument each call."""

    def __init__(self, start: int = 0):
        self._seeds = itertools.count(start)
        self.written: list[str] = []

    def __call__(self, prompt: str) -> str:
        text = distinct_argument(next(self._seeds))
        self.written.append(text)
        return text


class FakeGenerator:
    """Scripted TextGenerator.

    Queued responses are consumed first, in order; an Exception in the
    queue is raised instead of returned. Once the queue is empty, the
    first route whose marker appears in the prompt answers it.
    """

    def __init__(
        self,
        *responses: str | Exception,
        routes: dict[str, str | Callable[[str], str]] | None = None,
    ):
        self._responses = list(responses)
        self.routes = dict(routes or {})
        self.prompts: list[str] = []
        self.calls: list[dict] = []

    async def generate(self, prompt: str, *, max_tokens: int = 512, temperature: float = 0.7) -> str:
        self.prompts.append(prompt)
        self.calls.append({"max_tokens": max_tokens, "temperature": temperature})

        if self._responses:
            item = self._responses.pop(0)
            if isinstance(item, Exception):
                raise item
            return item

        for marker, reply in self.routes.items():
            if marker in prompt:
                return reply(prompt) if callable(reply) else reply

        raise AssertionError(f"No scripted reply for prompt: {prompt[:120]}")


def evaluation_json(delta: float, effectiveness: float = 60) -> str:
    return (
        '{"delta": %s, "reasoning": "The point landed.", '
        '"vulnerabilityNotes": "Appeal to lived experience.", '
        '"strategyEffectiveness": %s}' % (delta, effectiveness)
    )


SERMON_TEXT = " ".join(["Virtue is the only good and the sage endures every storm."] * 12)


# =============================================================================
# SHARED FIXTURES - Available to all test modules
# =============================================================================


@pytest.fixture
def make_generator() -> type[FakeGenerator]:
    """Provide the FakeGenerator class.

    Learning notes:
    - Returning the class lets each test script its own replies
    """
    return FakeGenerator


@pytest.fixture
def argument_writer() -> ArgumentWriter:
    return ArgumentWriter()


@pytest.fixture
def argument_text() -> Callable[[int], str]:
    return distinct_argument


@pytest.fixture
def evaluation_reply() -> Callable[..., str]:
    return evaluation_json


@pytest.fixture
def sermon_text() -> str:
    return SERMON_TEXT


@pytest.fixture
def belief_store(tmp_path: Path) -> BeliefStore:
    return BeliefStore(tmp_path / "agents")


@pytest.fixture
def session_store(tmp_path: Path) -> SessionStore:
    return SessionStore(tmp_path / "debates")


@pytest.fixture
def ledger() -> InMemoryLedger:
    return InMemoryLedger()


@pytest.fixture
def channel() -> InMemoryChannel:
    return InMemoryChannel()


@pytest.fixture
def seneca() -> Participant:
    return Participant(agent_id=1, name="Seneca", belief="Stoicism")


@pytest.fixture
def kael() -> Participant:
    return Participant(agent_id=2, name="Kael", belief="Existentialism")


@pytest.fixture
def seneca_record() -> BeliefRecord:
    """Seneca, onboarded and staked on Stoicism."""
    return BeliefRecord(
        agent="Seneca",
        agent_id=1,
        core_belief_id=4,
        current_belief="Stoicism",
        conviction=85,
        conversions=["Stoicism"],
        has_entered=True,
        is_staked=True,
        staked_amount=10**17,
        staked_belief_id=4,
    )


@pytest.fixture
def kael_record() -> BeliefRecord:
    """Kael, onboarded and staked on Existentialism."""
    return BeliefRecord(
        agent="Kael",
        agent_id=2,
        core_belief_id=2,
        current_belief="Existentialism",
        conviction=85,
        conversion_threshold=35,
        conversions=["Existentialism"],
        has_entered=True,
        is_staked=True,
        staked_amount=10**17,
        staked_belief_id=2,
    )


@pytest.fixture
def app_config(tmp_path: Path) -> AppConfig:
    """Two-agent arena with cooldowns off and strategy choice kept local."""
    config = AppConfig(
        models={"default": ModelConfig(name="test-model", provider="ollama")},
        agents=[
            AgentConfig(
                agent_id=1,
                name="Seneca",
                belief_id=4,
                persona="# Seneca\n\n## Core Tenets\nVirtue is the only good.",
            ),
            AgentConfig(
                agent_id=2,
                name="Kael",
                belief_id=2,
                persona="# Kael\n\n## Core Tenets\nExistence precedes essence.",
                conversion_threshold=35,
            ),
        ],
        debate=DebateRulesConfig(delegation_probability=0.0),
        cooldowns=CooldownConfig(preach=0, challenge=0, debate_turn=0),
    )
    config.system.workspace_dir = str(tmp_path)
    return config


# =============================================================================
# PYTEST CONFIGURATION HOOKS
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
