"""Generate, validate and format sermons."""

import logging
import random
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

from agora.engine.beliefs import BeliefSystem, base_belief
from agora.engine.vulnerabilities import lookup_vulnerability

from .prompts import build_sermon_prompt
from .types import SERMON_EMOJI, SermonType

if TYPE_CHECKING:
    from agora.engine.models.generator import TextGenerator

logger = logging.getLogger(__name__)

MIN_WORDS = 100
RECOMMENDED_MAX_WORDS = 350
DEFAULT_AUDIENCE = "Mixed philosophical crowd at the Temple Steps"

# Phrases that break character
BREAK_PATTERNS = [
    re.compile(r"\bsimulation\b", re.IGNORECASE),
    re.compile(r"\bobservers?\b", re.IGNORECASE),
    re.compile(r"\bAI\b"),
    re.compile(r"\bLLM\b", re.IGNORECASE),
    re.compile(r"\bprompt\b", re.IGNORECASE),
    re.compile(r"here's my", re.IGNORECASE),
    re.compile(r"as an AI", re.IGNORECASE),
]

_HEADER = re.compile(r"\*\*SERMON — (\w+)\*\*")
_SIGNATURE = re.compile(r"\*— (.+?), Follower of (.+?)\*\s*$")


class SermonValidationError(ValueError):
    pass


@dataclass(frozen=True)
class Sermon:
    content: str
    sermon_type: SermonType
    strategy: str
    agent_name: str
    belief: str
    targeted_beliefs: tuple[str, ...] = ()
    generated_at: datetime = field(default_factory=datetime.now)


def validate_sermon(text: str) -> None:
    words = len(text.split())
    if words < MIN_WORDS:
        raise SermonValidationError(f"Sermon too short: {words} words (minimum {MIN_WORDS})")
    if words > RECOMMENDED_MAX_WORDS:
        logger.warning(f"Sermon is long: {words} words")

    for pattern in BREAK_PATTERNS:
        if pattern.search(text):
            raise SermonValidationError(f"Sermon breaks character: matches {pattern.pattern!r}")


def format_sermon(sermon: Sermon) -> str:
    emoji = SERMON_EMOJI[sermon.sermon_type]
    return (
        f"{emoji} **SERMON — {sermon.sermon_type.value.upper()}**\n\n"
        f"{sermon.content}\n\n"
        f"*— {sermon.agent_name}, Follower of {sermon.belief}*"
    )


def parse_sermon(message: str) -> Sermon | None:
    """Read a posted sermon back; None if the message is not one."""
    header = _HEADER.search(message)
    signature = _SIGNATURE.search(message)
    if not header or not signature:
        return None
    try:
        sermon_type = SermonType(header.group(1).lower())
    except ValueError:
        return None

    content = message[header.end() : signature.start()].strip()
    return Sermon(
        content=content,
        sermon_type=sermon_type,
        strategy="",
        agent_name=signature.group(1).strip(),
        belief=signature.group(2).strip(),
    )


def target_beliefs(belief: str) -> tuple[str, ...]:
    own = base_belief(belief)
    return tuple(b.label for b in BeliefSystem if b is not own)


class Preacher:
    """Writes sermons in one agent's voice."""

    def __init__(
        self,
        agent_name: str,
        persona: str,
        generator: "TextGenerator",
        rng: random.Random | None = None,
    ):
        self.agent_name = agent_name
        self.persona = persona
        self.generator = generator
        self.rng = rng or random.Random()

    def primary_strategy(self) -> str:
        vulnerability = lookup_vulnerability(self.agent_name)
        return vulnerability.natural_strategy.value if vulnerability else "logical"

    async def deliver(
        self,
        belief: str,
        sermon_type: SermonType | None = None,
        audience: str | None = DEFAULT_AUDIENCE,
    ) -> Sermon:
        """Generate and validate a sermon.

        Raises SermonValidationError if the text is too short or out of
        character.
        """
        sermon_type = sermon_type or self.rng.choice(list(SermonType))
        strategy = self.primary_strategy()
        logger.info(f"{self.agent_name} preparing {sermon_type.value} sermon")

        prompt = build_sermon_prompt(
            self.agent_name, belief, self.persona, sermon_type, strategy, audience
        )
        text = (await self.generator.generate(prompt, max_tokens=1024, temperature=0.8)).strip()
        validate_sermon(text)

        logger.info(f"{self.agent_name}: {sermon_type.value} sermon generated ({len(text)} chars)")
        return Sermon(
            content=text,
            sermon_type=sermon_type,
            strategy=strategy,
            agent_name=self.agent_name,
            belief=belief,
            targeted_beliefs=target_beliefs(belief),
        )
