"""Persuasion strategy selection for debate turns."""

import logging
import random
import re
from typing import TYPE_CHECKING

from agora.engine.vulnerabilities import lookup_vulnerability

from .types import STRATEGY_DESCRIPTIONS, DebatePhase, StrategyType

if TYPE_CHECKING:
    from agora.engine.models.generator import TextGenerator

logger = logging.getLogger(__name__)

WEAKNESS_BONUS = 1.5
NATURAL_BONUS = 1.2
REPETITION_DECAY = 0.6
RECENT_WINDOW = 3
DELEGATION_CHOICES = 5


class StrategySelector:
    """Weights strategies by known vulnerabilities and picks one per turn."""

    def __init__(
        self,
        generator: "TextGenerator | None" = None,
        rng: random.Random | None = None,
        delegation_probability: float = 0.3,
    ):
        self.generator = generator
        self.rng = rng or random.Random()
        self.delegation_probability = delegation_probability

    def compute_weights(
        self,
        agent_name: str,
        opponent_name: str,
        previous_strategies: list[StrategyType],
    ) -> dict[StrategyType, float]:
        own = lookup_vulnerability(agent_name)
        opponent = lookup_vulnerability(opponent_name)
        natural = own.natural_strategy if own else None
        weakness = opponent.persuasion_weakness if opponent else None
        recent = previous_strategies[-RECENT_WINDOW:]

        weights: dict[StrategyType, float] = {}
        for strategy in StrategyType:
            weight = 1.0
            if strategy is weakness:
                weight *= WEAKNESS_BONUS
            if strategy is natural:
                weight *= NATURAL_BONUS
            weight *= REPETITION_DECAY ** recent.count(strategy)
            weights[strategy] = weight
        return weights

    @staticmethod
    def top_strategies(
        weights: dict[StrategyType, float], count: int = DELEGATION_CHOICES
    ) -> list[StrategyType]:
        # sorted() is stable, so ties keep enum order
        return [s for s, _ in sorted(weights.items(), key=lambda item: -item[1])][:count]

    def sample(self, weights: dict[StrategyType, float], fallback: StrategyType) -> StrategyType:
        """Pick a strategy with probability proportional to its weight."""
        total = sum(weights.values())
        threshold = self.rng.random() * total
        for strategy, weight in weights.items():
            threshold -= weight
            if threshold <= 0:
                return strategy
        return fallback

    async def select(
        self,
        agent_name: str,
        opponent_name: str,
        previous_strategies: list[StrategyType],
        phase: DebatePhase,
    ) -> StrategyType:
        weights = self.compute_weights(agent_name, opponent_name, previous_strategies)
        own = lookup_vulnerability(agent_name)
        fallback = own.natural_strategy if own else StrategyType.LOGICAL_DISMANTLING

        if self.generator is None or self.rng.random() >= self.delegation_probability:
            return self.sample(weights, fallback)

        top = self.top_strategies(weights)
        return await self._delegate(agent_name, opponent_name, phase, top)

    async def _delegate(
        self,
        agent_name: str,
        opponent_name: str,
        phase: DebatePhase,
        choices: list[StrategyType],
    ) -> StrategyType:
        options = "\n".join(
            f"- {s.value}: {STRATEGY_DESCRIPTIONS[s]}" for s in choices
        )
        prompt = (
            f"You are {agent_name} debating {opponent_name}.\n"
            f"Phase: {phase.value}\n"
            f"Choose strategy from:\n{options}\n"
            "Respond with ONLY the strategy name."
        )
        try:
            reply = await self.generator.generate(prompt, max_tokens=50, temperature=0.3)
        except Exception as e:
            logger.warning(f"Strategy delegation failed for {agent_name}: {e}")
            return choices[0]

        cleaned = re.sub(r"[^a-z_]", "", reply.strip().lower())
        for strategy in choices:
            if strategy.value == cleaned:
                return strategy

        logger.debug(f"Delegated strategy '{cleaned}' not offered, using {choices[0].value}")
        return choices[0]
