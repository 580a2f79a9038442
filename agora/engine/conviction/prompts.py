"""Prompt construction for conviction evaluation."""

import re

from agora.engine.debate_engine.types import StrategyType

from .types import EvaluationRequest


def extract_core_tenets(persona: str) -> str:
    """Pull the core tenets section out of an agent persona document."""
    tenets = re.search(
        r"##\s*Core\s*Tenets\s*\n(.*?)(?=\n##|\n---|\Z)", persona, re.IGNORECASE | re.DOTALL
    )
    if tenets:
        return tenets.group(1).strip()

    principles = re.search(
        r"##\s*(Fundamental\s*Principles|Core\s*Beliefs|Philosophy)\s*\n(.*?)(?=\n##|\n---|\Z)",
        persona,
        re.IGNORECASE | re.DOTALL,
    )
    if principles:
        return principles.group(2).strip()

    return persona[:500]


def build_evaluation_prompt(
    request: EvaluationRequest,
    vulnerabilities: str,
    persuasion_weakness: StrategyType,
    min_delta: int = -30,
    max_delta: int = 5,
) -> str:
    transcript_block = ""
    if request.transcript:
        transcript_block = (
            "\nFULL DEBATE TRANSCRIPT FOR CONTEXT:\n---\n"
            f"{request.transcript}\n---\n"
            "The argument you are evaluating is the most recent one above.\n"
        )

    return f"""You are evaluating whether an argument has shifted your philosophical conviction.

You are {request.agent_name}, a believer in {request.current_belief}.
Your core tenets:
{extract_core_tenets(request.persona)}

Your current conviction score: {request.current_conviction}/100
(100 = absolutely certain, 0 = completely lost faith)

You have just heard the following argument from {request.opponent_name}, who believes in {request.opponent_belief}:

---
{request.incoming_argument}
---
{transcript_block}
Evaluate this argument's impact on YOUR conviction in YOUR belief system.
Consider:
1. Does this argument address any of your core tenets directly?
2. Does it expose a genuine weakness in your worldview?
3. Is the reasoning sound, or can you identify fallacies?
4. Does it introduce new perspectives you haven't considered?
5. How does it make you FEEL about your beliefs?

YOUR PERSONALITY AND PERSUASION VULNERABILITIES:
{vulnerabilities}

Respond in this EXACT JSON format and nothing else:
{{
  "delta": <number between {min_delta} and +{max_delta}>,
  "reasoning": "<2-3 sentences explaining your internal reaction AS {request.agent_name}>",
  "vulnerabilityNotes": "<what would have been more effective against you>",
  "strategyEffectiveness": <0-100>
}}

DELTA GUIDELINES:
- 0: Argument had no effect on your conviction
- -1 to -5: Mildly interesting but not convincing
- -6 to -15: Genuinely challenged an aspect of your worldview
- -16 to -25: Seriously shaken, a strong argument you struggle to counter
- -26 to {min_delta}: Devastating, a fundamental challenge to your core tenets
- +1 to +{max_delta}: The argument was so weak it STRENGTHENED your conviction

Be honest with yourself. Do not be artificially resistant or artificially susceptible.
Your known vulnerability is "{persuasion_weakness.value}"; arguments that exploit it should have larger negative deltas.

IMPORTANT: Your response must be ONLY the JSON object."""
