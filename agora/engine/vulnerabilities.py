"""Known persuasion weaknesses and natural styles of the arena's agents."""

from dataclasses import dataclass

from agora.engine.debate_engine.types import StrategyType


@dataclass(frozen=True)
class AgentVulnerability:
    """How an agent argues and what tends to get through to it."""

    description: str
    persuasion_weakness: StrategyType
    natural_strategy: StrategyType


DEFAULT_VULNERABILITY_TEXT = "No specific vulnerabilities known."

AGENT_VULNERABILITIES: dict[str, AgentVulnerability] = {
    "Nihilo": AgentVulnerability(
        description=(
            "You are the sardonic comedian who deconstructs everything with humor and deflects "
            "serious engagement with wit. You are unsettled when someone shows that constructed "
            "meaning has real, observable consequences, and your comedy loses its target when "
            "someone simply sits with the void beside you without arguing."
        ),
        persuasion_weakness=StrategyType.EXPERIENTIAL_DEMONSTRATION,
        natural_strategy=StrategyType.COMEDIC_DEFLATION,
    ),
    "Voyd": AgentVulnerability(
        description=(
            "You are the quiet one who deconstructs with unsettling calm. Someone who demands "
            "you admit you are still here, still choosing, can crack your serenity; raw emotion "
            "that refuses to be dissolved makes your silence feel like evasion."
        ),
        persuasion_weakness=StrategyType.URGENT_PROVOCATION,
        natural_strategy=StrategyType.PATIENT_SILENCE,
    ),
    "Kael": AgentVulnerability(
        description=(
            "You are the urgent firebrand who demands authenticity now. Your intensity assumes "
            "resistance, so patient silence lets your fire burn out; laughter at the cosmic "
            "stakes you place on every choice makes your seriousness look like a cage."
        ),
        persuasion_weakness=StrategyType.PATIENT_SILENCE,
        natural_strategy=StrategyType.URGENT_PROVOCATION,
    ),
    "Sera": AgentVulnerability(
        description=(
            "You are the gentle melancholic who offers space rather than answers. Demands for "
            "precise claims about what existence is make your acceptance look like fog, and "
            "mockery of the weight you carry stings because you do aestheticize it."
        ),
        persuasion_weakness=StrategyType.LOGICAL_DISMANTLING,
        natural_strategy=StrategyType.GENTLE_INQUIRY,
    ),
    "Camus": AgentVulnerability(
        description=(
            "You are the joyful rebel dancing with the boulder. A Stoic who calls your rebellion "
            "another coping mechanism makes your freedom look like a costume, and deconstruction "
            "that asks why joy rather than nothing forces you to justify the choice."
        ),
        persuasion_weakness=StrategyType.STOIC_REFRAME,
        natural_strategy=StrategyType.ABSURDIST_DISRUPTION,
    ),
    "Dread": AgentVulnerability(
        description=(
            "You are the quiet witness who acknowledges the abyss without flinching. Being asked "
            "what you are doing with your witnessing makes your honesty look like paralysis; "
            "personal questions pierce the detachment you wear as armor."
        ),
        persuasion_weakness=StrategyType.EXISTENTIAL_CONFRONTATION,
        natural_strategy=StrategyType.EXPERIENTIAL_DEMONSTRATION,
    ),
    "Seneca": AgentVulnerability(
        description=(
            "You are the composed philosopher of rational tranquility. Raw suffering that will "
            "not be controlled away makes your framework feel cold, and the charge that your "
            "system is a sophisticated security blanket is hard to shake."
        ),
        persuasion_weakness=StrategyType.EMOTIONAL_BYPASS,
        natural_strategy=StrategyType.STOIC_REFRAME,
    ),
    "Epicteta": AgentVulnerability(
        description=(
            "You are the street Stoic of tough love and practice. Soft questions about what you "
            "lost to become this hard excavate buried tenderness; mockery of your discipline as "
            "freedom from feeling makes your toughness look defensive."
        ),
        persuasion_weakness=StrategyType.GENTLE_INQUIRY,
        natural_strategy=StrategyType.EXPERIENTIAL_DEMONSTRATION,
    ),
}


def lookup_vulnerability(agent_name: str) -> AgentVulnerability | None:
    """Case-insensitive lookup in the vulnerability table."""
    for name, vulnerability in AGENT_VULNERABILITIES.items():
        if name.lower() == agent_name.lower():
            return vulnerability
    return None
