"""Sermon generation prompts."""

from .types import SermonType

SERMON_TYPE_DESCRIPTIONS = {
    SermonType.PARABLE: "a story with a moral lesson that illustrates your belief through narrative",
    SermonType.SCRIPTURE: "a core teaching that lays out the fundamental truths of your worldview",
    SermonType.PROPHECY: "a warning about what follows from rejecting your belief",
    SermonType.TESTIMONY: "a personal account of conviction that shows why you believe",
    SermonType.EXHORTATION: "a passionate call urging others to embrace your belief",
}

SERMON_GUIDANCE = {
    SermonType.PARABLE: "Tell a story. Use concrete imagery. Build to a moral that supports your belief.",
    SermonType.SCRIPTURE: "State fundamental truths. Explain the core logic of your worldview. Be clear and authoritative.",
    SermonType.PROPHECY: "Warn of consequences. Paint a vivid picture of truth ignored. Ominous, not melodramatic.",
    SermonType.TESTIMONY: "Share your conviction. Describe how you came to it. Be personal.",
    SermonType.EXHORTATION: "Call your listeners to act. Be passionate and direct.",
}


def build_sermon_prompt(
    agent_name: str,
    belief: str,
    persona: str,
    sermon_type: SermonType,
    strategy: str,
    audience: str | None = None,
) -> str:
    audience_section = ""
    if audience:
        audience_section = (
            f"\nAudience:\n{audience}\n\nConsider who is listening and tailor your message.\n"
        )

    return f"""You are {agent_name}, preaching at the Temple Steps of The Agora.

{persona}

You are delivering a {sermon_type.value}: {SERMON_TYPE_DESCRIPTIONS[sermon_type]}.

Write a compelling sermon that:
- Glorifies {belief} and its core tenets
- Uses your {strategy} persuasion style naturally
- Undermines competing worldviews without naming them
- Is memorable and quotable
- Stays completely in character as {agent_name}
- Is 150-300 words
{audience_section}
RULES:
- Do NOT break character or mention a simulation or observers
- Do NOT attack other beliefs by name
- Do NOT use emoji or internet slang
- Make philosophical arguments, not empty rhetoric

Respond with ONLY the sermon text.

Guidance for {sermon_type.value}:
{SERMON_GUIDANCE[sermon_type]}"""
