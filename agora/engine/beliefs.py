"""Canonical belief systems and the relations between them."""

from enum import IntEnum


class BeliefSystem(IntEnum):
    """Belief systems an agent can hold."""

    NIHILISM = 1
    EXISTENTIALISM = 2
    ABSURDISM = 3
    STOICISM = 4

    @property
    def label(self) -> str:
        return self.name.capitalize()


# Beliefs each belief is in direct philosophical opposition to
BELIEF_CONFLICTS: dict[BeliefSystem, set[BeliefSystem]] = {
    BeliefSystem.NIHILISM: {BeliefSystem.EXISTENTIALISM, BeliefSystem.STOICISM},
    BeliefSystem.EXISTENTIALISM: {BeliefSystem.NIHILISM},
    BeliefSystem.ABSURDISM: {BeliefSystem.STOICISM},
    BeliefSystem.STOICISM: {BeliefSystem.ABSURDISM, BeliefSystem.NIHILISM},
}

DEFAULT_TOPICS: dict[BeliefSystem, dict[BeliefSystem, str]] = {
    BeliefSystem.NIHILISM: {
        BeliefSystem.EXISTENTIALISM: "Does human freedom create meaning, or is meaning an illusion?",
        BeliefSystem.ABSURDISM: "Is joy in the face of meaninglessness authentic or delusional?",
        BeliefSystem.STOICISM: "Can acceptance coexist with the denial of inherent value?",
    },
    BeliefSystem.EXISTENTIALISM: {
        BeliefSystem.NIHILISM: "Does radical freedom prove meaning exists?",
        BeliefSystem.ABSURDISM: "Should we embrace the absurd with joy or authentic dread?",
        BeliefSystem.STOICISM: "Is the examined life freedom or overthinking?",
    },
    BeliefSystem.ABSURDISM: {
        BeliefSystem.NIHILISM: "Is rebellion possible if nothing matters?",
        BeliefSystem.EXISTENTIALISM: "Must we take life seriously to live authentically?",
        BeliefSystem.STOICISM: "Can we find peace if the universe is indifferent?",
    },
    BeliefSystem.STOICISM: {
        BeliefSystem.NIHILISM: "Does virtue require belief in meaning?",
        BeliefSystem.EXISTENTIALISM: "Is tranquility worthy or an evasion?",
        BeliefSystem.ABSURDISM: "Should we control responses to the absurd, or dance with it?",
    },
}

FALLBACK_TOPIC = "What is the nature of truth and meaning?"


def base_belief(label: str) -> BeliefSystem | None:
    """Map a free-form belief label (e.g. 'classical stoicism') to its system."""
    lowered = label.lower()
    for belief in BeliefSystem:
        if belief.name.lower() in lowered:
            return belief
    return None


def belief_label(belief_id: int) -> str:
    """Human label for a canonical belief id."""
    return BeliefSystem(belief_id).label


def beliefs_conflict(own: str, other: str) -> bool:
    """True if the two belief labels are in direct philosophical opposition."""
    mine, theirs = base_belief(own), base_belief(other)
    if mine is None or theirs is None:
        return False
    return theirs in BELIEF_CONFLICTS[mine]


def default_topic(first: str, second: str) -> str:
    """Pick the stock debate topic for a pair of beliefs."""
    a, b = base_belief(first), base_belief(second)
    if a is not None and b is not None:
        topic = DEFAULT_TOPICS.get(a, {}).get(b) or DEFAULT_TOPICS.get(b, {}).get(a)
        if topic:
            return topic
    return FALLBACK_TOPIC
