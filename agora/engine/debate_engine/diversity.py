"""Rejects arguments that repeat what an agent already said."""

import re
from dataclasses import dataclass

STOP_WORDS = frozenset(
    {"the", "a", "an", "is", "are", "to", "of", "in", "for", "and", "but", "or"}
)

MIN_SIGNIFICANT_LENGTH = 4


@dataclass(frozen=True)
class DiversityCheck:
    is_diverse: bool
    similarity_score: int = 0


def significant_words(text: str) -> set[str]:
    """Lowercased words longer than 3 characters, stop-words removed."""
    cleaned = re.sub(r"[^a-z\s]", "", text.lower())
    return {
        word
        for word in cleaned.split()
        if len(word) >= MIN_SIGNIFICANT_LENGTH and word not in STOP_WORDS
    }


def word_overlap(first: str, second: str) -> float:
    """Shared significant words divided by the smaller word set."""
    a, b = significant_words(first), significant_words(second)
    if not a or not b:
        return 0.0
    return len(a & b) / min(len(a), len(b))


class DiversityChecker:
    """Compares a candidate argument against an agent's earlier ones."""

    def __init__(self, threshold: float = 0.5):
        self.threshold = threshold

    def check(self, candidate: str, previous: list[str]) -> DiversityCheck:
        for earlier in previous:
            overlap = word_overlap(candidate, earlier)
            if overlap > self.threshold:
                return DiversityCheck(is_diverse=False, similarity_score=round(overlap * 100))
        return DiversityCheck(is_diverse=True)

    @staticmethod
    def instruction(previous: list[str]) -> str:
        if not previous:
            return ""
        listed = "\n".join(f"- {arg[:80]}..." for arg in previous)
        return (
            "Your argument was too similar to previous ones. Make a DIFFERENT point.\n"
            f"Previous:\n{listed}"
        )
