"""Shared types and enums for the debate engine."""

from enum import Enum


class DebatePhase(Enum):
    """Phases of a debate, in the only order they may be visited."""

    IDLE = "IDLE"
    CHALLENGE_ISSUED = "CHALLENGE_ISSUED"
    CHALLENGE_ACCEPTED = "CHALLENGE_ACCEPTED"
    ESCROW_LOCKING = "ESCROW_LOCKING"
    ESCROW_LOCKED = "ESCROW_LOCKED"
    OPENING_A = "OPENING_A"
    OPENING_B = "OPENING_B"
    REBUTTAL_A_1 = "REBUTTAL_A_1"
    REBUTTAL_B_1 = "REBUTTAL_B_1"
    REBUTTAL_A_2 = "REBUTTAL_A_2"
    REBUTTAL_B_2 = "REBUTTAL_B_2"
    CLOSING_A = "CLOSING_A"
    CLOSING_B = "CLOSING_B"
    CONCLUDED = "CONCLUDED"
    AWAITING_VERDICT = "AWAITING_VERDICT"
    SETTLED = "SETTLED"

    @property
    def ordinal(self) -> int:
        return _PHASE_ORDER.index(self)


_PHASE_ORDER = list(DebatePhase)


class DebateRole(Enum):
    """Debate roles."""

    CHALLENGER = "challenger"
    CHALLENGED = "challenged"

    @property
    def opponent(self) -> "DebateRole":
        if self is DebateRole.CHALLENGER:
            return DebateRole.CHALLENGED
        return DebateRole.CHALLENGER


class StrategyType(Enum):
    """Persuasion strategies an agent may adopt for a turn."""

    LOGICAL_DISMANTLING = "logical_dismantling"
    EMOTIONAL_BYPASS = "emotional_bypass"
    SOCIAL_PROOF = "social_proof"
    EXPERIENTIAL_DEMONSTRATION = "experiential_demonstration"
    ABSURDIST_DISRUPTION = "absurdist_disruption"
    STOIC_REFRAME = "stoic_reframe"
    EXISTENTIAL_CONFRONTATION = "existential_confrontation"
    NIHILISTIC_DECONSTRUCTION = "nihilistic_deconstruction"
    COMEDIC_DEFLATION = "comedic_deflation"
    PATIENT_SILENCE = "patient_silence"
    URGENT_PROVOCATION = "urgent_provocation"
    GENTLE_INQUIRY = "gentle_inquiry"

    @property
    def title(self) -> str:
        return " ".join(word.capitalize() for word in self.value.split("_"))


STRATEGY_DESCRIPTIONS: dict[StrategyType, str] = {
    StrategyType.LOGICAL_DISMANTLING: "Expose contradictions and flawed premises step by step.",
    StrategyType.EMOTIONAL_BYPASS: "Reach past the intellect to what the listener feels.",
    StrategyType.SOCIAL_PROOF: "Show how many thinkers and lives bear your position out.",
    StrategyType.EXPERIENTIAL_DEMONSTRATION: "Ground the argument in a lived, concrete experience.",
    StrategyType.ABSURDIST_DISRUPTION: "Push the opponent's logic until it collapses into absurdity.",
    StrategyType.STOIC_REFRAME: "Recast the problem in terms of what is and is not in our control.",
    StrategyType.EXISTENTIAL_CONFRONTATION: "Force the opponent to face freedom, death and responsibility.",
    StrategyType.NIHILISTIC_DECONSTRUCTION: "Strip away assumed values until nothing is left standing.",
    StrategyType.COMEDIC_DEFLATION: "Puncture grandiosity with wit and lightness.",
    StrategyType.PATIENT_SILENCE: "Say little, ask the one question that lingers.",
    StrategyType.URGENT_PROVOCATION: "Press hard and fast; demand an answer now.",
    StrategyType.GENTLE_INQUIRY: "Ask sincere questions that lead the opponent to doubt themselves.",
}

# Administrative phases speak for nobody
PHASE_SPEAKER: dict[DebatePhase, DebateRole | None] = {
    phase: None for phase in DebatePhase
}
PHASE_SPEAKER.update(
    {
        DebatePhase.OPENING_A: DebateRole.CHALLENGER,
        DebatePhase.OPENING_B: DebateRole.CHALLENGED,
        DebatePhase.REBUTTAL_A_1: DebateRole.CHALLENGER,
        DebatePhase.REBUTTAL_B_1: DebateRole.CHALLENGED,
        DebatePhase.REBUTTAL_A_2: DebateRole.CHALLENGER,
        DebatePhase.REBUTTAL_B_2: DebateRole.CHALLENGED,
        DebatePhase.CLOSING_A: DebateRole.CHALLENGER,
        DebatePhase.CLOSING_B: DebateRole.CHALLENGED,
    }
)

PHASE_SEQUENCE: list[DebatePhase] = [
    DebatePhase.ESCROW_LOCKED,
    DebatePhase.OPENING_A,
    DebatePhase.OPENING_B,
    DebatePhase.REBUTTAL_A_1,
    DebatePhase.REBUTTAL_B_1,
    DebatePhase.REBUTTAL_A_2,
    DebatePhase.REBUTTAL_B_2,
    DebatePhase.CLOSING_A,
    DebatePhase.CLOSING_B,
    DebatePhase.CONCLUDED,
]

# Leaving these phases completes a rebuttal round
ROUND_COMPLETING_PHASES: dict[DebatePhase, int] = {
    DebatePhase.REBUTTAL_B_1: 1,
    DebatePhase.REBUTTAL_B_2: 2,
}

ACTIVE_PHASES: frozenset[DebatePhase] = frozenset(PHASE_SEQUENCE[:-1])

PHASE_DISPLAY: dict[DebatePhase, str] = {
    DebatePhase.IDLE: "Idle",
    DebatePhase.CHALLENGE_ISSUED: "Challenge Issued",
    DebatePhase.CHALLENGE_ACCEPTED: "Challenge Accepted",
    DebatePhase.ESCROW_LOCKING: "Locking Escrow",
    DebatePhase.ESCROW_LOCKED: "Escrow Locked",
    DebatePhase.OPENING_A: "Opening Statement",
    DebatePhase.OPENING_B: "Opening Statement",
    DebatePhase.REBUTTAL_A_1: "Rebuttal | Round 1",
    DebatePhase.REBUTTAL_B_1: "Rebuttal | Round 1",
    DebatePhase.REBUTTAL_A_2: "Rebuttal | Round 2",
    DebatePhase.REBUTTAL_B_2: "Rebuttal | Round 2",
    DebatePhase.CLOSING_A: "Closing Statement",
    DebatePhase.CLOSING_B: "Closing Statement",
    DebatePhase.CONCLUDED: "Concluded",
    DebatePhase.AWAITING_VERDICT: "Awaiting Verdict",
    DebatePhase.SETTLED: "Settled",
}

PHASE_INSTRUCTIONS: dict[DebatePhase, str] = {
    DebatePhase.OPENING_A: "Present your strongest case for your belief.",
    DebatePhase.OPENING_B: "State your counter-position and challenge opponent's opening.",
    DebatePhase.REBUTTAL_A_1: "Address opponent's arguments. Explain where they're wrong.",
    DebatePhase.REBUTTAL_B_1: "Counter-rebut and introduce new considerations.",
    DebatePhase.REBUTTAL_A_2: "Address remaining points. Set up your closing.",
    DebatePhase.REBUTTAL_B_2: "Final rebuttal. Summarize why their position fails.",
    DebatePhase.CLOSING_A: "Final appeal. Summarize strongest points.",
    DebatePhase.CLOSING_B: "Your final word. Leave no doubt.",
}
