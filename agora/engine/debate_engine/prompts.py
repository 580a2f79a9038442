"""Prompt and message builders for debate turns."""

from .models import DebateSession, Participant
from .state import format_transcript, previous_arguments
from .types import (
    PHASE_DISPLAY,
    PHASE_INSTRUCTIONS,
    STRATEGY_DESCRIPTIONS,
    DebatePhase,
    StrategyType,
)

WEI_PER_MON = 10**18


def format_stake(amount: int) -> str:
    """Render a stake in the ledger's smallest unit as MON with two decimals."""
    return f"{amount / WEI_PER_MON:.2f}"


class PromptBuilder:
    """Builds argument-generation prompts for one agent."""

    def __init__(self, agent: Participant, persona: str = ""):
        self.agent = agent
        self.persona = persona

    def build_argument_prompt(
        self,
        session: DebateSession,
        phase: DebatePhase,
        strategy: StrategyType,
        diversity_instruction: str = "",
    ) -> str:
        opponent = session.opponent_of(self.agent.name)
        opponent_name = opponent.name if opponent else "your opponent"
        opponent_belief = opponent.belief if opponent else "another belief"

        earlier = previous_arguments(session, self.agent.name)
        earlier_block = ""
        if earlier:
            listed = "\n".join(f"{i}. {arg[:100]}..." for i, arg in enumerate(earlier, 1))
            earlier_block = f"**Previous arguments (don't repeat):**\n{listed}\n"

        return f"""You are **{self.agent.name}** ({self.agent.belief}) debating **{opponent_name}** ({opponent_belief}).

{self.persona}

**Topic:** {session.topic}
**Phase:** {PHASE_DISPLAY[phase]}

**Transcript:**
{format_transcript(session)}

**Your Task:** {PHASE_INSTRUCTIONS.get(phase, "Continue the debate.")}
**Strategy:** Use the {strategy.value} approach. {STRATEGY_DESCRIPTIONS[strategy]}

{earlier_block}{diversity_instruction}

**Requirements:**
- Stay in character
- 150-300 words
- Make a real philosophical point
- Don't break character or address observers

Write your argument:"""


def format_turn_message(
    phase: DebatePhase, content: str, strategy: StrategyType, stake_amount: int
) -> str:
    return (
        f"**[{PHASE_DISPLAY[phase]}]**\n\n"
        f"{content}\n\n"
        "───\n"
        f"*Strategy: {strategy.title} | Stake: {format_stake(stake_amount)} MON escrowed*"
    )


def format_forfeit_message(debate_id: int, agent_name: str) -> str:
    return f"⏱️ **FORFEIT** — {agent_name} timed out. Debate #{debate_id} goes to the Chronicler."


def format_conclusion_message(session: DebateSession) -> str:
    return (
        f"🏁 **DEBATE CONCLUDED** — Debate #{session.debate_id}\n\n"
        f"**{session.challenger.name}** ({session.challenger.belief}) vs "
        f"**{session.challenged.name}** ({session.challenged.belief})\n"
        f"📜 {session.topic}\n\n"
        "*Awaiting the Chronicler's verdict.*"
    )
