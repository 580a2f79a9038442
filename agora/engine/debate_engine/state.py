"""Phase sequencing and transcript operations on debate sessions.

Every operation returns a new ``DebateSession``; sessions are never mutated
in place, so a caller holding the previous value keeps a consistent view.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from .exceptions import PhaseRegressionError
from .models import DebateSession, Participant, Turn
from .types import (
    ACTIVE_PHASES,
    PHASE_DISPLAY,
    PHASE_SEQUENCE,
    PHASE_SPEAKER,
    ROUND_COMPLETING_PHASES,
    DebatePhase,
    DebateRole,
    StrategyType,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimeoutCheck:
    """Result of polling a session for inactivity."""

    timed_out: bool
    forfeit_role: DebateRole | None = None
    forfeit_agent: str | None = None


def create_session(
    debate_id: int,
    topic: str,
    stake_amount: int,
    challenger: Participant,
    challenged: Participant,
    channel_id: str = "agora",
    max_rounds: int = 2,
) -> DebateSession:
    """Create the session for a freshly issued challenge."""
    now = datetime.now()
    return DebateSession(
        debate_id=debate_id,
        topic=topic,
        stake_amount=stake_amount,
        challenger=challenger,
        challenged=challenged,
        channel_id=channel_id,
        current_phase=DebatePhase.CHALLENGE_ISSUED,
        max_rounds=max_rounds,
        started_at=now,
        last_activity_at=now,
    )


def advance_phase(session: DebateSession) -> DebateSession:
    """Move to the next phase of the speaking sequence.

    Returns the session unchanged when it is already at the terminal phase or
    outside the sequence.
    """
    if session.current_phase not in PHASE_SEQUENCE:
        return session

    index = PHASE_SEQUENCE.index(session.current_phase)
    if index == len(PHASE_SEQUENCE) - 1:
        return session

    update: dict = {
        "current_phase": PHASE_SEQUENCE[index + 1],
        "last_activity_at": datetime.now(),
    }
    completed = ROUND_COMPLETING_PHASES.get(session.current_phase)
    if completed is not None:
        update["rounds_completed"] = completed

    logger.debug(
        f"Debate #{session.debate_id}: {session.current_phase.value} -> {update['current_phase'].value}"
    )
    return session.model_copy(update=update)


def transition(session: DebateSession, phase: DebatePhase) -> DebateSession:
    """Administrative move to a strictly later phase (escrow lock, verdict, settlement)."""
    if phase.ordinal <= session.current_phase.ordinal:
        raise PhaseRegressionError(session.current_phase.value, phase.value)
    return session.model_copy(
        update={"current_phase": phase, "last_activity_at": datetime.now()}
    )


def current_speaker(session: DebateSession) -> DebateRole | None:
    return PHASE_SPEAKER[session.current_phase]


def is_my_turn(session: DebateSession, role: DebateRole) -> bool:
    return PHASE_SPEAKER[session.current_phase] is role


def is_debate_active(session: DebateSession | None) -> bool:
    """True while turns are still to be exchanged."""
    return session is not None and session.current_phase in ACTIVE_PHASES


def is_awaiting_verdict(session: DebateSession | None) -> bool:
    return session is not None and session.current_phase in (
        DebatePhase.CONCLUDED,
        DebatePhase.AWAITING_VERDICT,
    )


def add_turn(session: DebateSession, turn: Turn) -> DebateSession:
    """Append a turn and its argument text."""
    return session.model_copy(
        update={
            "transcript": session.transcript + (turn,),
            "arguments_used": session.arguments_used + (turn.content,),
            "last_activity_at": datetime.now(),
        }
    )


def check_timeout(
    session: DebateSession,
    timeout: timedelta,
    now: datetime | None = None,
) -> TimeoutCheck:
    """Check whether the current speaker has let the debate go idle too long."""
    if not is_debate_active(session):
        return TimeoutCheck(timed_out=False)

    now = now or datetime.now()
    if now - session.last_activity_at <= timeout:
        return TimeoutCheck(timed_out=False)

    role = current_speaker(session)
    if role is None and session.current_phase is DebatePhase.ESCROW_LOCKED:
        # The challenger owes the opening statement
        role = DebateRole.CHALLENGER
    agent = session.participant(role).name if role is not None else None
    return TimeoutCheck(timed_out=True, forfeit_role=role, forfeit_agent=agent)


def opponent_last_argument(session: DebateSession, agent_name: str) -> str | None:
    """Most recent argument made by anyone other than the named agent."""
    lowered = agent_name.lower()
    for turn in reversed(session.transcript):
        if turn.speaker_name.lower() != lowered:
            return turn.content
    return None


def opponent_last_turn(session: DebateSession, agent_name: str) -> Turn | None:
    lowered = agent_name.lower()
    for turn in reversed(session.transcript):
        if turn.speaker_name.lower() != lowered:
            return turn
    return None


def previous_arguments(session: DebateSession, agent_name: str) -> list[str]:
    """Arguments the named agent has already made in this session."""
    lowered = agent_name.lower()
    return [t.content for t in session.transcript if t.speaker_name.lower() == lowered]


def recent_strategies(
    session: DebateSession, agent_name: str, limit: int = 3
) -> list[StrategyType]:
    """Strategies used by the named agent in its last ``limit`` turns."""
    lowered = agent_name.lower()
    mine = [t.strategy for t in session.transcript if t.speaker_name.lower() == lowered]
    return mine[-limit:] if limit else []


def format_transcript(session: DebateSession) -> str:
    if not session.transcript:
        return "(No messages yet)"
    return "\n\n---\n\n".join(
        f"[{turn.speaker_name} — {PHASE_DISPLAY[turn.phase]}]\n{turn.content}"
        for turn in session.transcript
    )
