"""Tests for the DebateEngine challenge protocol and turn orchestration."""

from __future__ import annotations

import asyncio
import random
from datetime import datetime, timedelta

import pytest

from agora.engine.collaborators import InMemoryChannel, InMemoryLedger
from agora.engine.config.settings import DebateRulesConfig
from agora.engine.debate_engine.core import DebateEngine, DebateProgress
from agora.engine.debate_engine.exceptions import (
    DiversityExhaustedError,
    NoActiveDebateError,
    TurnOrderError,
)
from agora.engine.debate_engine.models import Participant
from agora.engine.debate_engine.strategy import StrategySelector
from agora.engine.debate_engine.types import DebatePhase, DebateRole
from agora.engine.storage import SessionStore


def _engine(agent, generator, sessions, channel, ledger, **rules) -> DebateEngine:
    return DebateEngine(
        agent,
        generator,
        sessions,
        channel,
        ledger,
        rules=DebateRulesConfig(**rules),
        strategy_selector=StrategySelector(rng=random.Random(0)),
    )


def _posts(channel: InMemoryChannel) -> list[str]:
    return [m.content for m in channel.messages.get("agora", [])]


def test_full_debate_runs_eight_turns_then_awaits_verdict(
    seneca: Participant,
    kael: Participant,
    session_store: SessionStore,
    channel: InMemoryChannel,
    ledger: InMemoryLedger,
    make_generator,
    argument_writer,
) -> None:
    """Challenge, accept, alternate turns, conclude."""
    generator = make_generator(routes={"Write your argument:": argument_writer})
    challenger = _engine(seneca, generator, session_store, channel, ledger)
    challenged = _engine(kael, generator, session_store, channel, ledger)

    async def run() -> list[DebateProgress]:
        session = await challenger.issue_challenge(kael)
        await challenged.accept_challenge(session.debate_id)

        progress = []
        for _ in range(8):
            progress.append(await challenger.continue_debate(session.debate_id))
            progress.append(await challenged.continue_debate(session.debate_id))
            if progress[-1] is DebateProgress.CONCLUDED:
                break
        return progress

    progress = asyncio.run(run())
    session = session_store.load(1)

    assert progress.count(DebateProgress.TURN_TAKEN) == 7
    assert progress[-1] is DebateProgress.CONCLUDED
    assert session.current_phase is DebatePhase.AWAITING_VERDICT
    assert session.rounds_completed == 2
    assert len(session.transcript) == 8
    assert [t.role for t in session.transcript] == [DebateRole.CHALLENGER, DebateRole.CHALLENGED] * 4
    assert list(session.arguments_used) == argument_writer.written

    posts = _posts(channel)
    assert "DEBATE CHALLENGE" in posts[0]
    assert "accepts" in posts[1]
    assert "DEBATE CONCLUDED" in posts[-1]
    assert ledger.escrows[1].matched


def test_accept_locks_escrow_and_announces_pot(
    seneca: Participant,
    kael: Participant,
    session_store: SessionStore,
    channel: InMemoryChannel,
    ledger: InMemoryLedger,
    make_generator,
) -> None:
    generator = make_generator()
    challenger = _engine(seneca, generator, session_store, channel, ledger)
    challenged = _engine(kael, generator, session_store, channel, ledger)

    async def run():
        session = await challenger.issue_challenge(kael, stake_amount=10**17)
        return await challenged.accept_challenge(session.debate_id)

    session = asyncio.run(run())

    assert session.current_phase is DebatePhase.ESCROW_LOCKED
    assert session.topic == "Is tranquility worthy or an evasion?"
    assert "0.20 MON" in _posts(channel)[-1]
    assert challenged.status(session.debate_id).status == "active"


def test_only_the_challenged_agent_may_accept(
    seneca: Participant,
    kael: Participant,
    session_store: SessionStore,
    channel: InMemoryChannel,
    ledger: InMemoryLedger,
    make_generator,
) -> None:
    challenger = _engine(seneca, make_generator(), session_store, channel, ledger)

    async def run():
        session = await challenger.issue_challenge(kael)
        await challenger.accept_challenge(session.debate_id)

    with pytest.raises(TurnOrderError):
        asyncio.run(run())


def test_decline_settles_the_challenge(
    seneca: Participant,
    kael: Participant,
    session_store: SessionStore,
    channel: InMemoryChannel,
    ledger: InMemoryLedger,
    make_generator,
) -> None:
    challenger = _engine(seneca, make_generator(), session_store, channel, ledger)
    challenged = _engine(kael, make_generator(), session_store, channel, ledger)

    async def run():
        session = await challenger.issue_challenge(kael)
        return await challenged.decline_challenge(session.debate_id, "We share a worldview.")

    session = asyncio.run(run())

    assert session.current_phase is DebatePhase.SETTLED
    assert ledger.escrows[session.debate_id].declined
    assert "declines" in _posts(channel)[-1]
    assert challenger.status(session.debate_id).status == "idle"


def test_speaking_out_of_turn_is_rejected(
    seneca: Participant,
    kael: Participant,
    session_store: SessionStore,
    channel: InMemoryChannel,
    ledger: InMemoryLedger,
    make_generator,
    argument_writer,
) -> None:
    generator = make_generator(routes={"Write your argument:": argument_writer})
    challenger = _engine(seneca, generator, session_store, channel, ledger)
    challenged = _engine(kael, generator, session_store, channel, ledger)

    async def run():
        session = await challenger.issue_challenge(kael)
        session = await challenged.accept_challenge(session.debate_id)
        await challenged.open_floor(session)
        await challenged.execute_turn(session.debate_id)

    with pytest.raises(TurnOrderError):
        asyncio.run(run())
    assert generator.prompts == []


def test_waiting_agent_does_nothing(
    seneca: Participant,
    kael: Participant,
    session_store: SessionStore,
    channel: InMemoryChannel,
    ledger: InMemoryLedger,
    make_generator,
) -> None:
    generator = make_generator()
    challenger = _engine(seneca, generator, session_store, channel, ledger)
    challenged = _engine(kael, generator, session_store, channel, ledger)

    async def run():
        session = await challenger.issue_challenge(kael)
        await challenged.accept_challenge(session.debate_id)
        return await challenged.continue_debate(session.debate_id)

    assert asyncio.run(run()) is DebateProgress.WAITING
    assert session_store.load(1).current_phase is DebatePhase.OPENING_A
    assert generator.prompts == []


def test_missing_session_raises(
    seneca: Participant,
    session_store: SessionStore,
    channel: InMemoryChannel,
    ledger: InMemoryLedger,
    make_generator,
) -> None:
    engine = _engine(seneca, make_generator(), session_store, channel, ledger)

    with pytest.raises(NoActiveDebateError):
        asyncio.run(engine.execute_turn(99))
    assert engine.status(None).status == "idle"


def test_short_replies_exhaust_attempts(
    seneca: Participant,
    kael: Participant,
    session_store: SessionStore,
    channel: InMemoryChannel,
    ledger: InMemoryLedger,
    make_generator,
) -> None:
    """Replies under the minimum length never become turns."""
    generator = make_generator(routes={"Write your argument:": "Too short."})
    challenger = _engine(seneca, generator, session_store, channel, ledger, argument_attempts=3)
    challenged = _engine(kael, generator, session_store, channel, ledger)

    async def run():
        session = await challenger.issue_challenge(kael)
        await challenged.accept_challenge(session.debate_id)
        await challenger.continue_debate(session.debate_id)

    with pytest.raises(DiversityExhaustedError) as exc_info:
        asyncio.run(run())

    assert exc_info.value.attempts == 3
    assert len(generator.prompts) == 3
    session = session_store.load(1)
    assert session.transcript == ()
    assert session.current_phase is DebatePhase.OPENING_A


def test_repeated_argument_is_retried_with_a_diversity_hint(
    seneca: Participant,
    kael: Participant,
    session_store: SessionStore,
    channel: InMemoryChannel,
    ledger: InMemoryLedger,
    make_generator,
    argument_text,
) -> None:
    first, fresh = argument_text(0), argument_text(1)
    generator = make_generator(
        first, argument_text(50), argument_text(51), argument_text(52), first, fresh
    )
    challenger = _engine(seneca, generator, session_store, channel, ledger)
    challenged = _engine(kael, generator, session_store, channel, ledger)

    async def run():
        session = await challenger.issue_challenge(kael)
        await challenged.accept_challenge(session.debate_id)
        for _ in range(2):
            await challenger.continue_debate(session.debate_id)
            await challenged.continue_debate(session.debate_id)
        await challenger.continue_debate(session.debate_id)

    asyncio.run(run())
    session = session_store.load(1)

    seneca_turns = [t.content for t in session.transcript if t.speaker_name == "Seneca"]
    assert seneca_turns == [first, argument_text(51), fresh]
    # The repeat was rejected and the retry prompt asked for something new
    assert "too similar" not in generator.prompts[4]
    assert "too similar" in generator.prompts[5]


def test_truncates_long_arguments(
    seneca: Participant,
    kael: Participant,
    session_store: SessionStore,
    channel: InMemoryChannel,
    ledger: InMemoryLedger,
    make_generator,
    argument_text,
) -> None:
    long_text = " ".join(argument_text(i) for i in range(10))
    generator = make_generator(long_text)
    challenger = _engine(seneca, generator, session_store, channel, ledger, max_argument_chars=150)
    challenged = _engine(kael, generator, session_store, channel, ledger)

    async def run():
        session = await challenger.issue_challenge(kael)
        await challenged.accept_challenge(session.debate_id)
        await challenger.continue_debate(session.debate_id)

    asyncio.run(run())

    assert session_store.load(1).transcript[0].content == long_text[:150]


def test_silent_speaker_forfeits(
    seneca: Participant,
    kael: Participant,
    session_store: SessionStore,
    channel: InMemoryChannel,
    ledger: InMemoryLedger,
    make_generator,
    argument_writer,
) -> None:
    generator = make_generator(routes={"Write your argument:": argument_writer})
    challenger = _engine(seneca, generator, session_store, channel, ledger)
    challenged = _engine(kael, generator, session_store, channel, ledger)

    async def run():
        session = await challenger.issue_challenge(kael)
        await challenged.accept_challenge(session.debate_id)
        await challenger.continue_debate(session.debate_id)
        later = datetime.now() + timedelta(seconds=301)
        return await challenger.continue_debate(session.debate_id, now=later)

    assert asyncio.run(run()) is DebateProgress.FORFEITED

    session = session_store.load(1)
    assert session.current_phase is DebatePhase.AWAITING_VERDICT
    assert session.forfeited_by is DebateRole.CHALLENGED
    assert "FORFEIT" in _posts(channel)[-1]
    assert "Kael" in _posts(channel)[-1]


def test_challenger_who_never_opens_forfeits(
    seneca: Participant,
    kael: Participant,
    session_store: SessionStore,
    channel: InMemoryChannel,
    ledger: InMemoryLedger,
    make_generator,
) -> None:
    generator = make_generator()
    challenger = _engine(seneca, generator, session_store, channel, ledger)
    challenged = _engine(kael, generator, session_store, channel, ledger)

    async def run():
        session = await challenger.issue_challenge(kael)
        await challenged.accept_challenge(session.debate_id)
        later = datetime.now() + timedelta(seconds=301)
        return await challenged.continue_debate(session.debate_id, now=later)

    assert asyncio.run(run()) is DebateProgress.FORFEITED

    session = session_store.load(1)
    assert session.forfeited_by is DebateRole.CHALLENGER
    assert session.transcript == ()
    assert "Seneca timed out" in _posts(channel)[-1]
    assert generator.prompts == []
