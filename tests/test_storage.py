"""Tests for belief record and debate session persistence."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from agora.engine.conviction.types import BeliefRecord
from agora.engine.debate_engine.models import Participant
from agora.engine.debate_engine.state import create_session
from agora.engine.debate_engine.types import DebatePhase, StrategyType
from agora.engine.storage import BeliefStore, SessionStore


def test_belief_record_survives_a_round_trip(
    belief_store: BeliefStore, seneca_record: BeliefRecord
) -> None:
    record = seneca_record.model_copy(update={"relationship_map": {"Kael": "rival"}})
    belief_store.save(record)

    loaded = belief_store.load("SENECA")

    assert loaded == record
    assert loaded.strategy_effectiveness[StrategyType.STOIC_REFRAME].attempts == 0
    assert belief_store.exists("seneca")
    assert belief_store.load("Kael") is None


def test_conviction_is_clamped_on_load() -> None:
    record = BeliefRecord(agent="X", agent_id=9, core_belief_id=1, current_belief="Nihilism", conviction=140)

    assert record.conviction == 100


def test_no_temporary_files_are_left_behind(
    belief_store: BeliefStore, seneca_record: BeliefRecord
) -> None:
    belief_store.save(seneca_record)
    belief_store.save(seneca_record.model_copy(update={"conviction": 70}))

    files = [p.name for p in (belief_store.root / "seneca").iterdir()]

    assert files == ["belief-state.json"]
    assert belief_store.load("Seneca").conviction == 70


def test_corrupt_document_raises(belief_store: BeliefStore) -> None:
    path = belief_store.root / "broken" / "belief-state.json"
    path.parent.mkdir(parents=True)
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(ValidationError):
        belief_store.load("broken")


def test_archive_moves_the_session_once(
    session_store: SessionStore, seneca: Participant, kael: Participant
) -> None:
    session = create_session(5, "topic", 10**17, seneca, kael)
    session_store.save(session)

    first = session_store.archive(5)
    second = session_store.archive(5)

    assert first is not None and "-archive-" in first.name
    assert second is None
    assert session_store.load(5) is None
    assert session_store.load_any(5) == session
    assert session_store.load_any(None) is None


def test_active_sessions_skip_archives(
    session_store: SessionStore, seneca: Participant, kael: Participant
) -> None:
    for debate_id in (3, 1, 2):
        session_store.save(create_session(debate_id, "topic", 10**17, seneca, kael))
    session_store.archive(2)

    active = session_store.active_sessions()

    assert [s.debate_id for s in active] == [1, 3]
    assert all(s.current_phase is DebatePhase.CHALLENGE_ISSUED for s in active)
