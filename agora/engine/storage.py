"""Whole-document JSON persistence for belief records and debate sessions."""

import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Generic, TypeVar

from pydantic import BaseModel, ValidationError

from agora.engine.conviction.types import BeliefRecord
from agora.engine.debate_engine.models import DebateSession

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class JsonDocumentStore(Generic[M]):
    """Reads and writes pydantic models as whole JSON documents.

    Writes go to a temporary file that replaces the target in one step, so a
    reader sees either the old document or the new one.
    """

    model: type[M]

    def __init__(self, root: Path):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _read(self, path: Path) -> M | None:
        if not path.exists():
            return None
        try:
            return self.model.model_validate_json(path.read_text(encoding="utf-8"))
        except ValidationError as e:
            logger.error(f"Corrupt document {path}: {e}")
            raise

    def _write(self, path: Path, document: M) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(document.model_dump_json(indent=2))
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug(f"Saved {path}")


class BeliefStore(JsonDocumentStore[BeliefRecord]):
    """One belief-state document per agent."""

    model = BeliefRecord

    def _path(self, agent_name: str) -> Path:
        return self.root / agent_name.lower() / "belief-state.json"

    def load(self, agent_name: str) -> BeliefRecord | None:
        return self._read(self._path(agent_name))

    def save(self, record: BeliefRecord) -> None:
        self._write(self._path(record.agent), record)

    def exists(self, agent_name: str) -> bool:
        return self._path(agent_name).exists()


class SessionStore(JsonDocumentStore[DebateSession]):
    """Debate session documents, shared by both participants."""

    model = DebateSession

    def _path(self, debate_id: int) -> Path:
        return self.root / f"debate-{debate_id}.json"

    def load(self, debate_id: int | None) -> DebateSession | None:
        if debate_id is None:
            return None
        return self._read(self._path(debate_id))

    def save(self, session: DebateSession) -> None:
        self._write(self._path(session.debate_id), session)

    def archive(self, debate_id: int) -> Path | None:
        """Rename the session document out of the active set.

        Safe to call more than once; later calls find nothing to archive.
        """
        path = self._path(debate_id)
        if not path.exists():
            return None
        stamp = datetime.now().strftime("%Y%m%d%H%M%S%f")
        target = self.root / f"debate-{debate_id}-archive-{stamp}.json"
        try:
            os.replace(path, target)
        except FileNotFoundError:
            # The other participant archived it first
            return None
        logger.info(f"Archived debate #{debate_id} to {target.name}")
        return target

    def load_archived(self, debate_id: int) -> DebateSession | None:
        archives = sorted(self.root.glob(f"debate-{debate_id}-archive-*.json"))
        if not archives:
            return None
        return self._read(archives[-1])

    def active_sessions(self) -> list[DebateSession]:
        """All sessions that have not been archived, oldest debate first."""
        sessions = []
        for path in self.root.glob("debate-*.json"):
            if "-archive-" in path.name:
                continue
            session = self._read(path)
            if session is not None:
                sessions.append(session)
        return sorted(sessions, key=lambda s: s.debate_id)

    def load_any(self, debate_id: int | None) -> DebateSession | None:
        """Active document if present, else the most recent archive."""
        if debate_id is None:
            return None
        return self.load(debate_id) or self.load_archived(debate_id)
