from __future__ import annotations  # Candidate session persistence

import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Protocol, Sequence

from interview.models import CandidateSession


class SessionStore(Protocol):  # Full-record load/replace contract used by the orchestrator
    def load(self) -> List[CandidateSession]: ...

    def save(self, sessions: Sequence[CandidateSession]) -> None: ...


def _copy(session: CandidateSession) -> CandidateSession:  # Detached copy without in-flight state
    return CandidateSession.model_validate(session.model_dump())


class MemorySessionStore:  # Process-local store holding detached copies
    def __init__(self, sessions: Sequence[CandidateSession] = ()) -> None:
        self._sessions: Dict[str, CandidateSession] = {s.id: _copy(s) for s in sessions}
        self.save_count = 0

    def load(self) -> List[CandidateSession]:
        return [_copy(session) for session in self._sessions.values()]

    def save(self, sessions: Sequence[CandidateSession]) -> None:
        self._sessions = {session.id: _copy(session) for session in sessions}
        self.save_count += 1


class SqliteSessionStore:  # SQLite-backed store, one JSON payload row per session
    def __init__(self, path: Path) -> None:  # Initialize store and schema
        self._path = Path(path)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:  # Create SQLite connection
        self._path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self._path)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:  # Ensure session table exists
        conn = self._connect()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS candidate_sessions (
                    session_id TEXT PRIMARY KEY,
                    status TEXT NOT NULL,
                    payload TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    def load(self) -> List[CandidateSession]:  # Sessions in creation order
        conn = self._connect()
        try:
            rows = conn.execute(
                """
                SELECT payload FROM candidate_sessions
                ORDER BY created_at ASC, session_id ASC
                """
            ).fetchall()
            return [CandidateSession.model_validate_json(row["payload"]) for row in rows]
        finally:
            conn.close()

    def save(self, sessions: Sequence[CandidateSession]) -> None:  # Replace every stored session in one transaction
        now = datetime.now(timezone.utc).isoformat(timespec="seconds")
        rows = [
            (session.id, session.status, session.model_dump_json(), session.created_at, now)
            for session in sessions
        ]
        conn = self._connect()
        try:
            with conn:
                conn.execute("DELETE FROM candidate_sessions")
                conn.executemany(
                    """
                    INSERT INTO candidate_sessions (session_id, status, payload, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    rows,
                )
        finally:
            conn.close()


__all__ = ["MemorySessionStore", "SessionStore", "SqliteSessionStore"]
