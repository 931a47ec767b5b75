from __future__ import annotations

import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

from .session import Session


class SessionStore(ABC):
    @abstractmethod
    async def load(self, session_id: str) -> Session | None:
        raise NotImplementedError

    @abstractmethod
    async def store(self, session: Session) -> None:
        raise NotImplementedError

    @abstractmethod
    async def delete(self, session_id: str) -> None:
        raise NotImplementedError

    @abstractmethod
    async def find_by_shop(self, shop: str) -> list[Session]:
        raise NotImplementedError


class MemorySessionStore(SessionStore):
    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}

    async def load(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    async def store(self, session: Session) -> None:
        self._sessions[session.id] = session

    async def delete(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    async def find_by_shop(self, shop: str) -> list[Session]:
        return [session for session in self._sessions.values() if str(session.shop) == shop]


class FileSessionStore(SessionStore):
    """Sessions persisted as one JSON object keyed by session id."""

    def __init__(self, path: str | Path = ".sessions.json") -> None:
        self._path = Path(path)

    async def load(self, session_id: str) -> Session | None:
        payload = self._read_all().get(session_id)
        if payload is None:
            return None
        return Session.from_dict(payload)

    async def store(self, session: Session) -> None:
        all_sessions = self._read_all()
        all_sessions[session.id] = session.to_dict()
        self._write_all(all_sessions)

    async def delete(self, session_id: str) -> None:
        all_sessions = self._read_all()
        all_sessions.pop(session_id, None)
        self._write_all(all_sessions)

    async def find_by_shop(self, shop: str) -> list[Session]:
        return [
            Session.from_dict(payload)
            for payload in self._read_all().values()
            if payload.get("shop") == shop
        ]

    def _read_all(self) -> dict[str, dict]:
        if not self._path.exists():
            return {}

        raw = json.loads(self._path.read_text(encoding="utf-8"))
        if not isinstance(raw, dict):
            raise RuntimeError("Session store file is invalid; expected top-level JSON object.")
        return raw

    def _write_all(self, payload: dict[str, dict]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(
            prefix=f"{self._path.name}.",
            suffix=".tmp",
            dir=self._path.parent,
        )
        tmp_path = Path(tmp_name)

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(payload, handle, indent=2, sort_keys=True)
            os.replace(tmp_path, self._path)
        finally:
            if tmp_path.exists():
                tmp_path.unlink()
