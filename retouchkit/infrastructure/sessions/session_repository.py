from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from retouchkit.application.editor import PhotoEditor

logger = logging.getLogger(__name__)


@dataclass
class EditingSession:
    id: str
    editor: PhotoEditor
    created_at: datetime
    original_filename: str | None = None
    # serializes every read and write of this session's editor
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


class SessionRepository:
    """In-memory store of editing sessions; nothing survives a restart."""

    def __init__(self) -> None:
        self._sessions: dict[str, EditingSession] = {}
        self._lock = threading.Lock()

    def create(self, editor: PhotoEditor, original_filename: str | None = None) -> EditingSession:
        session = EditingSession(
            id=uuid.uuid4().hex,
            editor=editor,
            created_at=datetime.now(timezone.utc),
            original_filename=original_filename,
        )
        with self._lock:
            self._sessions[session.id] = session
        logger.info("Created session %s (%dx%d)", session.id, *editor.source.image.size)
        return session

    def get(self, session_id: str) -> EditingSession | None:
        with self._lock:
            return self._sessions.get(session_id)

    def delete(self, session_id: str) -> bool:
        with self._lock:
            removed = self._sessions.pop(session_id, None)
        if removed is not None:
            logger.info("Deleted session %s", session_id)
        return removed is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
