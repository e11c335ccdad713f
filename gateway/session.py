from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from capture.session import CaptureSession
from notes.converter import NotesConverter

logger = logging.getLogger(__name__)


@dataclass
class ClientSession:
    stream_id: str
    capture: CaptureSession
    converter: NotesConverter
    language: str = "sv-SE"
    convert_task: Optional[asyncio.Task] = None

    @property
    def converting(self) -> bool:
        return self.convert_task is not None and not self.convert_task.done()

    def cancel_convert(self) -> None:
        if self.converting:
            self.convert_task.cancel()
        self.convert_task = None


class SessionManager:
    def __init__(self, max_sessions: int = 1) -> None:
        self._max = max_sessions
        self._sessions: dict[str, ClientSession] = {}
        self._lock = asyncio.Lock()

    async def create(self, stream_id: str, **kwargs) -> ClientSession:
        async with self._lock:
            if len(self._sessions) >= self._max:
                raise RuntimeError(f"Max sessions ({self._max}) reached")
            if stream_id in self._sessions:
                raise RuntimeError(f"Session {stream_id} already exists")
            session = ClientSession(stream_id=stream_id, **kwargs)
            self._sessions[stream_id] = session
            logger.info("Session created: %s (%d active)", stream_id, len(self._sessions))
            return session

    async def remove(self, stream_id: str) -> None:
        async with self._lock:
            self._sessions.pop(stream_id, None)
            logger.info("Session removed: %s (%d active)", stream_id, len(self._sessions))

    @property
    def active_count(self) -> int:
        return len(self._sessions)
