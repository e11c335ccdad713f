"""Internal models for live capture processing."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from common.schemas import Chunk, TranscriptFragment


class SessionState(str, Enum):
    idle = "idle"
    recording = "recording"
    finalizing = "finalizing"


class EventKind(str, Enum):
    FRAGMENT_RECEIVED = "fragment_received"
    SESSION_ENDED = "session_ended"
    ERROR = "error"


@dataclass
class RecognitionEvent:
    kind: EventKind
    fragment: Optional[TranscriptFragment] = None
    error: Optional[str] = None


@dataclass
class Session:
    chunks: list[Chunk] = field(default_factory=list)
    started_at: Optional[float] = None
    state: SessionState = SessionState.idle
    live_text: str = ""
    error: Optional[str] = None

    def clear(self) -> None:
        self.chunks = []
        self.started_at = None
        self.live_text = ""
