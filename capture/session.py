from __future__ import annotations

import logging
from typing import Callable, Optional

from common.clock import now_ms
from common.config import DEFAULT_PAUSE_THRESHOLD_MS
from common.schemas import Chunk
from capture.models import EventKind, RecognitionEvent, Session, SessionState
from capture.segmenter import ChunkSegmenter, Scheduler

logger = logging.getLogger(__name__)


class CaptureSession:
    """Per-stream state machine: idle -> recording -> finalizing -> idle."""

    def __init__(
        self,
        stream_id: str,
        scheduler: Scheduler,
        pause_threshold_ms: float = DEFAULT_PAUSE_THRESHOLD_MS,
        clock: Callable[[], float] = now_ms,
        on_chunk: Optional[Callable[[Chunk], None]] = None,
    ):
        self.stream_id = stream_id
        self._clock = clock
        self.session = Session()
        self.segmenter = ChunkSegmenter(
            self.session,
            scheduler,
            pause_threshold_ms=pause_threshold_ms,
            clock=clock,
            on_chunk=on_chunk,
        )

    @property
    def state(self) -> SessionState:
        return self.session.state

    @property
    def chunks(self) -> list[Chunk]:
        return self.session.chunks

    @property
    def started_at(self) -> Optional[float]:
        return self.session.started_at

    @property
    def live_text(self) -> str:
        return self.session.live_text

    @property
    def error(self) -> Optional[str]:
        return self.session.error

    def start(self) -> None:
        if self.session.state != SessionState.idle:
            raise RuntimeError(f"Session {self.stream_id} is already {self.session.state.value}")
        if self.session.started_at is None:
            self.session.started_at = self._clock()
        self.session.error = None
        self.session.live_text = ""
        self.session.state = SessionState.recording
        logger.info("Recording started: %s", self.stream_id)

    def dispatch(self, event: RecognitionEvent) -> Optional[Chunk]:
        """Apply one recognizer event. Returns the chunk flushed by an end, if any."""
        if event.kind == EventKind.FRAGMENT_RECEIVED:
            if self.session.state != SessionState.recording:
                logger.warning("Fragment received while %s, ignored", self.session.state.value)
                return None
            self.segmenter.on_fragment(event.fragment)
            return None

        if event.kind == EventKind.ERROR:
            self.session.error = event.error or "unknown"
            logger.warning("Recognition error on %s: %s", self.stream_id, self.session.error)

        return self._end()

    def _end(self) -> Optional[Chunk]:
        if self.session.state != SessionState.recording:
            return None
        self.session.state = SessionState.finalizing
        try:
            return self.segmenter.on_session_end()
        finally:
            self.session.state = SessionState.idle
            logger.info("Recording stopped: %s (%d chunks)", self.stream_id, len(self.session.chunks))

    def reset(self) -> None:
        """Discard chunks and timing. An active recording keeps going from a fresh start."""
        self.segmenter.reset()
        self.session.error = None
        if self.session.state == SessionState.recording:
            self.session.started_at = self._clock()
        logger.info("Session reset: %s", self.stream_id)

    def close(self) -> Optional[Chunk]:
        return self._end()

    def elapsed_ms(self, now: Optional[float] = None) -> float:
        if self.session.started_at is None:
            return 0
        now = self._clock() if now is None else now
        if self.session.state == SessionState.recording:
            ref = now
        elif self.session.chunks:
            ref = self.session.chunks[-1].ended_at
        else:
            ref = now
        return ref - self.session.started_at
