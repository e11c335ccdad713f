"""Inactivity-based chunking of a live recognizer stream.

Final fragments accumulate into one pending chunk. Each new final fragment
restarts the pause timer; when the timer fires the pending text is frozen into
an immutable :class:`~common.schemas.Chunk` and appended to the session.
Interim fragments only update the live preview and never move the timer.

Scheduled finalizations carry the generation they were armed for. Any change
that re-arms or clears the accumulator bumps the generation, so a callback
that was already queued when new text arrived becomes a no-op.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Callable, Optional, Protocol

from common.clock import now_ms
from common.config import DEFAULT_PAUSE_THRESHOLD_MS, clamp_pause_threshold
from common.schemas import Chunk, TranscriptFragment
from capture.models import Session

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Anything with ``call_later``; an asyncio event loop qualifies."""

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle: ...


def new_chunk_id() -> str:
    return f"chunk_{uuid.uuid4().hex[:12]}"


class ChunkSegmenter:
    def __init__(
        self,
        session: Session,
        scheduler: Scheduler,
        pause_threshold_ms: float = DEFAULT_PAUSE_THRESHOLD_MS,
        clock: Callable[[], float] = now_ms,
        on_chunk: Optional[Callable[[Chunk], None]] = None,
        id_factory: Callable[[], str] = new_chunk_id,
    ) -> None:
        self.session = session
        self._scheduler = scheduler
        self._clock = clock
        self._on_chunk = on_chunk
        self._id_factory = id_factory
        self._pause_threshold_ms = clamp_pause_threshold(pause_threshold_ms)

        self._pending_text = ""
        self._pending_start: Optional[float] = None
        self._timer: Optional[TimerHandle] = None
        self._generation = 0
        self._last_final_index = -1
        self._last_ended_at: Optional[float] = None

    @property
    def pause_threshold_ms(self) -> int:
        return self._pause_threshold_ms

    @pause_threshold_ms.setter
    def pause_threshold_ms(self, value: float) -> None:
        self._pause_threshold_ms = clamp_pause_threshold(value)

    @property
    def pending_text(self) -> str:
        return self._pending_text

    @property
    def pending_start(self) -> Optional[float]:
        return self._pending_start

    @property
    def timer_armed(self) -> bool:
        return self._timer is not None

    def on_fragment(self, fragment: TranscriptFragment) -> None:
        if not fragment.is_final:
            self.session.live_text = self._pending_text + fragment.text
            return

        if fragment.sequence_index <= self._last_final_index:
            logger.debug("Ignoring redelivered final result %d", fragment.sequence_index)
            return
        self._last_final_index = fragment.sequence_index

        if self._pending_start is None and fragment.text.strip():
            now = self._clock()
            if self._last_ended_at is not None:
                now = max(now, self._last_ended_at)
            self._pending_start = now
        self._pending_text += fragment.text + " "
        self.session.live_text = self._pending_text

        if self._pending_text.strip():
            self._arm_timer()

    def on_session_end(self) -> Optional[Chunk]:
        """Flush whatever is pending; nothing survives the end of a session."""
        self._cancel_timer()
        chunk = self._finalize()
        # the next recording restarts the recognizer's result indices
        self._last_final_index = -1
        return chunk

    def reset(self) -> None:
        self._cancel_timer()
        self._pending_text = ""
        self._pending_start = None
        self._last_final_index = -1
        self._last_ended_at = None
        self.session.clear()

    def _arm_timer(self) -> None:
        self._cancel_timer()
        self._timer = self._scheduler.call_later(
            self._pause_threshold_ms / 1000.0, self._on_timer, self._generation
        )

    def _cancel_timer(self) -> None:
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self, generation: int) -> None:
        if generation != self._generation:
            logger.debug("Stale finalize (generation %d, current %d)", generation, self._generation)
            return
        self._timer = None
        self._generation += 1
        self._finalize()

    def _finalize(self) -> Optional[Chunk]:
        text = self._pending_text.strip()
        started_at = self._pending_start
        self._pending_text = ""
        self._pending_start = None
        self.session.live_text = ""

        if not text:
            return None

        now = self._clock()
        if started_at is None:
            started_at = now
        chunk = Chunk(
            id=self._id_factory(),
            text=text,
            started_at=started_at,
            ended_at=max(now, started_at),
        )
        self._last_ended_at = chunk.ended_at
        self.session.chunks.append(chunk)
        logger.info("Chunk finalized: %s (%d chars)", chunk.id, len(chunk.text))
        if self._on_chunk is not None:
            self._on_chunk(chunk)
        return chunk
