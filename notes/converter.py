from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional

from common.results import FormatFailure, FormatSuccess, FormatResult
from common.schemas import Chunk, FormatSegment
from notes.heuristic import heuristic_format

logger = logging.getLogger(__name__)

Gateway = Callable[[list[FormatSegment], str], Awaitable[FormatResult]]


class NotesSource(str, Enum):
    ai = "ai"
    heuristic = "heuristic"


class FormatState(str, Enum):
    idle = "idle"
    loading = "loading"
    done = "done"
    error = "error"


@dataclass
class NotesResult:
    markdown: str
    source: NotesSource
    error: Optional[FormatFailure] = None


def segments_from_chunks(chunks: list[Chunk], origin_ms: Optional[float] = None) -> list[FormatSegment]:
    """Request segments; times become offsets from ``origin_ms`` when it is given."""
    offset = origin_ms or 0
    return [
        FormatSegment(start=c.started_at - offset, end=c.ended_at - offset, text=c.text)
        for c in chunks
    ]


class NotesConverter:
    """Turns the chunk list into notes, falling back to the heuristic formatter."""

    def __init__(self, gateway: Gateway, language: str = "sv-SE") -> None:
        self._gateway = gateway
        self.language = language
        self.state = FormatState.idle
        self.last: Optional[NotesResult] = None

    async def convert(
        self,
        chunks: list[Chunk],
        language: Optional[str] = None,
        origin_ms: Optional[float] = None,
    ) -> NotesResult:
        if self.state == FormatState.loading:
            raise RuntimeError("Formatting already in progress")
        language = language or self.language
        snapshot = list(chunks)
        if not snapshot:
            return NotesResult(markdown="", source=NotesSource.heuristic)

        self.state = FormatState.loading
        try:
            result = await self._gateway(segments_from_chunks(snapshot, origin_ms), language)
        except BaseException:
            self.state = FormatState.idle
            raise

        if isinstance(result, FormatSuccess):
            notes = NotesResult(markdown=result.markdown, source=NotesSource.ai)
            self.state = FormatState.done
        else:
            logger.warning("AI formatting failed (%s), using heuristic notes", result)
            notes = NotesResult(
                markdown=heuristic_format(snapshot, language),
                source=NotesSource.heuristic,
                error=result,
            )
            self.state = FormatState.error
        self.last = notes
        return notes

    def current_markdown(self, chunks: list[Chunk]) -> str:
        if self.last is not None and self.last.markdown:
            return self.last.markdown
        return heuristic_format(chunks, self.language)

    def reset(self) -> None:
        self.state = FormatState.idle
        self.last = None
