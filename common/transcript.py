"""Line-oriented transcript representation shared by every note formatter.

Both the local heuristic formatter and the remote prompt builder read the
transcript through :func:`normalize`, so they see the same lines in the same
order with the same time stamps.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Union

from common.clock import is_finite_number, to_clock
from common.schemas import Chunk, FormatSegment


@dataclass(frozen=True)
class NormalizedLine:
    stamp: str
    text: str

    def render(self) -> str:
        return f"{self.stamp} {self.text}" if self.stamp else self.text


def _span(item: Union[Chunk, FormatSegment]):
    if isinstance(item, Chunk):
        return item.started_at, item.ended_at
    return item.start, item.end


def format_stamp(start, end) -> str:
    """Bracketed clock range, or "" unless both endpoints are finite numbers."""
    if is_finite_number(start) and is_finite_number(end):
        return f"[{to_clock(start)}–{to_clock(end)}]"
    return ""


def normalize(items: Iterable[Union[Chunk, FormatSegment]]) -> list[NormalizedLine]:
    lines = []
    for item in items:
        start, end = _span(item)
        lines.append(NormalizedLine(stamp=format_stamp(start, end), text=(item.text or "").strip()))
    return lines


def render_lines(lines: Iterable[NormalizedLine]) -> str:
    return "\n".join(line.render() for line in lines)
