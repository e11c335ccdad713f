"""Outcome of a single formatting attempt.

Formatting calls return one of these instead of raising, so callers decide
for themselves whether to fall back.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class FormatSuccess:
    markdown: str


@dataclass(frozen=True)
class FormatFailure:
    kind: str
    detail: str

    def __str__(self) -> str:
        return f"{self.kind}: {self.detail}"


FormatResult = Union[FormatSuccess, FormatFailure]
