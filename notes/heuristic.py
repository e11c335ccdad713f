"""Local markdown structuring used when the remote formatter is unavailable.

Every paragraph is one chunk. Paragraphs that announce a topic become
subheadings, conclusions get a summary heading, short paragraphs become
bullet lists and long ones stay as body text. No text is dropped.
"""

from __future__ import annotations

import re
from typing import Iterable, Union

from common.schemas import Chunk, FormatSegment
from common.transcript import normalize

TITLE_MAX_CHARS = 80

HEADING_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"definition",
        r"exempel|example",
        r"sammanfattning|summary",
        r"bakgrund|background",
        r"problem",
        r"lösning|solution",
        r"metod|method",
        r"resultat|result",
        r"diskussion|discussion",
        r"nästa.*del|next.*part",
        r"viktigt.*att.*veta|important.*to.*know",
    )
]
CONCLUSION_PATTERN = re.compile(
    r"sammanfattningsvis|avslutningsvis|in conclusion|to summari[sz]e|to sum up", re.IGNORECASE
)
_TITLE_END = re.compile(r"[:.!?]")
_SENTENCE_BREAK = re.compile(r"(?<=[.!?])\s+")
_EXTRA_BLANKS = re.compile(r"\n{3,}")


def _titles(language: str) -> tuple[str, str]:
    if (language or "").lower().startswith("sv"):
        return "Föreläsningsanteckningar", "Sammanfattning"
    return "Lecture notes", "Summary"


def _split_title(paragraph: str) -> tuple[str, str]:
    head = _TITLE_END.split(paragraph, 1)[0][:TITLE_MAX_CHARS]
    if not head.strip():
        return paragraph[:TITLE_MAX_CHARS].strip(), paragraph[TITLE_MAX_CHARS:].strip()
    rest = paragraph[len(head):]
    if rest[:1] and rest[0] in ":.!?":
        rest = rest[1:]
    return head.strip(), rest.strip()


def heuristic_format(chunks: Iterable[Union[Chunk, FormatSegment]], language: str = "sv-SE") -> str:
    paragraphs = [line.text for line in normalize(chunks) if line.text]
    if not paragraphs:
        return ""

    title, summary = _titles(language)
    lines = [f"# {title}", ""]
    for paragraph in paragraphs:
        if any(p.search(paragraph) for p in HEADING_PATTERNS):
            heading, rest = _split_title(paragraph)
            lines.extend(["", f"## {heading}"])
            if rest:
                lines.append(rest)
        elif CONCLUSION_PATTERN.search(paragraph):
            lines.extend(["", f"## {summary}", paragraph])
        else:
            sentences = [s for s in _SENTENCE_BREAK.split(paragraph) if s]
            if len(sentences) <= 3:
                lines.extend(f"- {s}" for s in sentences)
            else:
                lines.append(paragraph)

    return _EXTRA_BLANKS.sub("\n\n", "\n".join(lines)).strip()
