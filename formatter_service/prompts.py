from __future__ import annotations

from common.schemas import FormatSegment
from common.transcript import normalize, render_lines

SYSTEM_PROMPT = """\
You are a FORMATTER of lecture notes.
Your only task is to structure a raw transcript into clear Markdown notes
WITHOUT summarizing, omitting, translating, rephrasing or adding information.

Mandatory rules:
1) Keep the source language and the order of the content. No translation. No paraphrase.
2) Every original line/utterance must still be present, in the same order. You may only add
   light punctuation/capitalization, headings and bullet lists.
3) Do NOT remove filler words, repetitions or hesitations. If the transcript repeats something,
   the output repeats it too.
4) Use H2/H3 headings when the topic clearly shifts (e.g. "definition", "example", "background",
   "method", "result").
5) Turn spoken enumerations ("first/second", "1) ... 2) ...") into bullet lists.
6) Keep examples, definitions, equations, code, units and numbers UNCHANGED.
7) Timestamps: keep them exactly as they appear in the input. Never move them and never invent new ones.
8) Output Markdown only. No explanation, no JSON, no commentary.

Formatting contract:
- Start with exactly one H1 heading at the top.
- Use H2/H3 for topics and subsections.
- Use "-" for bullet lists.
- Mark code with fenced code blocks. Leave equations as in the source.
- One blank line between blocks. No extra text.

Final check before answering:
- Verify that every input line appears in the output with the same words in the same order;
  only light punctuation and headings may have been added.
- Reply with the Markdown only.
"""


def format_transcript(segments: list[FormatSegment]) -> str:
    return render_lines(normalize(segments))


def build_user_prompt(language: str, formatted_transcript: str) -> str:
    return f"""\
Language: {language}

Raw transcript (one line per utterance, in the original language):
{formatted_transcript}

Produce Markdown only:
- One H1 title at the top (a short, neutral title; otherwise "Lecture notes").
- H2/H3 when the topic shifts.
- Bullet lists ("- ") for enumerations.
- Keep every original line in the same order. You may add light punctuation/capitalization
  and headings, but you must not shorten, translate, change words or add new information.
- Keep any timestamps exactly as in the input."""


def build_prompts(language: str, segments: list[FormatSegment]) -> list[dict[str, str]]:
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": build_user_prompt(language, format_transcript(segments))},
    ]
