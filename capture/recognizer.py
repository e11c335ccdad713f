"""Translate recognizer callbacks into :class:`RecognitionEvent` values."""

from __future__ import annotations

from common.schemas import RecognitionResult, TranscriptFragment
from capture.models import EventKind, RecognitionEvent


def _transcript(result: RecognitionResult) -> str:
    if not result.alternatives:
        return ""
    return result.alternatives[0].transcript


def events_from_result(result_index: int, results: list[RecognitionResult]) -> list[RecognitionEvent]:
    """One event per final result, plus one for the combined interim text."""
    events: list[RecognitionEvent] = []
    interim = ""
    interim_index = None
    for offset, result in enumerate(results):
        index = result_index + offset
        if result.is_final:
            fragment = TranscriptFragment(text=_transcript(result), is_final=True, sequence_index=index)
            events.append(RecognitionEvent(kind=EventKind.FRAGMENT_RECEIVED, fragment=fragment))
        else:
            interim += _transcript(result)
            interim_index = index
    if interim_index is not None:
        fragment = TranscriptFragment(text=interim, is_final=False, sequence_index=interim_index)
        events.append(RecognitionEvent(kind=EventKind.FRAGMENT_RECEIVED, fragment=fragment))
    return events


def error_event(code: str) -> RecognitionEvent:
    return RecognitionEvent(kind=EventKind.ERROR, error=code)


def end_event() -> RecognitionEvent:
    return RecognitionEvent(kind=EventKind.SESSION_ENDED)
