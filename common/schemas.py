from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel


# --- Transcript data ---

class TranscriptFragment(BaseModel):
    text: str
    is_final: bool
    sequence_index: int


class Chunk(BaseModel):
    id: str
    text: str
    started_at: float
    ended_at: float

    model_config = {"frozen": True}


# --- WebSocket messages: client ↔ gateway ---

class ClientMessageType(str, Enum):
    start = "start"
    result = "result"
    error = "error"
    end = "end"
    restart = "restart"
    reset = "reset"
    convert = "convert"


class StartMessage(BaseModel):
    type: ClientMessageType = ClientMessageType.start
    stream_id: str
    language: Optional[str] = None
    pause_threshold_ms: Optional[int] = None


class RecognitionAlternative(BaseModel):
    transcript: str = ""
    confidence: Optional[float] = None


class RecognitionResult(BaseModel):
    is_final: bool = False
    alternatives: list[RecognitionAlternative] = []


class ResultMessage(BaseModel):
    type: ClientMessageType = ClientMessageType.result
    result_index: int = 0
    # results from result_index onwards, in recognizer order
    results: list[RecognitionResult] = []


class RecognitionErrorMessage(BaseModel):
    type: ClientMessageType = ClientMessageType.error
    error: str
    message: Optional[str] = None


class ConvertMessage(BaseModel):
    type: ClientMessageType = ClientMessageType.convert
    language: Optional[str] = None


class ServerMessageType(str, Enum):
    state = "state"
    live = "live"
    chunk = "chunk"
    notes = "notes"
    error = "error"


class StateMessage(BaseModel):
    type: ServerMessageType = ServerMessageType.state
    stream_id: str
    state: str
    elapsed_ms: float = 0
    duration: str = "0:00"


class LiveMessage(BaseModel):
    type: ServerMessageType = ServerMessageType.live
    stream_id: str
    text: str


class ChunkMessage(BaseModel):
    type: ServerMessageType = ServerMessageType.chunk
    stream_id: str
    chunk: Chunk
    span: str = ""


class NotesMessage(BaseModel):
    type: ServerMessageType = ServerMessageType.notes
    stream_id: str
    markdown: str
    source: str
    error: Optional[str] = None


class ErrorMessage(BaseModel):
    type: ServerMessageType = ServerMessageType.error
    stream_id: str
    detail: str


# --- Formatter request / response ---

class FormatSegment(BaseModel):
    start: Optional[float] = None
    end: Optional[float] = None
    text: Optional[str] = ""


class FormatRequest(BaseModel):
    language: Optional[str] = None
    segments: list[FormatSegment] = []


class FormatResponse(BaseModel):
    markdown: str


class FormatErrorResponse(BaseModel):
    error: str = "formatter_failed"
    detail: str
