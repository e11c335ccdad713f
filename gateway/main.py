from __future__ import annotations

import asyncio
import json
import logging

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from pydantic import BaseModel

from common.clock import format_duration, wall_clock
from common.config import GatewaySettings
from common.schemas import (
    Chunk,
    ChunkMessage,
    ClientMessageType,
    ConvertMessage,
    ErrorMessage,
    FormatSegment,
    LiveMessage,
    NotesMessage,
    RecognitionErrorMessage,
    ResultMessage,
    StartMessage,
    StateMessage,
)
from capture.recognizer import end_event, error_event, events_from_result
from capture.session import CaptureSession
from gateway.session import ClientSession, SessionManager
from notes.converter import NotesConverter
from notes.gateway_client import request_markdown

logger = logging.getLogger(__name__)

settings = GatewaySettings()
app = FastAPI(title="Lecture Notes Gateway")
manager = SessionManager(max_sessions=settings.max_sessions)


async def format_via_service(segments: list[FormatSegment], language: str):
    return await request_markdown(
        segments,
        language,
        url=settings.formatter_url,
        timeout=settings.formatter_timeout_s,
    )


@app.get("/health")
async def health():
    return {"status": "ok", "active_sessions": manager.active_count}


@app.websocket("/capture")
async def capture_endpoint(ws: WebSocket):
    await ws.accept()
    session: ClientSession | None = None
    stream_id = ""
    try:
        # Expect a start message first
        raw = await ws.receive_text()
        msg = json.loads(raw)
        if msg.get("type") != ClientMessageType.start:
            await ws.send_text(ErrorMessage(stream_id="", detail="Expected start message").model_dump_json())
            await ws.close()
            return

        start = StartMessage(**msg)
        stream_id = start.stream_id
        language = start.language or settings.language
        outbox: asyncio.Queue[BaseModel] = asyncio.Queue()

        capture = CaptureSession(
            stream_id,
            scheduler=asyncio.get_running_loop(),
            pause_threshold_ms=start.pause_threshold_ms or settings.pause_threshold_ms,
            on_chunk=lambda chunk: outbox.put_nowait(_chunk_message(stream_id, chunk)),
        )
        session = await manager.create(
            stream_id=stream_id,
            capture=capture,
            converter=NotesConverter(format_via_service, language=language),
            language=language,
        )

        # Everything sent to the client goes through the outbox, in order
        sender_task = asyncio.create_task(_send_outbox(outbox, ws, stream_id))
        try:
            capture.start()
            outbox.put_nowait(_state_message(session))
            while True:
                message = await ws.receive()
                if message.get("type") == "websocket.disconnect":
                    break
                if message.get("text") is None:
                    continue
                try:
                    await _handle_message(session, json.loads(message["text"]), outbox)
                except ValueError as exc:
                    outbox.put_nowait(ErrorMessage(stream_id=stream_id, detail=f"Invalid message: {exc}"))
        finally:
            # No timer or formatting request may outlive the connection
            session.cancel_convert()
            capture.close()
            sender_task.cancel()
            try:
                await sender_task
            except asyncio.CancelledError:
                pass

    except WebSocketDisconnect:
        logger.info("Client disconnected: %s", session.stream_id if session else "unknown")
    except RuntimeError as exc:
        logger.warning("Session error: %s", exc)
        await ws.send_text(ErrorMessage(stream_id=stream_id, detail=str(exc)).model_dump_json())
        await ws.close()
    except ValueError as exc:
        logger.warning("Invalid start message: %s", exc)
        await ws.send_text(ErrorMessage(stream_id="", detail=f"Invalid start message: {exc}").model_dump_json())
        await ws.close()
    except Exception:
        logger.exception("Unexpected error in capture endpoint")
    finally:
        if session:
            await manager.remove(session.stream_id)


async def _handle_message(session: ClientSession, data: dict, outbox: asyncio.Queue) -> None:
    if not isinstance(data, dict):
        raise ValueError("expected a JSON object")
    capture = session.capture
    stream_id = session.stream_id
    kind = data.get("type")

    if kind == ClientMessageType.result:
        result = ResultMessage(**data)
        for event in events_from_result(result.result_index, result.results):
            capture.dispatch(event)
        outbox.put_nowait(LiveMessage(stream_id=stream_id, text=capture.live_text))

    elif kind == ClientMessageType.error:
        error = RecognitionErrorMessage(**data)
        capture.dispatch(error_event(error.error))
        outbox.put_nowait(ErrorMessage(stream_id=stream_id, detail=error.message or error.error))
        outbox.put_nowait(_state_message(session))

    elif kind == ClientMessageType.end:
        capture.dispatch(end_event())
        outbox.put_nowait(_state_message(session))

    elif kind == ClientMessageType.restart:
        try:
            capture.start()
        except RuntimeError as exc:
            outbox.put_nowait(ErrorMessage(stream_id=stream_id, detail=str(exc)))
        outbox.put_nowait(_state_message(session))

    elif kind == ClientMessageType.reset:
        session.cancel_convert()
        capture.reset()
        session.converter.reset()
        outbox.put_nowait(_state_message(session))

    elif kind == ClientMessageType.convert:
        request = ConvertMessage(**data)
        if session.converting:
            outbox.put_nowait(ErrorMessage(stream_id=stream_id, detail="Formatting already in progress"))
            return
        # Formatting can take seconds; keep reading recognizer frames meanwhile
        session.convert_task = asyncio.create_task(
            _convert(session, request.language or session.language, outbox)
        )

    else:
        outbox.put_nowait(ErrorMessage(stream_id=stream_id, detail=f"Unknown message type: {kind}"))


async def _convert(session: ClientSession, language: str, outbox: asyncio.Queue) -> None:
    capture = session.capture
    try:
        notes = await session.converter.convert(
            capture.chunks,
            language=language,
            origin_ms=capture.started_at,
        )
    except RuntimeError as exc:
        outbox.put_nowait(ErrorMessage(stream_id=session.stream_id, detail=str(exc)))
        return
    except Exception:
        logger.exception("Convert failed for %s", session.stream_id)
        outbox.put_nowait(ErrorMessage(stream_id=session.stream_id, detail="Formatting failed"))
        return
    outbox.put_nowait(
        NotesMessage(
            stream_id=session.stream_id,
            markdown=notes.markdown,
            source=notes.source.value,
            error=str(notes.error) if notes.error else None,
        )
    )


def _state_message(session: ClientSession) -> StateMessage:
    elapsed = max(0.0, session.capture.elapsed_ms())
    return StateMessage(
        stream_id=session.stream_id,
        state=session.capture.state.value,
        elapsed_ms=elapsed,
        duration=format_duration(elapsed),
    )


def _chunk_message(stream_id: str, chunk: Chunk) -> ChunkMessage:
    span = f"{wall_clock(chunk.started_at)} → {wall_clock(chunk.ended_at)}"
    return ChunkMessage(stream_id=stream_id, chunk=chunk, span=span)


async def _send_outbox(outbox: asyncio.Queue, ws: WebSocket, stream_id: str) -> None:
    """Forward queued server messages to the client."""
    try:
        while True:
            message = await outbox.get()
            await ws.send_text(message.model_dump_json())
    except WebSocketDisconnect:
        logger.info("Client gone while sending to %s", stream_id)
    except Exception:
        logger.exception("Send error for %s", stream_id)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
