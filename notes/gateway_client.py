from __future__ import annotations

import logging

import httpx

from common.results import FormatFailure, FormatResult, FormatSuccess
from common.schemas import FormatRequest, FormatSegment

logger = logging.getLogger(__name__)


async def request_markdown(
    segments: list[FormatSegment],
    language: str,
    url: str,
    timeout: float = 120.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FormatResult:
    """POST the segments to the formatting endpoint once. Never raises on failure."""
    payload = FormatRequest(language=language, segments=segments).model_dump()

    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            resp = await client.post(url, json=payload)
    except httpx.HTTPError as exc:
        logger.warning("Formatter unreachable: %s", exc)
        return FormatFailure(kind="transport", detail=str(exc) or exc.__class__.__name__)

    try:
        data = resp.json()
    except ValueError:
        data = None

    if resp.status_code != 200:
        if isinstance(data, dict):
            kind = str(data.get("error") or f"http_{resp.status_code}")
            detail = str(data.get("detail") or resp.text)
        else:
            kind, detail = f"http_{resp.status_code}", resp.text
        return FormatFailure(kind=kind, detail=detail)

    if not isinstance(data, dict) or not isinstance(data.get("markdown"), str):
        return FormatFailure(kind="invalid_response", detail="Response has no markdown field")
    return FormatSuccess(markdown=data["markdown"])
