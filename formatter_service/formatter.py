from __future__ import annotations

import logging

import httpx

from common.config import FormatterSettings, OpenAISettings
from common.results import FormatFailure, FormatResult, FormatSuccess
from common.schemas import FormatSegment
from formatter_service import openai_client
from formatter_service.prompts import build_prompts

logger = logging.getLogger(__name__)

EMPTY_NOTES = "# (empty)"


def _status_kind(status_code: int) -> str:
    if status_code in (401, 403):
        return "auth"
    if status_code == 429:
        return "quota"
    return "provider"


async def format_segments(
    language: str,
    segments: list[FormatSegment],
    settings: OpenAISettings | None = None,
    formatter_settings: FormatterSettings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FormatResult:
    """Single formatting attempt against the provider. No retries."""
    settings = settings or OpenAISettings()
    if not settings.api_key:
        return FormatFailure(kind="configuration", detail="OPENAI_API_KEY is not set")

    messages = build_prompts(language, segments)
    try:
        content = await openai_client.chat_completion(
            messages, settings, formatter_settings, transport=transport
        )
    except httpx.HTTPStatusError as exc:
        return FormatFailure(
            kind=_status_kind(exc.response.status_code),
            detail=f"Provider returned {exc.response.status_code}: {exc.response.text}",
        )
    except httpx.HTTPError as exc:
        return FormatFailure(kind="transport", detail=str(exc) or exc.__class__.__name__)
    except (ValueError, KeyError, IndexError, TypeError) as exc:
        return FormatFailure(kind="invalid_response", detail=f"Unexpected provider payload: {exc!r}")

    if not isinstance(content, str):
        return FormatFailure(kind="invalid_response", detail="Provider message content is not text")
    return FormatSuccess(markdown=content.strip() or EMPTY_NOTES)
