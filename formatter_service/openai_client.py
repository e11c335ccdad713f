from __future__ import annotations

import logging

import httpx

from common.config import FormatterSettings, OpenAISettings

logger = logging.getLogger(__name__)


async def chat_completion(
    messages: list[dict[str, str]],
    settings: OpenAISettings | None = None,
    formatter_settings: FormatterSettings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    """Call the OpenAI chat completions API and return the assistant message content."""
    settings = settings or OpenAISettings()
    formatter_settings = formatter_settings or FormatterSettings()
    url = f"{settings.base_url.rstrip('/')}/chat/completions"

    headers = {"Authorization": f"Bearer {settings.api_key}"}
    if settings.org_id:
        headers["OpenAI-Organization"] = settings.org_id
    if settings.project:
        headers["OpenAI-Project"] = settings.project

    payload = {
        "model": settings.model,
        "temperature": formatter_settings.temperature,
        "messages": messages,
    }

    logger.debug("Requesting %s completion (%d messages)", settings.model, len(messages))
    async with httpx.AsyncClient(timeout=formatter_settings.timeout_s, transport=transport) as client:
        resp = await client.post(url, json=payload, headers=headers)
        resp.raise_for_status()
        data = resp.json()
        return data["choices"][0]["message"]["content"] or ""
