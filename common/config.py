import math

from pydantic import field_validator
from pydantic_settings import BaseSettings

DEFAULT_PAUSE_THRESHOLD_MS = 1500
MIN_PAUSE_THRESHOLD_MS = 500


def clamp_pause_threshold(value: float | None) -> int:
    """Return a usable pause threshold; unset or zero falls back to the default."""
    if not value or not math.isfinite(value):
        return DEFAULT_PAUSE_THRESHOLD_MS
    return max(MIN_PAUSE_THRESHOLD_MS, int(value))


class GatewaySettings(BaseSettings):
    host: str = "0.0.0.0"
    port: int = 8000
    max_sessions: int = 1
    formatter_url: str = "http://localhost:8002/api/format"
    formatter_timeout_s: float = 120.0
    language: str = "sv-SE"
    pause_threshold_ms: int = DEFAULT_PAUSE_THRESHOLD_MS

    model_config = {"env_prefix": "GATEWAY_"}

    @field_validator("pause_threshold_ms", mode="before")
    @classmethod
    def _floor_pause_threshold(cls, value):
        return clamp_pause_threshold(float(value) if value not in (None, "") else None)


class OpenAISettings(BaseSettings):
    api_key: str = ""
    org_id: str | None = None
    project: str | None = None
    model: str = "gpt-4o-mini"
    base_url: str = "https://api.openai.com/v1"

    model_config = {"env_prefix": "OPENAI_"}


class FormatterSettings(BaseSettings):
    host: str = "0.0.0.0"
    port: int = 8002
    temperature: float = 0.2
    timeout_s: float = 120.0
    default_language: str = "sv-SE"

    model_config = {"env_prefix": "FORMATTER_"}
