"""Configuration for the Grok client.

Two layers:

    - ``GrokConfig``: the resolved, immutable configuration object the client
      is built from. Passed explicitly; never looked up globally.
    - ``GrokSettings``: pydantic-settings loader that reads ``GROK_*``
      environment variables (and an optional ``.env`` file), validates them
      and produces a ``GrokConfig``.

Environment Variables:
    - GROK_API_KEY: API key (required for a usable client)
    - GROK_BASE_URL: API root, must start with http:// or https://
    - GROK_TIMEOUT / GROK_CONNECT_TIMEOUT: Read/connect timeouts in seconds
    - GROK_MAX_RETRIES: Total attempts for 429/5xx responses
    - GROK_RETRY_DELAY: Delay between attempts in milliseconds
    - GROK_RETRY_BACKOFF: "fixed" or "exponential"
    - GROK_STREAM_BUFFER_SIZE: Streaming read size in bytes
    - GROK_DEBUG: Log request payloads at DEBUG level
    - GROK_DEFAULT_MODEL: Model identifier or alias

Usage:
    from grok_client.core.config import get_settings

    client = GrokClient(get_settings().to_config())
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from grok_client.domain.exceptions import GrokError
from grok_client.domain.value_objects import Model

DEFAULT_BASE_URL = "https://api.x.ai"

RetryBackoff = Literal["fixed", "exponential"]


@dataclass(slots=True, frozen=True)
class GrokConfig:
    """Resolved client configuration.

    Immutable, so one instance can be shared by every endpoint facade and
    thread. Time values are in seconds except ``retry_delay``.

    Attributes:
        api_key: Bearer token. Must be non-empty; checked by ``GrokClient``.
        base_url: API root without the ``/v1`` suffix.
        timeout: Read timeout in seconds (default: 30).
        connect_timeout: Connect timeout in seconds (default: 10).
        max_retries: Total attempts for 429/5xx responses (default: 3).
        retry_delay: Delay between attempts in milliseconds (default: 1000).
        retry_backoff: "fixed" waits ``retry_delay`` each time; "exponential"
            doubles it after every attempt.
        stream_buffer_size: Bytes read per chunk while streaming (default: 1024).
        debug: Log request payloads at DEBUG level.
        default_model: Model used when the caller selects none.
    """

    api_key: str = ""
    base_url: str = DEFAULT_BASE_URL
    timeout: float = 30
    connect_timeout: float = 10
    max_retries: int = 3
    retry_delay: int = 1000
    retry_backoff: RetryBackoff = "fixed"
    stream_buffer_size: int = 1024
    debug: bool = False
    default_model: Model = Model.GROK_2_1212

    @property
    def url(self) -> str:
        return self.base_url.rstrip("/")

    @property
    def timeouts(self) -> tuple[float, float]:
        """``(connect, read)`` tuple in the form requests expects."""
        return (self.connect_timeout, self.timeout)


class GrokSettings(BaseSettings):
    """Environment-backed settings producing a ``GrokConfig``."""

    model_config = SettingsConfigDict(
        env_prefix="GROK_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    api_key: str = Field(default="", description="API key")
    base_url: str = Field(default=DEFAULT_BASE_URL, description="API root URL")
    timeout: float = Field(default=30, gt=0, description="Read timeout (seconds)")
    connect_timeout: float = Field(default=10, gt=0, description="Connect timeout (seconds)")
    max_retries: int = Field(default=3, ge=1, le=10, description="Attempts for 429/5xx")
    retry_delay: int = Field(default=1000, ge=0, description="Retry delay (milliseconds)")
    retry_backoff: RetryBackoff = Field(default="fixed", description="Retry delay strategy")
    stream_buffer_size: int = Field(default=1024, ge=1, description="Streaming chunk size (bytes)")
    debug: bool = Field(default=False, description="Log request payloads")
    default_model: str = Field(default=Model.GROK_2_1212.value, description="Default model or alias")

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            msg = "base_url must start with http:// or https://"
            raise ValueError(msg)
        return v.rstrip("/")

    @field_validator("default_model")
    @classmethod
    def validate_default_model(cls, v: str) -> str:
        try:
            return Model.from_string(v).value
        except GrokError as exc:
            raise ValueError(exc.message) from exc

    def to_config(self) -> GrokConfig:
        return GrokConfig(
            api_key=self.api_key,
            base_url=self.base_url,
            timeout=self.timeout,
            connect_timeout=self.connect_timeout,
            max_retries=self.max_retries,
            retry_delay=self.retry_delay,
            retry_backoff=self.retry_backoff,
            stream_buffer_size=self.stream_buffer_size,
            debug=self.debug,
            default_model=Model.from_string(self.default_model),
        )


@lru_cache(maxsize=1)
def get_settings() -> GrokSettings:
    """Load settings from the environment once and cache them."""
    return GrokSettings()


__all__ = ["DEFAULT_BASE_URL", "GrokConfig", "GrokSettings", "get_settings"]
