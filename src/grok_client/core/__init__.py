"""Core request/response pipeline: configuration, request building, transport and parsing."""

from grok_client.core.config import GrokConfig, GrokSettings, get_settings
from grok_client.core.resilience import RetryConfig, call_with_retry
from grok_client.core.response_parser import STREAM_DONE, RateLimitInfo, ResponseKind, parse, parse_stream_chunk
from grok_client.core.transport import Transport

__all__ = [
    "GrokConfig",
    "GrokSettings",
    "RateLimitInfo",
    "ResponseKind",
    "RetryConfig",
    "STREAM_DONE",
    "Transport",
    "call_with_retry",
    "get_settings",
    "parse",
    "parse_stream_chunk",
]
