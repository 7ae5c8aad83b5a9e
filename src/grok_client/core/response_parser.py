"""Decode HTTP responses into typed result models.

Key behaviors:
    - Undecodable bodies raise ParseError carrying the HTTP status
    - Bodies with a top-level ``error``/``errors``/``message`` key raise ApiError
    - Successful bodies are dispatched to the result model for the
      requested ``ResponseKind``
    - Server-sent-event lines are framed by ``parse_stream_chunk``, which
      drops undecodable keep-alive lines instead of failing
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from enum import StrEnum
from types import MappingProxyType
from typing import Any, Final

import requests

from grok_client.domain.exceptions import ApiError, ParseError
from grok_client.domain.results import ChatMessage, Completion, EmbeddingResult, ImageAnalysis, Usage

logger = logging.getLogger(__name__)

STREAM_PREFIX: Final = "data:"
STREAM_DONE_MARKER: Final = "[DONE]"

STREAM_DONE: Final[Mapping[str, Any]] = MappingProxyType({"done": True})
"""Sentinel returned by ``parse_stream_chunk`` for the terminal line. Compare with ``is``."""


class ResponseKind(StrEnum):
    """Result model a response body is parsed into."""

    CHAT = "chat"
    COMPLETION = "completion"
    IMAGE = "image"
    EMBEDDING = "embedding"


_RESULT_TYPES: Final = {
    ResponseKind.CHAT: ChatMessage,
    ResponseKind.COMPLETION: Completion,
    ResponseKind.IMAGE: ImageAnalysis,
    ResponseKind.EMBEDDING: EmbeddingResult,
}


@dataclass(slots=True, frozen=True)
class RateLimitInfo:
    """Rate-limit state reported in response headers; zero when absent."""

    limit: int = 0
    remaining: int = 0
    reset: int = 0

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> RateLimitInfo:
        def read(name: str) -> int:
            try:
                return int(headers.get(name) or 0)
            except ValueError:
                return 0

        return cls(
            limit=read("x-ratelimit-limit"),
            remaining=read("x-ratelimit-remaining"),
            reset=read("x-ratelimit-reset"),
        )


def request_id_of(response: requests.Response) -> str | None:
    return response.headers.get("x-request-id")


def decode_json(response: requests.Response) -> Any:
    """Decode the response body as JSON.

    Raises:
        ParseError: If the body is not valid JSON. Carries the HTTP status.
    """
    try:
        return response.json()
    except ValueError as exc:
        raise ParseError(
            f"Failed to decode API response: {exc}",
            code=response.status_code,
            request_id=request_id_of(response),
        ) from exc


def check_for_errors(
    data: Any,
    code: int | None = None,
    request_id: str | None = None,
) -> None:
    """Raise ApiError if a decoded body carries an error key."""
    if not isinstance(data, Mapping):
        return
    error = ApiError.from_body(data, code=code, request_id=request_id)
    if error is not None:
        raise error


def parse_body(data: Any, kind: ResponseKind | str) -> ChatMessage | Completion | ImageAnalysis | EmbeddingResult:
    """Build the result model for ``kind`` from an already-decoded body.

    Raises:
        ValueError: If ``kind`` is not a ``ResponseKind`` (programming error).
        ParseError: If the body is not an object or lacks mandatory fields.
    """
    try:
        result_type = _RESULT_TYPES[ResponseKind(kind)]
    except ValueError:
        raise ValueError(f"Unknown response type: {kind}") from None

    if not isinstance(data, Mapping):
        raise ParseError(f"Expected JSON object response, got {type(data).__name__}")
    return result_type.from_dict(data)


def parse(
    response: requests.Response, kind: ResponseKind | str
) -> ChatMessage | Completion | ImageAnalysis | EmbeddingResult:
    """Decode ``response`` and parse it into the result model for ``kind``."""
    try:
        kind = ResponseKind(kind)
    except ValueError:
        raise ValueError(f"Unknown response type: {kind}") from None

    data = decode_json(response)
    request_id = request_id_of(response)
    check_for_errors(data, code=response.status_code, request_id=request_id)
    try:
        return parse_body(data, kind)
    except ParseError as exc:
        exc.code = exc.code or response.status_code
        exc.request_id = exc.request_id or request_id
        raise


def parse_stream_chunk(raw: str | bytes | None) -> Mapping[str, Any] | None:
    """Frame one line of a server-sent-event stream.

    Returns:
        The decoded chunk, ``STREAM_DONE`` for the terminal ``[DONE]`` line,
        or None for blank, comment or undecodable lines.
    """
    if not raw:
        return None
    line = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
    line = line.strip()
    if line.startswith(STREAM_PREFIX):
        line = line[len(STREAM_PREFIX) :].strip()
    if not line or line.startswith(":"):
        return None
    if line == STREAM_DONE_MARKER:
        return STREAM_DONE

    try:
        data = json.loads(line)
    except json.JSONDecodeError:
        logger.debug("Dropping undecodable stream line: %s", line[:200])
        return None
    return data if isinstance(data, dict) else None


def parse_stream(
    lines: Iterable[str | bytes], kind: ResponseKind | str = ResponseKind.CHAT
) -> Iterator[ChatMessage | Completion]:
    """Turn server-sent-event lines into result models, in arrival order.

    Stops at the ``[DONE]`` line, which is never yielded. A chunk carrying
    an error key raises ApiError.
    """
    result_type = {ResponseKind.CHAT: ChatMessage, ResponseKind.COMPLETION: Completion}.get(ResponseKind(kind))
    if result_type is None:
        raise ValueError(f"Streaming is not supported for response type: {kind}")

    for line in lines:
        chunk = parse_stream_chunk(line)
        if chunk is None:
            continue
        if chunk is STREAM_DONE:
            return
        check_for_errors(chunk)
        yield result_type.from_dict(chunk)


def is_streaming_response(response: requests.Response) -> bool:
    return "text/event-stream" in response.headers.get("content-type", "")


def extract_usage(data: Mapping[str, Any]) -> Usage:
    return Usage.from_dict(data.get("usage"))


def extract_system_fingerprint(data: Mapping[str, Any]) -> str | None:
    return data.get("system_fingerprint")


def parse_multimodal_content(data: Mapping[str, Any]) -> dict[str, list[Any]]:
    """Group the first choice's typed content parts by type.

    Text parts contribute their text and image parts their URL; other
    parts are kept whole.
    """
    content: dict[str, list[Any]] = {}
    try:
        parts = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return content
    if not isinstance(parts, list):
        return content

    for part in parts:
        if not isinstance(part, Mapping) or "type" not in part:
            continue
        match part["type"]:
            case "text":
                value = part.get("text")
            case "image" | "image_url":
                image = part.get("image_url")
                value = image.get("url") if isinstance(image, Mapping) else image
            case _:
                value = dict(part)
        content.setdefault(part["type"], []).append(value)
    return content


__all__ = [
    "STREAM_DONE",
    "RateLimitInfo",
    "ResponseKind",
    "check_for_errors",
    "decode_json",
    "extract_system_fingerprint",
    "extract_usage",
    "is_streaming_response",
    "parse",
    "parse_body",
    "parse_multimodal_content",
    "parse_stream",
    "parse_stream_chunk",
    "request_id_of",
]
