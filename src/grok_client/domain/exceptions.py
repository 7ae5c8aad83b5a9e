"""Error taxonomy for the Grok client.

Every failure raised by the client is a ``GrokError`` carrying a ``kind``
tag, so callers can dispatch exhaustively on the tag instead of relying on
``except`` ordering::

    try:
        client.chat().send("Hello")
    except GrokError as exc:
        match exc.kind:
            case ErrorKind.VALIDATION:
                ...
            case ErrorKind.API | ErrorKind.TRANSPORT:
                ...

Error Kinds:
    - CONFIGURATION: Missing or empty API key at client construction
    - VALIDATION: Malformed caller input, raised before any network call
    - TRANSPORT: Connection failure or non-2xx status without an error body
    - API: Decodable JSON error body returned by the remote service
    - PARSE: Undecodable body or missing mandatory response fields

All errors carry a human-readable message, an optional numeric code (the
HTTP status where applicable), an optional request identifier and an
optional structured context (type/param/code from an API error body).
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from enum import StrEnum
from typing import Any, ClassVar


class ErrorKind(StrEnum):
    """Tag identifying the category of a ``GrokError``."""

    CONFIGURATION = "configuration"
    VALIDATION = "validation"
    TRANSPORT = "transport"
    API = "api"
    PARSE = "parse"


class GrokError(Exception):
    """Base exception for all client errors.

    Attributes:
        kind: Error category tag.
        message: Human-readable message.
        code: HTTP status or other numeric code. None when not applicable.
        request_id: Remote request identifier, if the service returned one.
        context: Structured context (e.g. type/param/code of an API error).
    """

    kind: ClassVar[ErrorKind]

    def __init__(
        self,
        message: str = "",
        code: int | None = None,
        request_id: str | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.request_id = request_id
        self.context: dict[str, Any] = dict(context or {})

    @property
    def retryable(self) -> bool:
        """Whether the status code qualifies for the retry policy (429 or 5xx)."""
        return self.code is not None and (self.code == 429 or 500 <= self.code <= 599)

    def add_context(self, key: str, value: Any) -> GrokError:
        self.context[key] = value
        return self

    def __str__(self) -> str:
        output = f"[{self.request_id or 'NO_REQUEST_ID'}] {self.message} (Code: {self.code or 0})"
        if self.context:
            output += "\nContext: " + json.dumps(self.context, indent=2, default=str)
        return output


class ConfigurationError(GrokError):
    """Raised when the client is constructed with an unusable configuration."""

    kind = ErrorKind.CONFIGURATION


class ValidationError(GrokError):
    """Raised when caller input is malformed.

    Always raised synchronously before any request is built or sent. Never
    retried.

    Attributes:
        errors: Mapping of field name to the list of messages for that field.
    """

    kind = ErrorKind.VALIDATION

    def __init__(
        self,
        message: str = "",
        errors: Mapping[str, list[str]] | None = None,
        code: int | None = None,
    ) -> None:
        super().__init__(message, code=code)
        self.errors: dict[str, list[str]] = {k: list(v) for k, v in (errors or {}).items()}

    @classmethod
    def for_field(cls, field: str, message: str) -> ValidationError:
        return cls(message, errors={field: [message]})

    def has_error_for(self, field: str) -> bool:
        return field in self.errors

    def errors_for(self, field: str) -> list[str]:
        return self.errors.get(field, [])


class TransportError(GrokError):
    """Raised on network failures or non-2xx responses without an error body."""

    kind = ErrorKind.TRANSPORT


class ApiError(GrokError):
    """Raised when the remote service returns a decodable error body.

    Attributes:
        response_data: The decoded response body.
    """

    kind = ErrorKind.API

    def __init__(
        self,
        message: str = "",
        code: int | None = None,
        request_id: str | None = None,
        context: Mapping[str, Any] | None = None,
        response_data: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code=code, request_id=request_id, context=context)
        self.response_data = dict(response_data) if response_data is not None else None

    @classmethod
    def from_body(
        cls,
        body: Mapping[str, Any],
        code: int | None = None,
        request_id: str | None = None,
    ) -> ApiError | None:
        """Build an ApiError from a decoded body, or None if it carries no error.

        The first of ``error``, ``errors`` and ``message`` present at the top
        level supplies the message. Mapping values contribute their nested
        ``message``; list values are flattened and joined with ``"; "``.
        """
        for key in ERROR_KEYS:
            value = body.get(key)
            if value is None:
                continue

            context: dict[str, Any] = {}
            if isinstance(value, Mapping):
                context = {k: value.get(k) for k in ("type", "param", "code") if k in value}
                request_id = request_id or value.get("request_id")

            return cls(
                format_error_message(value),
                code=code,
                request_id=request_id,
                context=context,
                response_data=body,
            )
        return None


class ParseError(GrokError):
    """Raised when a response body cannot be decoded into a result model."""

    kind = ErrorKind.PARSE


ERROR_KEYS = ("error", "errors", "message")
"""Top-level keys that mark a decoded body as an error response."""


def format_error_message(value: Any) -> str:
    """Flatten an error value from a response body into a single message."""
    match value:
        case str():
            return value
        case Mapping() if "message" in value:
            return str(value["message"])
        case Mapping():
            return json.dumps(dict(value), default=str)
        case list() | tuple():
            parts = []
            for item in value:
                if isinstance(item, Mapping):
                    parts.append(str(item["message"]) if "message" in item else json.dumps(dict(item), default=str))
                else:
                    parts.append(str(item))
            return "; ".join(parts)
        case _:
            return str(value)


__all__ = [
    "ERROR_KEYS",
    "ApiError",
    "ConfigurationError",
    "ErrorKind",
    "GrokError",
    "ParseError",
    "TransportError",
    "ValidationError",
    "format_error_message",
]
