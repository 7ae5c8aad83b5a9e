"""Structured output: constrain a chat generation to a JSON Schema.

The coordinator resolves the caller's schema (a literal mapping, a
``DataModel`` subclass or a pydantic model class), sends it as the chat
request's ``response_format``, decodes the assistant content as a JSON
object and hydrates the caller's record type from it.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from grok_client.domain.exceptions import ParseError
from grok_client.domain.params import Params
from grok_client.domain.schema import SchemaDescriptor, resolve_schema

if TYPE_CHECKING:
    from grok_client.client.chat import Chat
    from grok_client.core.request_builder import MessageInput

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ResponseFormat:
    """The ``response_format`` value sent with a structured request."""

    schema: dict[str, Any]
    strict: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "json_schema",
            "json_schema": {
                "strict": self.strict,
                "schema": self.schema,
            },
        }


def decode_structured_content(content: str) -> dict[str, Any]:
    """Decode assistant content that must be a single JSON object.

    Raises:
        ParseError: If the content is not valid JSON or not an object.
    """
    try:
        data = json.loads(content)
    except (TypeError, json.JSONDecodeError) as exc:
        raise ParseError(f"Structured response is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ParseError(f"Structured response must be a JSON object, got {type(data).__name__}")
    return data


class StructuredOutputCoordinator:
    """Runs schema-constrained generations through a ``Chat`` facade."""

    __slots__ = ("_chat", "strict")

    def __init__(self, chat: Chat, *, strict: bool = True) -> None:
        self._chat = chat
        self.strict = strict

    def generate(
        self,
        prompt: str | Sequence[MessageInput],
        schema_or_type: Any,
        params: Params | None = None,
    ) -> Any:
        """Generate a response conforming to ``schema_or_type``.

        Args:
            prompt: A prompt string or a full message list.
            schema_or_type: JSON-Schema mapping, ``DataModel`` subclass or
                pydantic model class.
            params: Optional generation parameters.

        Returns:
            An instance of the record type, or the decoded dict when a raw
            mapping was given.

        Raises:
            ValidationError: If the schema cannot be resolved. Raised before
                any request is sent.
            ParseError: If the response content is not a JSON object or does
                not fit the record type.
        """
        descriptor: SchemaDescriptor = resolve_schema(schema_or_type)
        response_format = ResponseFormat(descriptor.schema, strict=self.strict)

        response = self._chat.generate(prompt, params, response_format=response_format.to_dict())
        data = decode_structured_content(response.content)
        logger.debug("Hydrating structured response as %s", descriptor.name or "dict")
        return descriptor.build(data)


__all__ = ["ResponseFormat", "StructuredOutputCoordinator", "decode_structured_content"]
