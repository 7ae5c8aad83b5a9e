"""Chat endpoint facade.

A ``Chat`` is a conversation session: it owns an ordered, append-only
message history that ``send`` extends with each exchange. The stateless
operations (``generate``, ``conversation``, ``stream``) never touch the
history.

A session is not safe for concurrent ``send`` calls; give each thread its
own session via ``GrokClient.chat()``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from typing import Any

from grok_client.client.structured import StructuredOutputCoordinator
from grok_client.core.request_builder import (
    MessageInput,
    build_chat_request,
    ensure_streaming_supported,
    validate_messages,
    validate_prompt,
)
from grok_client.core.response_parser import ResponseKind, parse, parse_stream
from grok_client.core.transport import Transport
from grok_client.domain.params import Params
from grok_client.domain.results import ChatMessage
from grok_client.domain.value_objects import Message, Model

logger = logging.getLogger(__name__)

CHAT_PATH = "/v1/chat/completions"


def _as_messages(prompt_or_messages: str | Sequence[MessageInput]) -> list[Message]:
    if isinstance(prompt_or_messages, str):
        return [Message.user(validate_prompt(prompt_or_messages))]
    return validate_messages(prompt_or_messages)


class Chat:
    """Chat completions bound to one transport and model.

    Attributes:
        transport: Shared HTTP transport.
        model: Model used for every request of this session.
    """

    __slots__ = ("transport", "model", "_history")

    def __init__(
        self,
        transport: Transport,
        model: Model | str = Model.GROK_2_1212,
        history: Iterable[MessageInput] = (),
    ) -> None:
        self.transport = transport
        self.model = Model.from_string(model)
        self._history: list[Message] = [Message.from_dict(m) for m in history]

    @property
    def history(self) -> tuple[Message, ...]:
        """Snapshot of the conversation so far."""
        return tuple(self._history)

    def with_history(self, messages: Iterable[MessageInput]) -> Chat:
        """New session on the same transport and model, seeded with ``messages``."""
        return Chat(self.transport, self.model, messages)

    def clear_history(self) -> None:
        self._history.clear()

    def send(self, message: str, params: Params | None = None) -> ChatMessage:
        """Send a user message as the next turn of this conversation.

        The full history is sent with the new message. On success the user
        message and the assistant reply are appended to the history; on
        failure the history is left unchanged.

        Raises:
            ValidationError: If ``message`` is empty.
        """
        user_message = Message.user(validate_prompt(message, "message"))
        response = self._dispatch([*self._history, user_message], params, operation="chat")
        self._history.extend((user_message, Message.assistant(response.content)))
        return response

    def generate(
        self,
        prompt_or_messages: str | Sequence[MessageInput],
        params: Params | None = None,
        *,
        response_format: Mapping[str, Any] | None = None,
    ) -> ChatMessage:
        """One-shot chat completion from a prompt or a message list."""
        return self._dispatch(
            _as_messages(prompt_or_messages),
            params,
            operation="chat",
            response_format=response_format,
        )

    def conversation(self, messages: Sequence[MessageInput], params: Params | None = None) -> ChatMessage:
        """Chat completion over an explicit message list, ignoring the session history."""
        return self._dispatch(validate_messages(messages), params, operation="conversation")

    def stream(
        self,
        prompt_or_messages: str | Sequence[MessageInput],
        params: Params | None = None,
    ) -> Iterator[ChatMessage]:
        """Stream a chat completion as decoded chunks.

        The request is validated and sent before this returns; chunks are
        read as the iterator is consumed.

        Raises:
            ValidationError: If the input is empty or the model cannot stream.
        """
        messages = _as_messages(prompt_or_messages)
        ensure_streaming_supported(self.model)
        payload = build_chat_request(messages, params, self.model, stream=True)
        lines = self.transport.stream_lines(CHAT_PATH, payload, operation="chat_stream", model=self.model.value)
        return parse_stream(lines, ResponseKind.CHAT)

    def stream_chat(
        self,
        prompt_or_messages: str | Sequence[MessageInput],
        callback: Callable[[ChatMessage], Any],
        params: Params | None = None,
    ) -> str:
        """Stream a chat completion, invoking ``callback`` once per chunk.

        Returns:
            The concatenated streamed text.
        """
        parts: list[str] = []
        for chunk in self.stream(prompt_or_messages, params):
            callback(chunk)
            parts.append(chunk.stream_content)
        return "".join(parts)

    def generate_structured(
        self,
        prompt: str | Sequence[MessageInput],
        schema_or_type: Any,
        params: Params | None = None,
    ) -> Any:
        """Generate JSON conforming to a schema; see ``StructuredOutputCoordinator``."""
        return StructuredOutputCoordinator(self).generate(prompt, schema_or_type, params)

    def _dispatch(
        self,
        messages: list[Message],
        params: Params | None,
        *,
        operation: str,
        response_format: Mapping[str, Any] | None = None,
    ) -> ChatMessage:
        payload = build_chat_request(messages, params, self.model, response_format=response_format)
        response = self.transport.post(CHAT_PATH, payload, operation=operation, model=self.model.value)
        result = parse(response, ResponseKind.CHAT)
        logger.debug("Chat response %s: %d tokens", result.id, result.total_tokens)
        return result

    def __repr__(self) -> str:
        return f"Chat(model={self.model.value!r}, history={len(self._history)} messages)"


__all__ = ["CHAT_PATH", "Chat"]
