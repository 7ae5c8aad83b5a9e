"""Text completions facade."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

from grok_client.core.request_builder import (
    build_completion_request,
    build_tokenize_request,
    ensure_streaming_supported,
)
from grok_client.core.response_parser import ResponseKind, parse, parse_stream
from grok_client.core.transport import Transport
from grok_client.domain.exceptions import ParseError
from grok_client.domain.params import Params
from grok_client.domain.results import Completion
from grok_client.domain.value_objects import Model

COMPLETIONS_PATH = "/v1/completions"
TOKENIZE_PATH = "/v1/tokenize"


class Completions:
    """Raw-prompt text completions bound to one transport and model."""

    __slots__ = ("transport", "model")

    def __init__(self, transport: Transport, model: Model | str = Model.GROK_2_1212) -> None:
        self.transport = transport
        self.model = Model.from_string(model)

    def create(self, prompt: str, params: Params | None = None) -> Completion:
        payload = build_completion_request(prompt, params, self.model)
        response = self.transport.post(COMPLETIONS_PATH, payload, operation="completion", model=self.model.value)
        return parse(response, ResponseKind.COMPLETION)

    def create_multiple(self, prompt: str, n: int = 3, params: Params | None = None) -> list[Completion]:
        """Request ``n`` alternatives in one call.

        Each returned Completion holds one choice; ``id``, ``model`` and
        ``usage`` of the single response are repeated on every element.

        Raises:
            ValidationError: If ``n`` is outside 1..10. No request is sent.
            ParseError: If the response does not carry exactly ``n`` choices.
        """
        request_params = (params.copy() if params is not None else Params()).n(n)
        result = self.create(prompt, request_params)
        if len(result.choices) != n:
            raise ParseError(
                f"Expected {n} choices, received {len(result.choices)}",
                request_id=result.id or None,
                context={"expected": n, "received": len(result.choices)},
            )
        return [result.with_choice(choice) for choice in result.choices]

    def iter_stream(self, prompt: str, params: Params | None = None) -> Iterator[Completion]:
        """Stream a completion as decoded chunks."""
        payload = build_completion_request(prompt, params, self.model, stream=True)
        ensure_streaming_supported(self.model)
        lines = self.transport.stream_lines(
            COMPLETIONS_PATH, payload, operation="completion_stream", model=self.model.value
        )
        return parse_stream(lines, ResponseKind.COMPLETION)

    def stream(
        self,
        prompt: str,
        callback: Callable[[Completion], Any],
        params: Params | None = None,
    ) -> str:
        """Stream a completion, invoking ``callback`` once per chunk.

        Returns:
            The concatenated streamed text.
        """
        parts: list[str] = []
        for chunk in self.iter_stream(prompt, params):
            callback(chunk)
            parts.append(chunk.stream_content)
        return "".join(parts)

    def get_token_count(self, text: str) -> int:
        """Count the tokens the service assigns to ``text``.

        Raises:
            ValidationError: If ``text`` is empty.
            ParseError: If the response carries no integer ``token_count``.
        """
        data = self.transport.post_json(
            TOKENIZE_PATH, build_tokenize_request(text), operation="tokenize", model=self.model.value
        )
        count = data.get("token_count") if isinstance(data, dict) else None
        if not isinstance(count, int) or isinstance(count, bool):
            raise ParseError(f"Tokenize response has no token_count: {data!r}")
        return count


__all__ = ["COMPLETIONS_PATH", "Completions", "TOKENIZE_PATH"]
