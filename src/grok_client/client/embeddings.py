"""Embeddings facade."""

from __future__ import annotations

from collections.abc import Sequence

from grok_client.core.request_builder import build_embedding_request
from grok_client.core.response_parser import ResponseKind, parse
from grok_client.core.transport import Transport
from grok_client.domain.params import Params
from grok_client.domain.results import EmbeddingResult
from grok_client.domain.value_objects import Model

EMBEDDINGS_PATH = "/v1/embeddings"


class Embeddings:
    __slots__ = ("transport", "model")

    def __init__(self, transport: Transport, model: Model | str = Model.GROK_2_1212) -> None:
        self.transport = transport
        self.model = Model.from_string(model)

    def create(self, input: str | Sequence[str], params: Params | None = None) -> EmbeddingResult:
        """Embed one string or a list of strings.

        Vectors in the result follow the input order.
        """
        payload = build_embedding_request(input, params, self.model)
        response = self.transport.post(EMBEDDINGS_PATH, payload, operation="embedding", model=self.model.value)
        return parse(response, ResponseKind.EMBEDDING)


__all__ = ["EMBEDDINGS_PATH", "Embeddings"]
