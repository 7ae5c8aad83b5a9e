"""Synchronous Grok API client.

``GrokClient`` is the entry point of the library. It validates the
configuration, owns the HTTP transport and hands out endpoint facades
bound to the selected model.

Key behaviors:
    - Explicit construction only; there is no process-wide client
    - ``with_model`` returns a client sharing the same config and transport
    - Facades returned by ``chat()``, ``completions()``, ``images()`` and
      ``embeddings()`` are cheap; create them per use or keep them
    - ``close()`` releases the pooled connections of every client sharing
      the transport

Thread safety:
    - The configuration is immutable and the transport session may be
      shared, but a ``Chat`` session must not receive concurrent ``send``
      calls
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable
from typing import Any

import pydantic

from grok_client.client.chat import Chat
from grok_client.client.completions import Completions
from grok_client.client.embeddings import Embeddings
from grok_client.client.images import Images
from grok_client.core.config import GrokConfig, get_settings
from grok_client.core.request_builder import MessageInput
from grok_client.core.transport import Transport
from grok_client.domain.exceptions import ConfigurationError
from grok_client.domain.value_objects import Model

logger = logging.getLogger(__name__)


def _resolve_config(config: GrokConfig | None, api_key: str | None, options: dict[str, Any]) -> GrokConfig:
    if "default_model" in options:
        options["default_model"] = Model.from_string(options["default_model"])
    if api_key is not None:
        options["api_key"] = api_key
    try:
        if config is None:
            return GrokConfig(**options)
        return dataclasses.replace(config, **options) if options else config
    except TypeError as exc:
        raise ConfigurationError(f"Invalid client option: {exc}") from exc


class GrokClient:
    """Client for the Grok chat, completion, vision and embedding APIs.

    Args:
        config: Complete configuration. Keyword options override its fields.
        api_key: Bearer token; required unless carried by ``config``.
        **options: Any other ``GrokConfig`` field, e.g. ``timeout=60``.

    Raises:
        ConfigurationError: If the API key is empty or an option is unknown.

    Example:
        >>> with GrokClient(api_key="xai-...") as client:
        ...     reply = client.chat().send("Hello")
        ...     print(reply.content)
    """

    __slots__ = ("_config", "_transport", "_model")

    def __init__(self, config: GrokConfig | None = None, *, api_key: str | None = None, **options: Any) -> None:
        self._config = _resolve_config(config, api_key, options)
        if not self._config.api_key or not self._config.api_key.strip():
            raise ConfigurationError("API key is required")
        self._transport = Transport(self._config)
        self._model = self._config.default_model
        logger.debug("GrokClient created for %s with model %s", self._config.url, self._model.value)

    @classmethod
    def from_env(cls, **options: Any) -> GrokClient:
        """Build a client from ``GROK_*`` environment variables (and ``.env``).

        Raises:
            ConfigurationError: If a ``GROK_*`` value is missing or invalid.
        """
        try:
            settings = get_settings()
        except pydantic.ValidationError as exc:
            raise ConfigurationError(f"Invalid environment configuration: {exc}") from exc
        return cls(settings.to_config(), **options)

    @classmethod
    def _bind(cls, config: GrokConfig, transport: Transport, model: Model) -> GrokClient:
        client = cls.__new__(cls)
        client._config = config
        client._transport = transport
        client._model = model
        return client

    @property
    def config(self) -> GrokConfig:
        return self._config

    @property
    def model(self) -> Model:
        return self._model

    @property
    def transport(self) -> Transport:
        return self._transport

    def with_model(self, model: Model | str) -> GrokClient:
        """Client for ``model`` sharing this client's config and transport.

        Raises:
            ValidationError: If ``model`` names no supported model.
        """
        return self._bind(self._config, self._transport, Model.from_string(model))

    def chat(self) -> Chat:
        """New chat session with an empty history."""
        return Chat(self._transport, self._model)

    def begin_conversation(self, history: Iterable[MessageInput] = ()) -> Chat:
        """New chat session seeded with ``history``."""
        return Chat(self._transport, self._model, history)

    def completions(self) -> Completions:
        return Completions(self._transport, self._model)

    def images(self) -> Images:
        return Images(self._transport, self._model)

    def embeddings(self) -> Embeddings:
        return Embeddings(self._transport, self._model)

    def close(self) -> None:
        self._transport.close()

    def __enter__(self) -> GrokClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"GrokClient(base_url={self._config.url!r}, model={self._model.value!r})"


__all__ = ["GrokClient"]
