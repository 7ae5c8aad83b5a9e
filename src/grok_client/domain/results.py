"""Typed, immutable result models built from decoded response bodies.

Each model validates its mandatory array at construction time (``choices``
for chat, completion and image responses, ``data`` for embeddings) and
raises ``ParseError`` if it is absent or malformed. Attributes are
extracted once; derived accessors read from the stored choices.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from typing import Any, Self

from grok_client.domain.exceptions import ParseError


def _number(value: Any, cast: type[int] | type[float]) -> int | float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return cast(0)
    return cast(value) if value >= 0 else cast(0)


@dataclass(slots=True, frozen=True)
class Usage:
    """Token and cost accounting for one response.

    Every field defaults to zero, so the record always has the same shape
    whatever the service returned.
    """

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    prompt_characters: int = 0
    response_characters: int = 0
    cost: float = 0.0
    latency_ms: float = 0.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> Usage:
        if not isinstance(data, Mapping):
            return cls()
        return cls(
            prompt_tokens=_number(data.get("prompt_tokens"), int),
            completion_tokens=_number(data.get("completion_tokens"), int),
            total_tokens=_number(data.get("total_tokens"), int),
            prompt_characters=_number(data.get("prompt_characters"), int),
            response_characters=_number(data.get("response_characters"), int),
            cost=_number(data.get("cost"), float),
            latency_ms=_number(data.get("latency_ms"), float),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _require_list(data: Mapping[str, Any], key: str, label: str) -> list[Any]:
    if not isinstance(data, Mapping):
        raise ParseError(f"Invalid {label} format: expected an object, got {type(data).__name__}")
    value = data.get(key)
    if not isinstance(value, list):
        raise ParseError(f"Invalid {label} format: missing {key} array")
    return value


@dataclass(slots=True, frozen=True)
class _ChoicesResult:
    choices: list[dict[str, Any]]
    id: str = ""
    model: str = ""
    created: int | None = None
    usage: Usage = field(default_factory=Usage)
    system_fingerprint: str | None = None

    _label = "response"

    def __post_init__(self) -> None:
        if not isinstance(self.choices, list):
            raise ParseError(f"Invalid {self._label} format: missing choices array")
        if not isinstance(self.usage, Usage):
            object.__setattr__(self, "usage", Usage.from_dict(self.usage))

    @classmethod
    def _fields_from(cls, data: Mapping[str, Any]) -> dict[str, Any]:
        return {
            "choices": _require_list(data, "choices", cls._label),
            "id": str(data.get("id") or ""),
            "model": str(data.get("model") or ""),
            "created": data.get("created"),
            "usage": Usage.from_dict(data.get("usage")),
            "system_fingerprint": data.get("system_fingerprint"),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        return cls(**cls._fields_from(data))

    @property
    def _first(self) -> Mapping[str, Any]:
        first = self.choices[0] if self.choices else {}
        return first if isinstance(first, Mapping) else {}

    @property
    def _first_message(self) -> Mapping[str, Any]:
        message = self._first.get("message")
        return message if isinstance(message, Mapping) else {}

    @property
    def finish_reason(self) -> str | None:
        return self._first.get("finish_reason")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "model": self.model,
            "created": self.created,
            "choices": self.choices,
            "usage": self.usage.to_dict(),
            "system_fingerprint": self.system_fingerprint,
        }


@dataclass(slots=True, frozen=True)
class ChatMessage(_ChoicesResult):
    """Result of a chat completion, or one streamed chat chunk.

    A streamed chunk carries ``delta`` instead of ``message`` in its first
    choice; see ``is_stream_chunk``.
    """

    _label = "response"

    @property
    def content(self) -> str:
        content = self._first_message.get("content")
        return content if isinstance(content, str) else ""

    @property
    def role(self) -> str:
        return self._first_message.get("role") or "assistant"

    @property
    def is_stream_chunk(self) -> bool:
        return "delta" in self._first

    @property
    def stream_content(self) -> str:
        delta = self._first.get("delta")
        if not isinstance(delta, Mapping):
            return ""
        return delta.get("content") or ""

    @property
    def is_stream_finished(self) -> bool:
        return self.finish_reason is not None

    @property
    def prompt_tokens(self) -> int:
        return self.usage.prompt_tokens

    @property
    def completion_tokens(self) -> int:
        return self.usage.completion_tokens

    @property
    def total_tokens(self) -> int:
        return self.usage.total_tokens

    def __str__(self) -> str:
        return self.stream_content if self.is_stream_chunk else self.content


@dataclass(slots=True, frozen=True)
class Completion(_ChoicesResult):
    """Result of a text completion."""

    provider: str = ""

    _label = "completion"

    @classmethod
    def _fields_from(cls, data: Mapping[str, Any]) -> dict[str, Any]:
        fields = super(Completion, cls)._fields_from(data)
        fields["provider"] = str(data.get("provider") or "")
        return fields

    @property
    def text(self) -> str:
        content = self._first_message.get("content")
        if isinstance(content, str):
            return content
        text = self._first.get("text")
        return text if isinstance(text, str) else ""

    @property
    def stream_content(self) -> str:
        delta = self._first.get("delta")
        if isinstance(delta, Mapping):
            return delta.get("content") or ""
        return self.text

    def with_choice(self, choice: dict[str, Any]) -> Completion:
        """Copy of this completion holding only ``choice``."""
        return Completion(
            choices=[choice],
            id=self.id,
            model=self.model,
            created=self.created,
            usage=self.usage,
            system_fingerprint=self.system_fingerprint,
            provider=self.provider,
        )

    def to_dict(self) -> dict[str, Any]:
        data = super(Completion, self).to_dict()
        data["provider"] = self.provider
        return data

    def __str__(self) -> str:
        return self.text


@dataclass(slots=True, frozen=True)
class ImageAnalysis(_ChoicesResult):
    """Result of a vision request.

    The first choice's message content is either plain text or a list of
    typed parts; text parts form the analysis, image parts carry URLs.
    """

    metadata: dict[str, Any] | None = None

    _label = "image response"

    @classmethod
    def _fields_from(cls, data: Mapping[str, Any]) -> dict[str, Any]:
        fields = super(ImageAnalysis, cls)._fields_from(data)
        fields["metadata"] = data.get("metadata")
        return fields

    @property
    def _parts(self) -> list[Mapping[str, Any]]:
        content = self._first_message.get("content")
        if not isinstance(content, list):
            return []
        return [part for part in content if isinstance(part, Mapping)]

    @property
    def analysis(self) -> str:
        content = self._first_message.get("content")
        if isinstance(content, str):
            return content
        return " ".join(str(part.get("text", "")) for part in self._parts if part.get("type") == "text")

    @property
    def image_url(self) -> str | None:
        for part in self._parts:
            if part.get("type") in ("image", "image_url"):
                image = part.get("image_url")
                return image.get("url") if isinstance(image, Mapping) else image
        return None

    def contains(self, keyword: str) -> bool:
        return keyword.lower() in self.analysis.lower()

    def to_dict(self) -> dict[str, Any]:
        data = super(ImageAnalysis, self).to_dict()
        data["image_url"] = self.image_url
        data["metadata"] = self.metadata
        return data

    def __str__(self) -> str:
        return self.analysis


@dataclass(slots=True, frozen=True)
class EmbeddingResult:
    """Embedding vectors, one per input item, in input order."""

    data: list[dict[str, Any]]
    model: str = ""
    object: str = "list"
    usage: Usage = field(default_factory=Usage)

    def __post_init__(self) -> None:
        if not isinstance(self.data, list):
            raise ParseError("Invalid embedding response format: missing data array")
        if not isinstance(self.usage, Usage):
            object.__setattr__(self, "usage", Usage.from_dict(self.usage))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EmbeddingResult:
        items = _require_list(data, "data", "embedding response")
        return cls(
            data=items,
            model=str(data.get("model") or ""),
            object=str(data.get("object") or "list"),
            usage=Usage.from_dict(data.get("usage")),
        )

    @property
    def embeddings(self) -> list[list[float]]:
        items = [item for item in self.data if isinstance(item, Mapping)]
        if all(isinstance(item.get("index"), int) for item in items):
            items = sorted(items, key=lambda item: item["index"])
        return [list(item.get("embedding") or []) for item in items]

    def __len__(self) -> int:
        return len(self.data)

    def to_dict(self) -> dict[str, Any]:
        return {
            "object": self.object,
            "data": self.data,
            "model": self.model,
            "usage": self.usage.to_dict(),
        }


__all__ = ["ChatMessage", "Completion", "EmbeddingResult", "ImageAnalysis", "Usage"]
