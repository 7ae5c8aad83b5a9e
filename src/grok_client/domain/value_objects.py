"""Value objects for the Grok client.

This module defines immutable value objects for model identifiers and chat
messages. Value objects validate themselves on construction so that every
request built from them is well-formed.

Key Value Objects:
    - Model: Supported model identifiers with capability flags and aliases
    - Role: Chat message author role
    - TextPart / ImagePart: Typed parts of multimodal message content
    - Message: One entry of a conversation
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, TypeAlias

from grok_client.domain.exceptions import ValidationError


class Model(StrEnum):
    """Supported Grok model identifiers.

    Attributes:
        GROK_2_1212: General text model.
        GROK_2_VISION_1212: Vision-language model.
        GROK_VISION_BETA: Legacy vision-language model.
        GROK_BETA: Long-context beta text model.
    """

    GROK_2_1212 = "grok-2-1212"
    GROK_2_VISION_1212 = "grok-2-vision-1212"
    GROK_VISION_BETA = "grok-vision-beta"
    GROK_BETA = "grok-2-beta"

    @classmethod
    def from_string(cls, value: str | Model) -> Model:
        """Resolve a canonical model string or alias (case-insensitive).

        Raises:
            ValidationError: If the string names no supported model.
        """
        if isinstance(value, Model):
            return value
        lowered = str(value).strip().lower()
        if lowered in _ALIASES:
            return _ALIASES[lowered]
        try:
            return cls(lowered)
        except ValueError:
            raise ValidationError.for_field("model", f"Unsupported model: {value}") from None

    @classmethod
    def default(cls) -> Model:
        return cls.GROK_2_1212

    @classmethod
    def default_vision(cls) -> Model:
        return cls.GROK_2_VISION_1212

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def supports_vision(self) -> bool:
        return self in (Model.GROK_2_VISION_1212, Model.GROK_VISION_BETA)

    @property
    def supports_streaming(self) -> bool:
        return self in (Model.GROK_2_1212, Model.GROK_BETA)

    @property
    def context_window(self) -> int:
        return _CONTEXT_WINDOWS[self]


_ALIASES: dict[str, Model] = {
    "grok-2": Model.GROK_2_1212,
    "grok-2-latest": Model.GROK_2_1212,
    "grok-2-vision": Model.GROK_2_VISION_1212,
    "grok-2-vision-latest": Model.GROK_2_VISION_1212,
}

_DISPLAY_NAMES: dict[Model, str] = {
    Model.GROK_2_1212: "Grok 2 (1212)",
    Model.GROK_2_VISION_1212: "Grok 2 Vision (1212)",
    Model.GROK_VISION_BETA: "Grok Vision Beta",
    Model.GROK_BETA: "Grok Beta",
}

_CONTEXT_WINDOWS: dict[Model, int] = {
    Model.GROK_2_1212: 32_768,
    Model.GROK_2_VISION_1212: 131_072,
    Model.GROK_VISION_BETA: 8_192,
    Model.GROK_BETA: 131_072,
}


class Role(StrEnum):
    """Author of a chat message."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(slots=True, frozen=True)
class TextPart:
    """Text segment of multimodal content."""

    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": "text", "text": self.text}


@dataclass(slots=True, frozen=True)
class ImagePart:
    """Image reference segment of multimodal content."""

    url: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": "image_url", "image_url": {"url": self.url}}


ContentPart: TypeAlias = TextPart | ImagePart


def _part_from_dict(data: Mapping[str, Any]) -> ContentPart:
    if not isinstance(data, Mapping):
        raise ValidationError.for_field("content", "Each content part must be a mapping")
    match data.get("type"):
        case "text":
            return TextPart(str(data.get("text", "")))
        case "image" | "image_url":
            image = data.get("image_url")
            url = image.get("url") if isinstance(image, Mapping) else image
            if not url:
                raise ValidationError.for_field("content", "Image content part requires a URL")
            return ImagePart(str(url))
        case other:
            raise ValidationError.for_field("content", f"Unsupported content part type: {other!r}")


@dataclass(slots=True, frozen=True)
class Message:
    """One conversation entry.

    Attributes:
        role: Message author. Coerced from str on construction.
        content: Plain text, or an ordered tuple of content parts.

    Raises:
        ValidationError: If the role is not system/user/assistant or the
            content has an unsupported shape.
    """

    role: Role
    content: str | tuple[ContentPart, ...]

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "role", Role(self.role))
        except ValueError:
            raise ValidationError.for_field(
                "role", "Invalid message role. Must be 'system', 'user', or 'assistant'"
            ) from None

        match self.content:
            case str():
                pass
            case list() | tuple():
                parts = tuple(self.content)
                if not all(isinstance(p, (TextPart, ImagePart)) for p in parts):
                    raise ValidationError.for_field("content", "Content parts must be TextPart or ImagePart")
                object.__setattr__(self, "content", parts)
            case _:
                raise ValidationError.for_field("content", "Message content must be a string or a list of parts")

    @classmethod
    def system(cls, content: str) -> Message:
        return cls(Role.SYSTEM, content)

    @classmethod
    def user(cls, content: str | tuple[ContentPart, ...]) -> Message:
        return cls(Role.USER, content)

    @classmethod
    def assistant(cls, content: str | tuple[ContentPart, ...]) -> Message:
        return cls(Role.ASSISTANT, content)

    @classmethod
    def from_dict(cls, data: Message | Mapping[str, Any] | str) -> Message:
        """Normalize a caller-supplied message.

        Plain strings become user messages. Mappings must carry ``role`` and
        ``content``; list content is decoded into typed parts.
        """
        match data:
            case Message():
                return data
            case str():
                return cls(Role.USER, data)
            case Mapping():
                if "role" not in data or "content" not in data:
                    raise ValidationError.for_field("messages", "Each message must have 'role' and 'content' keys")
                content = data["content"]
                if isinstance(content, list | tuple):
                    content = tuple(
                        p if isinstance(p, (TextPart, ImagePart)) else _part_from_dict(p) for p in content
                    )
                elif content is None:
                    content = ""
                return cls(data["role"], content)
            case _:
                raise ValidationError.for_field("messages", "Each message must be a mapping or a string")

    @property
    def is_empty(self) -> bool:
        if isinstance(self.content, str):
            return not self.content.strip()
        return not self.content

    @property
    def text(self) -> str:
        """Text of the message; text parts joined with a single space."""
        if isinstance(self.content, str):
            return self.content
        return " ".join(p.text for p in self.content if isinstance(p, TextPart))

    def to_dict(self) -> dict[str, Any]:
        if isinstance(self.content, str):
            return {"role": self.role.value, "content": self.content}
        return {"role": self.role.value, "content": [p.to_dict() for p in self.content]}


__all__ = ["ContentPart", "ImagePart", "Message", "Model", "Role", "TextPart"]
