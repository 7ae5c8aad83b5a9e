"""Pure functions that turn caller input into transport-ready payloads.

All validation happens here, before anything touches the network:
    - empty prompts, message lists, image URLs and embedding inputs are
      rejected with ValidationError
    - messages are normalized into ``Message`` value objects
    - image URLs must be well-formed and point at a supported format

Payload rules:
    - ``Params.to_payload()`` is merged over the endpoint defaults
    - system messages queued on the params are prepended to chat messages
    - the ``model`` argument always wins over a ``model`` set in params
    - streaming variants force ``stream=True``; every other chat or
      completion request is sent with ``stream=False``
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from importlib.metadata import PackageNotFoundError, version
from pathlib import PurePosixPath
from typing import Any, Final
from urllib.parse import urlparse

from grok_client.domain.exceptions import ValidationError
from grok_client.domain.params import CHAT_DEFAULTS, EMBEDDING_DEFAULTS, Params
from grok_client.domain.value_objects import ImagePart, Message, Model, Role, TextPart

SUPPORTED_IMAGE_FORMATS: Final = ("jpg", "jpeg", "png", "gif", "webp")
DEFAULT_IMAGE_PROMPT: Final = "Analyze this image."

MessageInput = Message | Mapping[str, Any] | str

try:
    _VERSION = version("grok-client")
except PackageNotFoundError:
    _VERSION = "0.0.0"

USER_AGENT: Final = f"grok-client/{_VERSION}"


def build_headers(api_key: str, *, stream: bool = False, extra: Mapping[str, str] | None = None) -> dict[str, str]:
    headers = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
        "Accept": "text/event-stream" if stream else "application/json",
        "User-Agent": USER_AGENT,
    }
    if stream:
        headers["Cache-Control"] = "no-cache"
    if extra:
        headers.update(extra)
    return headers


def validate_messages(messages: Any) -> list[Message]:
    """Normalize a caller-supplied message list.

    Raises:
        ValidationError: If the list is empty or not a sequence, or any
            entry has a bad role or shape.
    """
    if isinstance(messages, (str, bytes, Mapping)) or not isinstance(messages, Sequence):
        raise ValidationError.for_field("messages", "Messages must be a list")
    if not messages:
        raise ValidationError.for_field("messages", "Messages cannot be empty")
    normalized = [Message.from_dict(m) for m in messages]
    if any(m.role is Role.USER and m.is_empty for m in normalized):
        raise ValidationError.for_field("messages", "User message content cannot be empty")
    return normalized


def validate_prompt(prompt: Any, field: str = "prompt") -> str:
    if not isinstance(prompt, str) or not prompt.strip():
        raise ValidationError.for_field(field, f"{field.capitalize()} cannot be empty")
    return prompt


def validate_image_url(url: Any) -> str:
    """Check that ``url`` is a well-formed URL to a supported image format.

    Raises:
        ValidationError: If the URL is missing, malformed, or its path
            extension is not one of ``SUPPORTED_IMAGE_FORMATS``.
    """
    if url is None:
        raise ValidationError.for_field("image_url", "Image URL is required")
    if not isinstance(url, str) or not url.strip():
        raise ValidationError.for_field("image_url", "Image URL cannot be empty")

    try:
        parsed = urlparse(url.strip())
    except ValueError:
        raise ValidationError.for_field("image_url", "Invalid image URL format") from None
    if not parsed.scheme or not parsed.netloc or " " in url.strip():
        raise ValidationError.for_field("image_url", "Invalid image URL format")

    extension = PurePosixPath(parsed.path).suffix.lower().lstrip(".")
    if extension not in SUPPORTED_IMAGE_FORMATS:
        raise ValidationError.for_field(
            "image_url",
            f"Invalid image format{f' {extension!r}' if extension else ''}. "
            f"Allowed formats: {', '.join(SUPPORTED_IMAGE_FORMATS)}",
        )
    return url.strip()


def _merge(
    params: Params | None,
    defaults: Mapping[str, Any],
    model: Model | str,
    stream: bool,
) -> dict[str, Any]:
    payload = (params or Params()).to_payload(defaults)
    payload["model"] = str(model)
    payload["stream"] = stream
    return payload


def build_chat_request(
    messages: Sequence[MessageInput],
    params: Params | None,
    model: Model | str,
    *,
    stream: bool = False,
    response_format: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a ``/v1/chat/completions`` payload."""
    normalized = validate_messages(messages)
    system = list(params.system_messages) if params else []

    payload = _merge(params, CHAT_DEFAULTS, model, stream)
    payload["messages"] = [m.to_dict() for m in system + normalized]
    if response_format is not None:
        payload["response_format"] = dict(response_format)
    return payload


def build_completion_request(
    prompt: str,
    params: Params | None,
    model: Model | str,
    *,
    stream: bool = False,
) -> dict[str, Any]:
    """Build a ``/v1/completions`` payload."""
    payload = _merge(params, CHAT_DEFAULTS, model, stream)
    payload["prompt"] = validate_prompt(prompt)
    return payload


def build_image_analysis_request(
    image_url: str,
    prompt: str | None,
    params: Params | None,
    model: Model | str,
) -> dict[str, Any]:
    """Build a vision chat payload: one user message, image part then text part."""
    url = validate_image_url(image_url)
    message = Message.user((ImagePart(url), TextPart(prompt or DEFAULT_IMAGE_PROMPT)))
    return build_chat_request([message], params, model)


def build_embedding_request(
    input: str | Sequence[str],
    params: Params | None,
    model: Model | str,
) -> dict[str, Any]:
    """Build a ``/v1/embeddings`` payload from one string or a list of strings."""
    match input:
        case str():
            validate_prompt(input, "input")
        case Sequence() if input and all(isinstance(item, str) and item.strip() for item in input):
            input = list(input)
        case _:
            raise ValidationError.for_field("input", "Input must be a non-empty string or list of non-empty strings")

    payload = _merge(params, EMBEDDING_DEFAULTS, model, stream=False)
    payload.pop("stream", None)
    payload["input"] = input
    return payload


def build_tokenize_request(text: str) -> dict[str, Any]:
    return {"text": validate_prompt(text, "text")}


def ensure_streaming_supported(model: Model | str) -> Model:
    """Resolve ``model`` and reject it when it cannot stream."""
    resolved = Model.from_string(model)
    if not resolved.supports_streaming:
        raise ValidationError.for_field("stream", f"Model {resolved.value} does not support streaming")
    return resolved


__all__ = [
    "DEFAULT_IMAGE_PROMPT",
    "SUPPORTED_IMAGE_FORMATS",
    "USER_AGENT",
    "build_chat_request",
    "build_completion_request",
    "build_embedding_request",
    "build_headers",
    "build_image_analysis_request",
    "build_tokenize_request",
    "ensure_streaming_supported",
    "validate_image_url",
    "validate_messages",
    "validate_prompt",
]
