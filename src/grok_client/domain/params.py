"""Generation parameter set with set-time range validation.

``Params`` is a builder over a closed set of request options. Every setter
validates its value immediately, so an out-of-range value fails where it is
written rather than when the request is sent::

    params = Params.create().temperature(0.2).max_tokens(200)
    params = Params(temperature=0.2, max_tokens=200)  # equivalent

Once ``to_payload()`` has been read the instance is sealed; setters on a
sealed instance return a modified copy and leave the original untouched.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping, Sequence
from typing import Any, Final

from grok_client.domain.exceptions import ValidationError
from grok_client.domain.value_objects import Message

PARAM_RANGES: Final[dict[str, tuple[float, float]]] = {
    "temperature": (0.0, 2.0),
    # Nucleus sampling is conventionally [0, 1]; the upper bound of 2.0 is
    # the documented service behaviour.
    "top_p": (0.0, 2.0),
    "max_tokens": (1, 128_000),
    "presence_penalty": (-2.0, 2.0),
    "frequency_penalty": (-2.0, 2.0),
    "n": (1, 10),
    "best_of": (1, 10),
    "logprobs": (0, 5),
    "dimensions": (1, 2048),
}
"""Inclusive [min, max] bounds for numeric parameters."""

INTEGER_PARAMS: Final = frozenset({"max_tokens", "n", "best_of", "logprobs", "dimensions"})

PARAM_NAMES: Final = (
    "model",
    "temperature",
    "max_tokens",
    "top_p",
    "stream",
    "n",
    "presence_penalty",
    "frequency_penalty",
    "best_of",
    "logit_bias",
    "stop",
    "logprobs",
    "dimensions",
    "echo",
    "user",
    "suffix",
)

SETTABLE_PARAMS: Final = frozenset(PARAM_NAMES) | {"system_message"}

CHAT_DEFAULTS: Final[Mapping[str, Any]] = {
    "temperature": 0.7,
    "max_tokens": 150,
    "top_p": 1.0,
    "frequency_penalty": 0.0,
    "presence_penalty": 0.0,
    "stream": False,
}
"""Defaults merged under chat, completion and image requests."""

EMBEDDING_DEFAULTS: Final[Mapping[str, Any]] = {}


def validate_range(name: str, value: Any) -> float | int:
    """Check a numeric parameter against its inclusive bounds.

    Raises:
        ValidationError: If the value is not a number of the right kind or
            lies outside ``PARAM_RANGES[name]``.
    """
    low, high = PARAM_RANGES[name]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError.for_field(name, f"{name} must be a number")
    if name in INTEGER_PARAMS and not isinstance(value, int):
        raise ValidationError.for_field(name, f"{name} must be an integer")
    if not low <= value <= high:
        raise ValidationError.for_field(name, f"{name} must be between {low} and {high}")
    return value


class Params:
    """Builder for optional generation parameters.

    Attributes:
        system_messages: System messages queued by ``system_message()``;
            prepended to chat requests by the request builder.
    """

    __slots__ = ("_values", "_system_messages", "_sealed")

    def __init__(self, **kwargs: Any) -> None:
        self._values: dict[str, Any] = {}
        self._system_messages: list[Message] = []
        self._sealed = False
        for name, value in kwargs.items():
            if name not in SETTABLE_PARAMS:
                raise TypeError(f"Unknown parameter: {name}")
            getattr(self, name)(value)

    @classmethod
    def create(cls) -> Params:
        return cls()

    def copy(self) -> Params:
        """Return an unsealed copy with the same values and system messages."""
        clone = copy.copy(self)
        clone._values = dict(self._values)
        clone._system_messages = list(self._system_messages)
        clone._sealed = False
        return clone

    def _target(self) -> Params:
        return self.copy() if self._sealed else self

    def _set(self, name: str, value: Any) -> Params:
        target = self._target()
        target._values[name] = value
        return target

    def _set_ranged(self, name: str, value: Any) -> Params:
        return self._set(name, validate_range(name, value))

    def model(self, value: str) -> Params:
        if not isinstance(value, str) or not value.strip():
            raise ValidationError.for_field("model", "model must be a non-empty string")
        return self._set("model", value)

    def temperature(self, value: float) -> Params:
        return self._set_ranged("temperature", value)

    def max_tokens(self, value: int) -> Params:
        return self._set_ranged("max_tokens", value)

    def top_p(self, value: float) -> Params:
        return self._set_ranged("top_p", value)

    def stream(self, value: bool = True) -> Params:
        if not isinstance(value, bool):
            raise ValidationError.for_field("stream", "stream must be a boolean")
        return self._set("stream", value)

    def system_message(self, message: str) -> Params:
        if not isinstance(message, str) or not message.strip():
            raise ValidationError.for_field("system_message", "system_message cannot be empty")
        target = self._target()
        target._system_messages.append(Message.system(message))
        return target

    def n(self, value: int) -> Params:
        return self._set_ranged("n", value)

    def presence_penalty(self, value: float) -> Params:
        return self._set_ranged("presence_penalty", value)

    def frequency_penalty(self, value: float) -> Params:
        return self._set_ranged("frequency_penalty", value)

    def best_of(self, value: int) -> Params:
        return self._set_ranged("best_of", value)

    def logit_bias(self, values: Mapping[str | int, float]) -> Params:
        if not isinstance(values, Mapping):
            raise ValidationError.for_field("logit_bias", "logit_bias must be a mapping of token to bias")
        return self._set("logit_bias", {str(k): v for k, v in values.items()})

    def stop(self, values: str | Sequence[str]) -> Params:
        if isinstance(values, str):
            values = [values]
        if not all(isinstance(v, str) for v in values):
            raise ValidationError.for_field("stop", "stop must be a string or a list of strings")
        return self._set("stop", list(values))

    def logprobs(self, value: int) -> Params:
        return self._set_ranged("logprobs", value)

    def dimensions(self, value: int) -> Params:
        return self._set_ranged("dimensions", value)

    def echo(self, value: bool = True) -> Params:
        if not isinstance(value, bool):
            raise ValidationError.for_field("echo", "echo must be a boolean")
        return self._set("echo", value)

    def user(self, value: str) -> Params:
        return self._set("user", str(value))

    def suffix(self, value: str) -> Params:
        return self._set("suffix", str(value))

    @property
    def system_messages(self) -> tuple[Message, ...]:
        return tuple(self._system_messages)

    @property
    def is_sealed(self) -> bool:
        return self._sealed

    def get(self, name: str, default: Any = None) -> Any:
        return self._values.get(name, default)

    def to_payload(self, defaults: Mapping[str, Any] | None = None) -> dict[str, Any]:
        """Return the flattened parameters merged over ``defaults``.

        The merge is shallow: caller-set values replace defaults field by
        field. The returned dict is a fresh copy. Reading the payload seals
        this instance.
        """
        self._sealed = True
        payload = dict(defaults or {})
        payload.update(copy.deepcopy(self._values))
        return payload

    def __repr__(self) -> str:
        return f"Params({self._values!r}, system_messages={len(self._system_messages)})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Params):
            return NotImplemented
        return self._values == other._values and self._system_messages == other._system_messages


__all__ = [
    "CHAT_DEFAULTS",
    "EMBEDDING_DEFAULTS",
    "PARAM_NAMES",
    "PARAM_RANGES",
    "Params",
    "validate_range",
]
