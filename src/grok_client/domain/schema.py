"""Schema descriptors for structured output.

A structured-output request needs a JSON Schema. It can come from three
places:

    - a literal JSON-Schema mapping, used verbatim after a shape check
    - a ``DataModel`` subclass, which describes its fields explicitly through
      ``describe_schema()``; only described fields enter the schema
    - a pydantic ``BaseModel`` subclass, via ``model_json_schema()``

``resolve_schema`` turns any of these into a ``SchemaDescriptor`` that knows
how to hydrate a decoded response back into the original shape.

Example:
    >>> class UserData(DataModel):
    ...     def __init__(self):
    ...         self.name = None
    ...         self.age = None
    ...         self.email = None
    ...
    ...     @classmethod
    ...     def describe_schema(cls):
    ...         return {
    ...             "name": SchemaProperty("string", description="Full name"),
    ...             "age": SchemaProperty("integer"),
    ...             "email": SchemaProperty("string", required=False),
    ...         }
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Final

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from grok_client.domain.exceptions import ParseError, ValidationError

PRIMITIVE_TYPES: Final = frozenset({"string", "integer", "number", "boolean", "array"})
"""Type tags allowed on ``DataModel`` fields."""

JSON_SCHEMA_TYPES: Final = PRIMITIVE_TYPES | {"object", "null"}
"""Type tags allowed in literal schema mappings."""


@dataclass(slots=True, frozen=True)
class SchemaProperty:
    """Description of one field of a ``DataModel``.

    Attributes:
        type: JSON Schema type tag; one of ``PRIMITIVE_TYPES``.
        required: Whether the field is listed under ``required``.
        description: Optional human-readable description.
        items: Item type tag for ``array`` fields.
    """

    type: str = "string"
    required: bool = True
    description: str | None = None
    items: str | None = None

    def __post_init__(self) -> None:
        if self.type not in PRIMITIVE_TYPES:
            raise ValidationError.for_field(
                "schema", f"Unsupported schema property type: {self.type!r}"
            )
        if self.items is not None and self.items not in PRIMITIVE_TYPES:
            raise ValidationError.for_field(
                "schema", f"Unsupported array item type: {self.items!r}"
            )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type}
        if self.description:
            data["description"] = self.description
        if self.type == "array" and self.items:
            data["items"] = {"type": self.items}
        return data


class DataModel:
    """Base class for record types used with structured output.

    Subclasses must be constructible without arguments (so every field has a
    declared default) and must implement ``describe_schema()``.
    """

    @classmethod
    def describe_schema(cls) -> Mapping[str, SchemaProperty]:
        raise NotImplementedError(f"{cls.__name__} must implement describe_schema()")

    @classmethod
    def schema(cls) -> dict[str, Any]:
        """Build the JSON Schema object for this record type."""
        properties: dict[str, Any] = {}
        required: list[str] = []
        for name, prop in cls.describe_schema().items():
            if not isinstance(prop, SchemaProperty):
                raise ValidationError.for_field(
                    "schema", f"{cls.__name__}.{name} must be described by a SchemaProperty"
                )
            properties[name] = prop.to_dict()
            if prop.required:
                required.append(name)
        return {"type": "object", "properties": properties, "required": required}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DataModel:
        """Hydrate an instance; unknown keys are ignored, missing keys keep defaults."""
        instance = cls()
        for name in cls.describe_schema():
            if name in data:
                setattr(instance, name, data[name])
        return instance

    def to_dict(self) -> dict[str, Any]:
        return {name: getattr(self, name, None) for name in type(self).describe_schema()}

    def __repr__(self) -> str:
        fields = ", ".join(f"{k}={v!r}" for k, v in self.to_dict().items())
        return f"{type(self).__name__}({fields})"

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.to_dict() == other.to_dict()


def validate_schema(schema: Any, path: str = "schema") -> dict[str, Any]:
    """Check that a literal mapping has a usable JSON-Schema shape.

    Raises:
        ValidationError: If the mapping lacks a known ``type`` tag or an
            object schema has malformed ``properties``/``required``.
    """
    if not isinstance(schema, Mapping):
        raise ValidationError.for_field("schema", f"{path} must be a mapping")
    schema_type = schema.get("type")
    types = schema_type if isinstance(schema_type, list) else [schema_type]
    if not types or not all(isinstance(t, str) and t in JSON_SCHEMA_TYPES for t in types):
        raise ValidationError.for_field("schema", f"{path} has an invalid or missing type: {schema_type!r}")

    if "object" in types:
        properties = schema.get("properties", {})
        if not isinstance(properties, Mapping):
            raise ValidationError.for_field("schema", f"{path}.properties must be a mapping")
        for name, prop in properties.items():
            validate_schema(prop, f"{path}.properties.{name}")
        required = schema.get("required", [])
        if not isinstance(required, list) or not all(isinstance(r, str) for r in required):
            raise ValidationError.for_field("schema", f"{path}.required must be a list of names")
        missing = [r for r in required if r not in properties]
        if missing:
            raise ValidationError.for_field("schema", f"{path}.required names unknown properties: {missing}")

    if "array" in types and "items" in schema:
        validate_schema(schema["items"], f"{path}.items")
    return dict(schema)


@dataclass(slots=True, frozen=True)
class SchemaDescriptor:
    """A resolved JSON Schema plus the hydrator for decoded results.

    Attributes:
        schema: JSON Schema object sent to the service.
        hydrate: Callable turning the decoded JSON object into the caller's
            record type. None when the caller supplied a raw mapping.
        name: Name of the record type, or None.
    """

    schema: dict[str, Any]
    hydrate: Callable[[dict[str, Any]], Any] | None = None
    name: str | None = None

    def build(self, data: dict[str, Any]) -> Any:
        if self.hydrate is None:
            return data
        return self.hydrate(data)


def _hydrate_pydantic(model: type[BaseModel]) -> Callable[[dict[str, Any]], BaseModel]:
    def hydrate(data: dict[str, Any]) -> BaseModel:
        try:
            return model.model_validate(data)
        except PydanticValidationError as exc:
            raise ParseError(f"Response does not match {model.__name__}: {exc}") from exc

    return hydrate


def resolve_schema(schema_or_type: Any) -> SchemaDescriptor:
    """Resolve a mapping or record type into a ``SchemaDescriptor``.

    Raises:
        ValidationError: If the argument is neither a valid schema mapping,
            a ``DataModel`` subclass nor a pydantic model class.
    """
    match schema_or_type:
        case Mapping():
            return SchemaDescriptor(validate_schema(schema_or_type))
        case type() if issubclass(schema_or_type, DataModel):
            return SchemaDescriptor(
                validate_schema(schema_or_type.schema()),
                hydrate=schema_or_type.from_dict,
                name=schema_or_type.__name__,
            )
        case type() if issubclass(schema_or_type, BaseModel):
            return SchemaDescriptor(
                schema_or_type.model_json_schema(),
                hydrate=_hydrate_pydantic(schema_or_type),
                name=schema_or_type.__name__,
            )
        case _:
            raise ValidationError.for_field(
                "schema",
                "Schema must be a JSON-Schema mapping, a DataModel subclass or a pydantic model class",
            )


__all__ = [
    "DataModel",
    "PRIMITIVE_TYPES",
    "SchemaDescriptor",
    "SchemaProperty",
    "resolve_schema",
    "validate_schema",
]
