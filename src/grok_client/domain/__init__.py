"""Domain layer for the Grok client.

Value objects, the parameter set, result models, schema descriptors and the
error taxonomy. Nothing in this package performs I/O.
"""

from grok_client.domain.exceptions import (
    ApiError,
    ConfigurationError,
    ErrorKind,
    GrokError,
    ParseError,
    TransportError,
    ValidationError,
)
from grok_client.domain.params import CHAT_DEFAULTS, EMBEDDING_DEFAULTS, Params
from grok_client.domain.results import ChatMessage, Completion, EmbeddingResult, ImageAnalysis, Usage
from grok_client.domain.schema import DataModel, SchemaDescriptor, SchemaProperty, resolve_schema
from grok_client.domain.value_objects import ImagePart, Message, Model, Role, TextPart

__all__ = [
    "ApiError",
    "CHAT_DEFAULTS",
    "ChatMessage",
    "Completion",
    "ConfigurationError",
    "DataModel",
    "EMBEDDING_DEFAULTS",
    "EmbeddingResult",
    "ErrorKind",
    "GrokError",
    "ImageAnalysis",
    "ImagePart",
    "Message",
    "Model",
    "Params",
    "ParseError",
    "Role",
    "SchemaDescriptor",
    "SchemaProperty",
    "TextPart",
    "TransportError",
    "Usage",
    "ValidationError",
    "resolve_schema",
]
