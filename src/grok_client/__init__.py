"""Grok API client - chat, completions, vision, embeddings and structured output."""

from grok_client.client import (
    Chat,
    Completions,
    Embeddings,
    GrokClient,
    Images,
    ResponseFormat,
    StructuredOutputCoordinator,
)
from grok_client.core import GrokConfig, GrokSettings, RateLimitInfo, get_settings
from grok_client.domain import (
    ApiError,
    ChatMessage,
    Completion,
    ConfigurationError,
    DataModel,
    EmbeddingResult,
    ErrorKind,
    GrokError,
    ImageAnalysis,
    ImagePart,
    Message,
    Model,
    Params,
    ParseError,
    Role,
    SchemaProperty,
    TextPart,
    TransportError,
    Usage,
    ValidationError,
)

__all__ = [
    "ApiError",
    "Chat",
    "ChatMessage",
    "Completion",
    "Completions",
    "ConfigurationError",
    "DataModel",
    "EmbeddingResult",
    "Embeddings",
    "ErrorKind",
    "GrokClient",
    "GrokConfig",
    "GrokError",
    "GrokSettings",
    "ImageAnalysis",
    "ImagePart",
    "Images",
    "Message",
    "Model",
    "Params",
    "ParseError",
    "RateLimitInfo",
    "ResponseFormat",
    "Role",
    "SchemaProperty",
    "StructuredOutputCoordinator",
    "TextPart",
    "TransportError",
    "Usage",
    "ValidationError",
    "get_settings",
]
