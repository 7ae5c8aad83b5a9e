"""Client and endpoint facades."""

from grok_client.client.chat import Chat
from grok_client.client.completions import Completions
from grok_client.client.embeddings import Embeddings
from grok_client.client.images import Images
from grok_client.client.structured import ResponseFormat, StructuredOutputCoordinator
from grok_client.client.sync import GrokClient

__all__ = [
    "Chat",
    "Completions",
    "Embeddings",
    "GrokClient",
    "Images",
    "ResponseFormat",
    "StructuredOutputCoordinator",
]
