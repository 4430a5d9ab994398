"""Chat-completion provider implementations."""

from .base import ChatCompletionClient
from .huggingface import HuggingFaceChatClient
from .openai import OpenAIChatClient
from .registry import build_provider, list_providers, register_provider

# Register providers
register_provider(OpenAIChatClient.id, OpenAIChatClient)
register_provider(HuggingFaceChatClient.id, HuggingFaceChatClient)

__all__ = [
    "ChatCompletionClient",
    "OpenAIChatClient",
    "HuggingFaceChatClient",
    "register_provider",
    "build_provider",
    "list_providers",
]
