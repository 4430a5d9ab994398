"""Chat-completion layer - pluggable providers selected once from configuration."""

from .client import LLMClient
from .config import ProviderConfig, load_settings, resolve_provider_config
from .errors import (
    ModelNotFoundError,
    ProviderConfigError,
    ProviderError,
    QuotaExceededError,
    RequestCancelled,
    TransientProviderError,
)
from .response import AttemptResult, ChatMessage, GenerationRequest

__all__ = [
    "LLMClient",
    "ProviderConfig",
    "load_settings",
    "resolve_provider_config",
    "ChatMessage",
    "GenerationRequest",
    "AttemptResult",
    "ProviderError",
    "TransientProviderError",
    "ModelNotFoundError",
    "QuotaExceededError",
    "ProviderConfigError",
    "RequestCancelled",
]
