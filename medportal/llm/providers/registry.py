"""Provider registration and construction."""

from typing import Callable, Dict

from ..config import ProviderConfig
from ..errors import ProviderConfigError
from .base import ChatCompletionClient

ProviderFactory = Callable[[ProviderConfig], ChatCompletionClient]


class ProviderRegistry:
    """Registry of chat-completion provider factories."""

    def __init__(self):
        self._factories: Dict[str, ProviderFactory] = {}

    def register(self, provider_id: str, factory: ProviderFactory) -> None:
        """Register a provider factory.

        Args:
            provider_id: Provider identifier (matches ProviderConfig.provider)
            factory: Callable building a client from a ProviderConfig
        """
        self._factories[provider_id] = factory

    def build(self, config: ProviderConfig) -> ChatCompletionClient:
        """Build the client for a resolved configuration.

        Args:
            config: Provider configuration

        Returns:
            Client instance bound to the configuration

        Raises:
            ProviderConfigError: If provider not registered
        """
        if config.provider not in self._factories:
            available = ", ".join(self._factories.keys())
            raise ProviderConfigError(
                f"Provider '{config.provider}' not found. "
                f"Available providers: {available or 'none'}"
            )
        return self._factories[config.provider](config)

    def list(self) -> list[str]:
        """List all registered provider IDs."""
        return list(self._factories.keys())


# Global registry instance
_registry = ProviderRegistry()


def register_provider(provider_id: str, factory: ProviderFactory) -> None:
    """Register a provider factory in the global registry."""
    _registry.register(provider_id, factory)


def build_provider(config: ProviderConfig) -> ChatCompletionClient:
    """Build a client from the global registry."""
    return _registry.build(config)


def list_providers() -> list[str]:
    """List all registered provider IDs."""
    return _registry.list()
