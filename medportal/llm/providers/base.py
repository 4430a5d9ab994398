"""Base chat-completion client protocol/interface."""

import threading
import time
from typing import Protocol, runtime_checkable

from ..config import ProviderConfig
from ..errors import RequestCancelled
from ..response import ChatMessage


@runtime_checkable
class ChatCompletionClient(Protocol):
    """Protocol for chat-completion providers."""

    id: str
    config: ProviderConfig

    def validate_config(self) -> None:
        """Validate provider-specific config.

        Raises:
            ProviderConfigError: If configuration is invalid
        """
        ...

    def send(self, messages: list[ChatMessage], cancel: threading.Event | None = None) -> str:
        """Send a conversation and return the response text.

        Args:
            messages: Ordered chat messages
            cancel: Optional event; once set, the call stops at the next step

        Returns:
            Response text (may be empty)

        Raises:
            ProviderError: When no model/endpoint combination succeeds
        """
        ...


def check_cancelled(cancel: threading.Event | None) -> None:
    if cancel is not None and cancel.is_set():
        raise RequestCancelled("Request cancelled")


def pause(seconds: float, cancel: threading.Event | None = None) -> None:
    """Sleep between attempts, waking early with RequestCancelled on cancel."""
    if cancel is None:
        time.sleep(seconds)
        return
    if cancel.wait(seconds):
        raise RequestCancelled("Request cancelled during backoff")
