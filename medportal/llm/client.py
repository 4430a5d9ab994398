"""Main chat client interface."""

import threading
import time
from pathlib import Path
from typing import Any

from medportal.logger import get_logger

from .config import ProviderConfig, load_settings, resolve_provider_config
from .providers.registry import build_provider
from .response import ChatMessage, GenerationRequest, validate_messages
from .trace import record_error_trace, record_trace

logger = get_logger(__name__)


class LLMClient:
    """Chat client bound to one provider, selected once at construction."""

    def __init__(self, config: ProviderConfig, trace_dir: Path | None = None):
        """Initialize client with configuration.

        Args:
            config: Resolved provider configuration
            trace_dir: Optional directory for trace files; tracing is off when None
        """
        self.config = config
        self.trace_dir = trace_dir
        self.provider = build_provider(config)

    @classmethod
    def from_settings(
        cls,
        settings_path: str | Path | None = None,
        overrides: dict[str, Any] | None = None,
        trace_dir: Path | None = None,
    ) -> "LLMClient":
        """Resolve configuration from overrides, user settings and environment.

        Raises:
            ProviderConfigError: If provider or endpoint mode is unknown
            ValueError: If the settings file is invalid
        """
        settings = load_settings(settings_path)
        config = resolve_provider_config(overrides, settings)
        return cls(config, trace_dir)

    @property
    def id(self) -> str:
        return self.provider.id

    def validate_config(self) -> None:
        self.provider.validate_config()

    def send(self, messages: list[ChatMessage], cancel: threading.Event | None = None) -> str:
        """Send a conversation through the configured provider.

        Args:
            messages: Ordered chat messages
            cancel: Optional cancellation event

        Returns:
            Response text

        Raises:
            ValueError: If messages are malformed
            ProviderError: Provider failures, unchanged
        """
        validate_messages(messages)
        request = GenerationRequest(
            messages=messages,
            max_retries=self.config.max_attempts,
            timeout_s=self.config.timeout_s,
        )

        logger.info(
            "llm.send",
            event="llm.send.start",
            request_id=request.request_id,
            provider=self.config.provider,
            models=list(self.config.model_candidates),
            message_count=len(messages),
        )

        start_time = time.time()
        try:
            text = self.provider.send(messages, cancel=cancel)
        except Exception as e:
            elapsed_ms = int((time.time() - start_time) * 1000)
            trace_file = None
            if self.trace_dir is not None:
                trace_file = record_error_trace(request, e, self.config, elapsed_ms, self.trace_dir)

            logger.error(
                "llm.send.error",
                event="llm.send.error",
                request_id=request.request_id,
                provider=self.config.provider,
                error_type=type(e).__name__,
                error_message=str(e),
                status_code=getattr(e, "status_code", None),
                elapsed_ms=elapsed_ms,
                trace_file=str(trace_file) if trace_file else None,
            )
            raise

        elapsed_ms = int((time.time() - start_time) * 1000)
        trace_file = None
        if self.trace_dir is not None:
            trace_file = record_trace(request, text, self.config, elapsed_ms, self.trace_dir)

        logger.info(
            "llm.send.success",
            event="llm.send.success",
            request_id=request.request_id,
            provider=self.config.provider,
            elapsed_ms=elapsed_ms,
            response_chars=len(text),
            trace_file=str(trace_file) if trace_file else None,
        )
        return text
