"""OpenAI chat-completions HTTP provider implementation."""

import re
import threading
import time
from typing import Any

import requests

from ..config import ProviderConfig
from ..errors import (
    ModelNotFoundError,
    ProviderConfigError,
    ProviderError,
    QuotaExceededError,
    TransientProviderError,
)
from ..response import ChatMessage
from .base import check_cancelled

OPENAI_CHAT_URL = "https://api.openai.com/v1/chat/completions"

QUOTA_PATTERN = re.compile(r"quota|insufficient_quota", re.IGNORECASE)
MODEL_NOT_FOUND_PATTERN = re.compile(r"model.*not.*found|model_not_found", re.IGNORECASE)


class OpenAIChatClient:
    """OpenAI chat-completions provider with ordered model fallback."""

    id = "openai"

    def __init__(self, config: ProviderConfig, url: str = OPENAI_CHAT_URL):
        self.config = config
        self.url = url

    def validate_config(self) -> None:
        """Validate OpenAI configuration.

        Raises:
            ProviderConfigError: If configuration is invalid
        """
        if not self.config.api_key:
            raise ProviderConfigError(
                "Missing OpenAI API key. Set OPENAI_API_KEY or save openai_api_key in settings."
            )
        if not self.config.model_candidates:
            raise ProviderConfigError("No OpenAI model candidates configured (OPENAI_MODELS)")

    def send(self, messages: list[ChatMessage], cancel: threading.Event | None = None) -> str:
        """Execute completion, trying each model candidate in order.

        Args:
            messages: Ordered chat messages
            cancel: Optional cancellation event

        Returns:
            Content of the first choice; empty string is a valid result

        Raises:
            ProviderConfigError: If API key or models are missing
            QuotaExceededError: On HTTP 429 or a quota message, without
                trying further models
            ProviderError: For other failures, or the last model-not-found
                error once every candidate is exhausted
        """
        self.validate_config()

        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }
        deadline = time.monotonic() + self.config.timeout_s
        last_error: ProviderError | None = None

        for model in self.config.model_candidates:
            check_cancelled(cancel)
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise TransientProviderError(
                    f"OpenAI request timed out after {self.config.timeout_s}s"
                )

            payload: dict[str, Any] = {
                "model": model,
                "messages": messages,
                "temperature": self.config.temperature,
                "max_tokens": self.config.max_tokens,
            }

            try:
                response = requests.post(
                    self.url,
                    headers=headers,
                    json=payload,
                    timeout=remaining,
                )
            except requests.Timeout as e:
                raise TransientProviderError(
                    f"OpenAI request timed out after {self.config.timeout_s}s"
                ) from e
            except requests.RequestException as e:
                raise TransientProviderError(f"OpenAI request failed: {e}") from e

            if not 200 <= response.status_code < 300:
                error = self._classify_error(response, model)
                if isinstance(error, ModelNotFoundError):
                    last_error = error
                    continue
                raise error

            try:
                data = response.json()
            except ValueError as e:
                raise ProviderError(
                    f"OpenAI returned invalid JSON: {response.status_code}",
                    status_code=response.status_code,
                    body=response.text or "",
                ) from e
            return _first_choice_content(data)

        raise last_error or ProviderError("OpenAI request failed")

    def _classify_error(self, response: requests.Response, model: str) -> ProviderError:
        body = response.text or ""
        status = response.status_code
        message = _error_message(response) or f"HTTP {status}"

        if status == 429 or QUOTA_PATTERN.search(body):
            return QuotaExceededError(
                f"OpenAI quota exceeded: {status} {message}", status_code=status, body=body
            )
        if status == 404 or MODEL_NOT_FOUND_PATTERN.search(body):
            return ModelNotFoundError(
                f"OpenAI model '{model}' not found: {status} {message}",
                status_code=status,
                body=body,
            )
        if status in (401, 403):
            return ProviderError(
                f"Authentication failed (HTTP {status}). Check your OpenAI API key.",
                status_code=status,
                body=body,
            )
        return ProviderError(f"OpenAI error: {status} {message}", status_code=status, body=body)


def _error_message(response: requests.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return ""
    if isinstance(data, dict) and isinstance(data.get("error"), dict):
        return str(data["error"].get("message") or "")
    return ""


def _first_choice_content(data: Any) -> str:
    if not isinstance(data, dict):
        return ""
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return ""
    message = choices[0].get("message")
    content = message.get("content") if isinstance(message, dict) else None
    return content.strip() if isinstance(content, str) else ""
