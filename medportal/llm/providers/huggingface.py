"""Hugging Face inference provider: client-direct, proxy and direct paths."""

import json
import re
import threading
import time
from typing import Any
from urllib.parse import quote

import requests

from ..config import ProviderConfig
from ..errors import ProviderConfigError, ProviderError, TransientProviderError
from ..response import AttemptResult, ChatMessage, first_success
from .base import check_cancelled, pause

HF_INFERENCE_URL = "https://api-inference.huggingface.co/models/{model}"
PROXY_PATH = "/api/v1/ai/hf"
CHAT_PATH = "/v1/chat/completions"
COMPLETIONS_PATH = "/v1/completions"

LOADING_PATTERN = re.compile(r"loading", re.IGNORECASE)
CHAT_FALLBACK_DELAY_S = 0.5
MAX_RAW_CHARS = 2000


def flatten_messages(messages: list[ChatMessage]) -> str:
    """Build an instruction-style prompt from chat messages.

    Example:
        [system "Be brief", user "Hi"] -> "System: Be brief\\n\\nUSER: Hi\\n\\nAssistant:"
    """
    system = "\n".join(m["content"] for m in messages if m["role"] == "system")
    turns = "\n".join(
        f"{m['role'].upper()}: {m['content']}" for m in messages if m["role"] != "system"
    )
    prefix = f"System: {system}\n\n" if system else ""
    return f"{prefix}{turns}\n\nAssistant:"


def extract_generated_text(data: Any) -> str | None:
    """Pull response text out of the known inference response shapes.

    Returns:
        Stripped text, or None when no known shape matched
    """
    if isinstance(data, str):
        return data.strip()
    first = data[0] if isinstance(data, list) and data else data
    if not isinstance(first, dict):
        return None

    for key in ("generated_text", "output_text", "summary_text", "answer"):
        value = first.get(key)
        if value:
            return str(value).strip()

    choices = first.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        choice = choices[0]
        content = (choice.get("message") or {}).get("content") or choice.get("text")
        if content:
            return str(content).strip()

    return None


class HuggingFaceChatClient:
    """Open-inference provider with optional client-direct and proxy paths."""

    id = "huggingface"

    def __init__(self, config: ProviderConfig):
        self.config = config

    def validate_config(self) -> None:
        """Validate that at least one transport path is usable.

        Raises:
            ProviderConfigError: If no token, proxy or direct endpoint is set
        """
        if not (self.config.api_key or self.config.proxy_base_url or self.config.direct_endpoint):
            raise ProviderConfigError(
                "Missing Hugging Face API token. Set HF_API_TOKEN, save hf_api_token "
                "in settings, or configure AI_SERVER_BASE."
            )
        if not self.config.endpoint_override and not self.config.model:
            raise ProviderConfigError("No Hugging Face model configured (HF_CHAT_MODEL)")

    def send(self, messages: list[ChatMessage], cancel: threading.Event | None = None) -> str:
        """Send the conversation through the first transport path that works.

        Client-direct and proxy failures fall through; only the
        direct-to-provider path raises.

        Raises:
            ProviderConfigError: If the direct path is reached without a token
            TransientProviderError: If all attempts hit loading/503/network errors
            ProviderError: For any other non-2xx response
        """
        started = time.monotonic()
        prompt = flatten_messages(messages)

        optional = first_success([
            lambda: self._try_client_direct(prompt, cancel),
            lambda: self._try_proxy(prompt, cancel),
        ])
        if optional is not None and optional.ok:
            return optional.text

        return self._send_to_provider(prompt, cancel, started)

    def _parameters(self) -> dict[str, Any]:
        return {
            "max_new_tokens": self.config.max_new_tokens,
            "temperature": self.config.temperature,
            "return_full_text": False,
        }

    def _inference_body(self, prompt: str) -> dict[str, Any]:
        return {
            "inputs": prompt,
            "parameters": self._parameters(),
            "options": {"wait_for_model": True},
        }

    def _chat_body(self, prompt: str) -> dict[str, Any]:
        return {
            "model": self.config.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": self.config.max_new_tokens,
            "temperature": self.config.temperature,
            "stream": False,
        }

    def _request_shape(self, prompt: str) -> tuple[str, dict[str, Any]]:
        mode = self.config.endpoint_mode
        if mode == "openai-chat":
            return CHAT_PATH, self._chat_body(prompt)
        if mode == "openai-completions":
            return COMPLETIONS_PATH, {
                "model": self.config.model,
                "prompt": prompt,
                "max_tokens": self.config.max_new_tokens,
                "temperature": self.config.temperature,
                "stream": False,
            }
        return "", self._inference_body(prompt)

    def _post(self, url: str, token: str | None, body: dict[str, Any]) -> requests.Response:
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return requests.post(url, headers=headers, json=body, timeout=self.config.timeout_s)

    def _try_client_direct(self, prompt: str, cancel: threading.Event | None) -> AttemptResult | None:
        endpoint = self.config.direct_endpoint
        if endpoint is None:
            return None
        check_cancelled(cancel)

        try:
            response = self._post(endpoint.url, endpoint.token, self._inference_body(prompt))
        except requests.RequestException as e:
            return AttemptResult("client-direct", error=TransientProviderError(f"Direct HF request failed: {e}"))

        text = response.text or ""
        if not 200 <= response.status_code < 300:
            return AttemptResult(
                "client-direct",
                error=ProviderError(
                    f"Direct HF error: {response.status_code} {text}",
                    status_code=response.status_code,
                    body=text,
                ),
            )

        try:
            data = json.loads(text)
        except ValueError:
            return AttemptResult("client-direct", text=text.strip())
        extracted = extract_generated_text(data)
        return AttemptResult("client-direct", text=extracted if extracted is not None else text.strip())

    def _try_proxy(self, prompt: str, cancel: threading.Event | None) -> AttemptResult | None:
        base = self.config.proxy_base_url
        if not base:
            return None
        check_cancelled(cancel)

        try:
            response = self._post(f"{base}{PROXY_PATH}", None, {"prompt": prompt, "parameters": self._parameters()})
        except requests.RequestException as e:
            return AttemptResult("proxy", error=TransientProviderError(f"Proxy request failed: {e}"))

        if not 200 <= response.status_code < 300:
            return AttemptResult(
                "proxy",
                error=ProviderError(f"Proxy error: {response.status_code}", status_code=response.status_code),
            )

        try:
            data = response.json()
        except ValueError:
            data = {}
        text = data.get("text") if isinstance(data, dict) else None
        if isinstance(data, dict) and data.get("ok") and isinstance(text, str) and text.strip():
            return AttemptResult("proxy", text=text.strip())
        return AttemptResult("proxy", error=ProviderError("Proxy returned no text"))

    def _try_chat_fallback(self, base_url: str, token: str, prompt: str, cancel: threading.Event | None) -> AttemptResult:
        pause(CHAT_FALLBACK_DELAY_S, cancel)
        check_cancelled(cancel)
        try:
            response = self._post(base_url + CHAT_PATH, token, self._chat_body(prompt))
        except requests.RequestException as e:
            return AttemptResult("chat-fallback", error=TransientProviderError(str(e)))
        if not 200 <= response.status_code < 300:
            return AttemptResult(
                "chat-fallback",
                error=ProviderError(f"Chat fallback error: {response.status_code}", status_code=response.status_code),
            )
        try:
            text = extract_generated_text(response.json())
        except ValueError:
            text = None
        if text:
            return AttemptResult("chat-fallback", text=text)
        return AttemptResult("chat-fallback", error=ProviderError("Chat fallback returned no text"))

    def _send_to_provider(self, prompt: str, cancel: threading.Event | None, started: float) -> str:
        token = self.config.api_key
        if not token:
            raise ProviderConfigError(
                "Missing Hugging Face API token. Set HF_API_TOKEN or save hf_api_token in settings."
            )

        base_url = self.config.endpoint_override or HF_INFERENCE_URL.format(
            model=quote(self.config.model or "", safe="")
        )
        path, body = self._request_shape(prompt)
        use_chat_fallback = self.config.endpoint_mode == "default" and bool(self.config.endpoint_override)

        last_error: ProviderError | None = None
        for attempt in range(1, self.config.max_attempts + 1):
            check_cancelled(cancel)
            try:
                response = self._post(base_url + path, token, body)
            except requests.RequestException as e:
                last_error = TransientProviderError(f"Hugging Face request failed: {e}")
                self._backoff(attempt, cancel, started, last_error)
                continue

            if 200 <= response.status_code < 300:
                return self._extract(response)

            status = response.status_code
            text = response.text or ""

            if use_chat_fallback and status in (404, 405):
                fallback = self._try_chat_fallback(base_url, token, prompt, cancel)
                if fallback.ok:
                    return fallback.text

            if status == 503 or LOADING_PATTERN.search(text):
                last_error = TransientProviderError(
                    f"Hugging Face loading: {status} {text}", status_code=status, body=text
                )
                self._backoff(attempt, cancel, started, last_error)
                continue

            raise ProviderError(f"Hugging Face error: {status} {text}", status_code=status, body=text)

        raise last_error or ProviderError("Hugging Face request failed")

    def _backoff(self, attempt: int, cancel: threading.Event | None, started: float, error: ProviderError) -> None:
        if attempt >= self.config.max_attempts:
            return
        delay = self.config.backoff_s * attempt
        if self.config.deadline_s is not None:
            if time.monotonic() - started + delay > self.config.deadline_s:
                raise TransientProviderError(
                    f"Hugging Face deadline of {self.config.deadline_s}s exceeded: {error}",
                    status_code=error.status_code,
                    body=error.body,
                ) from error
        pause(delay, cancel)

    def _extract(self, response: requests.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return (response.text or "").strip()[:MAX_RAW_CHARS]
        text = extract_generated_text(data)
        if text is not None:
            return text
        return json.dumps(data)[:MAX_RAW_CHARS]
