"""Tests for the LLMClient wrapper."""

import json
from unittest.mock import Mock, patch

import pytest
import yaml

from medportal.llm import LLMClient
from medportal.llm.config import ProviderConfig
from medportal.llm.errors import ProviderConfigError, QuotaExceededError
from medportal.llm.providers import HuggingFaceChatClient, OpenAIChatClient

MESSAGES = [
    {"role": "system", "content": "Patient has a fever of 39C"},
    {"role": "user", "content": "Return the JSON array."},
]


def openai_config(**kwargs):
    values = {"provider": "openai", "api_key": "k", "model_candidates": ("gpt-4",)}
    values.update(kwargs)
    return ProviderConfig(**values)


def test_provider_selected_once_from_config():
    """The factory builds the provider class matching the config."""
    assert isinstance(LLMClient(openai_config()).provider, OpenAIChatClient)

    hf = LLMClient(ProviderConfig(provider="huggingface", api_key="t", model_candidates=("m",)))
    assert isinstance(hf.provider, HuggingFaceChatClient)
    assert hf.id == "huggingface"


def test_unknown_provider_rejected():
    """A config naming an unregistered provider cannot build a client."""
    with pytest.raises(ProviderConfigError, match="not found"):
        LLMClient(ProviderConfig(provider="anthropic"))


def test_from_settings(tmp_path, monkeypatch):
    """Settings file and environment are resolved into the config."""
    settings_path = tmp_path / "settings.yaml"
    with open(settings_path, "w") as f:
        yaml.dump({"ai": {"provider": "huggingface", "hf_api_token": "saved"}}, f)
    monkeypatch.setenv("HF_API_TOKEN", "env-token")

    client = LLMClient.from_settings(settings_path)

    assert client.config.provider == "huggingface"
    assert client.config.api_key == "saved"


def test_send_delegates_to_provider():
    """send passes messages and the cancel event through unchanged."""
    client = LLMClient(openai_config())
    client.provider = Mock()
    client.provider.send.return_value = "[]"
    cancel = Mock()

    assert client.send(MESSAGES, cancel=cancel) == "[]"
    client.provider.send.assert_called_once_with(MESSAGES, cancel=cancel)


def test_send_rejects_malformed_messages():
    """Messages are validated before any provider call."""
    client = LLMClient(openai_config())
    client.provider = Mock()

    with pytest.raises(ValueError, match="invalid role"):
        client.send([{"role": "doctor", "content": "hi"}])
    with pytest.raises(ValueError, match="non-empty"):
        client.send([])
    client.provider.send.assert_not_called()


def test_trace_written_without_content(tmp_path):
    """Success traces record roles and sizes but never message text."""
    client = LLMClient(openai_config(), trace_dir=tmp_path)
    client.provider = Mock()
    client.provider.send.return_value = "report text"

    client.send(MESSAGES)

    trace_files = list(tmp_path.rglob("*.json"))
    assert len(trace_files) == 1
    data = json.loads(trace_files[0].read_text())
    assert data["success"] is True
    assert data["provider"] == "openai"
    assert data["request"]["messages"][0] == {"role": "system", "chars": len(MESSAGES[0]["content"])}
    assert data["response"] == {"chars": len("report text")}
    assert "fever" not in trace_files[0].read_text()


def test_error_trace_and_reraise(tmp_path):
    """Provider errors are traced and re-raised unchanged."""
    client = LLMClient(openai_config(), trace_dir=tmp_path)
    client.provider = Mock()
    client.provider.send.side_effect = QuotaExceededError("OpenAI quota exceeded: 429", status_code=429)

    with pytest.raises(QuotaExceededError):
        client.send(MESSAGES)

    data = json.loads(next(tmp_path.rglob("*.json")).read_text())
    assert data["success"] is False
    assert data["error"]["type"] == "QuotaExceededError"
    assert data["error"]["status_code"] == 429


def test_no_trace_by_default(tmp_path, monkeypatch):
    """Without trace_dir nothing is written."""
    monkeypatch.chdir(tmp_path)
    client = LLMClient(openai_config())
    client.provider = Mock()
    client.provider.send.return_value = "ok"

    client.send(MESSAGES)

    assert list(tmp_path.rglob("*.json")) == []


@patch("medportal.llm.client.logger")
def test_logs_start_and_success(mock_logger):
    """Structured events are logged without message content."""
    client = LLMClient(openai_config())
    client.provider = Mock()
    client.provider.send.return_value = "ok"

    client.send(MESSAGES)

    events = [c[1]["event"] for c in mock_logger.info.call_args_list]
    assert events == ["llm.send.start", "llm.send.success"]
    for c in mock_logger.info.call_args_list:
        assert "fever" not in str(c)


@patch("medportal.llm.client.logger")
def test_logs_error(mock_logger):
    """Failures are logged with error type before re-raising."""
    client = LLMClient(openai_config())
    client.provider = Mock()
    client.provider.send.side_effect = ProviderConfigError("Missing OpenAI API key")

    with pytest.raises(ProviderConfigError):
        client.send(MESSAGES)

    kwargs = mock_logger.error.call_args[1]
    assert kwargs["event"] == "llm.send.error"
    assert kwargs["error_type"] == "ProviderConfigError"
