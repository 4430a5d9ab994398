"""Tests for provider configuration loading and resolution."""

import dataclasses
from pathlib import Path

import pytest
import yaml

from medportal.llm.config import (
    DEFAULT_HF_MODEL,
    DEFAULT_OPENAI_MODELS,
    DirectEndpoint,
    UserSettings,
    compute_config_hash,
    load_settings,
    resolve_provider_config,
)
from medportal.llm.errors import ProviderConfigError


def write_settings(tmp_path: Path, content) -> Path:
    """Create a settings file for testing."""
    path = tmp_path / "settings.yaml"
    with open(path, "w") as f:
        yaml.dump(content, f)
    return path


class TestLoadSettings:
    """Test persisted settings loading."""

    def test_missing_file_yields_empty_settings(self, tmp_path):
        assert load_settings(tmp_path / "absent.yaml") == UserSettings()

    def test_load_valid_settings(self, tmp_path):
        path = write_settings(tmp_path, {
            "ai": {
                "provider": "huggingface",
                "hf_api_token": " hf-saved ",
                "direct_ai_enabled": True,
                "hf_direct_endpoint_url": "https://direct.example/",
                "hf_direct_token": "direct-token",
            }
        })

        settings = load_settings(path)

        assert settings.provider == "huggingface"
        assert settings.hf_api_token == "hf-saved"
        assert settings.direct_ai_enabled is True
        assert settings.hf_direct_endpoint_url == "https://direct.example/"

    def test_direct_flag_accepts_string(self, tmp_path):
        path = write_settings(tmp_path, {"ai": {"direct_ai_enabled": "true"}})
        assert load_settings(path).direct_ai_enabled is True

    def test_env_var_selects_file(self, tmp_path, monkeypatch):
        path = write_settings(tmp_path, {"ai": {"openai_api_key": "from-file"}})
        monkeypatch.setenv("MEDPORTAL_SETTINGS", str(path))
        assert load_settings().openai_api_key == "from-file"

    def test_non_mapping_file_rejected(self, tmp_path):
        path = write_settings(tmp_path, ["not", "a", "mapping"])
        with pytest.raises(ValueError, match="must contain a mapping"):
            load_settings(path)

    def test_non_mapping_ai_section_rejected(self, tmp_path):
        path = write_settings(tmp_path, {"ai": "nope"})
        with pytest.raises(ValueError, match="'ai' section"):
            load_settings(path)


class TestResolveProviderConfig:
    """Test layered resolution."""

    def test_defaults_to_openai(self):
        config = resolve_provider_config(env={})
        assert config.provider == "openai"
        assert config.model_candidates == DEFAULT_OPENAI_MODELS
        assert config.api_key is None
        assert config.timeout_s == 30.0

    def test_env_values(self):
        config = resolve_provider_config(env={
            "OPENAI_API_KEY": "env-key",
            "OPENAI_MODELS": "gpt-4o, gpt-4o-mini",
        })
        assert config.api_key == "env-key"
        assert config.model_candidates == ("gpt-4o", "gpt-4o-mini")

    def test_settings_beat_env(self):
        config = resolve_provider_config(
            settings=UserSettings(openai_api_key="saved-key"),
            env={"OPENAI_API_KEY": "env-key"},
        )
        assert config.api_key == "saved-key"

    def test_override_beats_settings(self):
        config = resolve_provider_config(
            overrides={"api_key": "explicit"},
            settings=UserSettings(openai_api_key="saved-key"),
            env={"OPENAI_API_KEY": "env-key"},
        )
        assert config.api_key == "explicit"

    def test_blank_values_fall_through(self):
        config = resolve_provider_config(
            overrides={"api_key": "  "},
            env={"OPENAI_API_KEY": "env-key"},
        )
        assert config.api_key == "env-key"

    def test_huggingface_from_env(self):
        config = resolve_provider_config(env={
            "AI_PROVIDER": "HuggingFace",
            "HF_API_TOKEN": "hf-env",
            "HF_ENDPOINT_URL": "https://endpoint.example/",
            "HF_ENDPOINT_MODE": "OpenAI-Chat",
            "AI_SERVER_BASE": "http://localhost:5001/",
        })
        assert config.provider == "huggingface"
        assert config.api_key == "hf-env"
        assert config.model == DEFAULT_HF_MODEL
        assert config.endpoint_override == "https://endpoint.example"
        assert config.endpoint_mode == "openai-chat"
        assert config.proxy_base_url == "http://localhost:5001"
        assert config.direct_endpoint is None

    def test_direct_endpoint_requires_flag_url_and_token(self):
        env = {"AI_PROVIDER": "huggingface"}
        enabled = UserSettings(
            direct_ai_enabled=True,
            hf_direct_endpoint_url="https://direct.example/",
            hf_direct_token="tok",
        )
        assert resolve_provider_config(settings=enabled, env=env).direct_endpoint == DirectEndpoint(
            url="https://direct.example", token="tok"
        )

        disabled = dataclasses.replace(enabled, direct_ai_enabled=False)
        assert resolve_provider_config(settings=disabled, env=env).direct_endpoint is None

        no_token = dataclasses.replace(enabled, hf_direct_token=None)
        assert resolve_provider_config(settings=no_token, env=env).direct_endpoint is None

    def test_tunable_overrides(self):
        config = resolve_provider_config(overrides={"max_attempts": 5, "deadline_s": 20.0}, env={})
        assert config.max_attempts == 5
        assert config.deadline_s == 20.0

    def test_unknown_provider(self):
        with pytest.raises(ProviderConfigError, match="Unknown AI provider 'anthropic'"):
            resolve_provider_config(env={"AI_PROVIDER": "anthropic"})

    def test_unknown_endpoint_mode(self):
        with pytest.raises(ProviderConfigError, match="HF_ENDPOINT_MODE"):
            resolve_provider_config(env={"AI_PROVIDER": "huggingface", "HF_ENDPOINT_MODE": "grpc"})

    def test_config_is_frozen(self):
        config = resolve_provider_config(env={})
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.api_key = "changed"


class TestComputeConfigHash:
    """Test reproducibility hashing."""

    def test_hash_excludes_secrets(self):
        a = resolve_provider_config(overrides={"api_key": "one"}, env={})
        b = resolve_provider_config(overrides={"api_key": "two"}, env={})
        assert compute_config_hash(a) == compute_config_hash(b)

    def test_hash_excludes_direct_token(self):
        env = {"AI_PROVIDER": "huggingface"}
        base = UserSettings(direct_ai_enabled=True, hf_direct_endpoint_url="https://d", hf_direct_token="a")
        other = dataclasses.replace(base, hf_direct_token="b")
        assert compute_config_hash(resolve_provider_config(settings=base, env=env)) == compute_config_hash(
            resolve_provider_config(settings=other, env=env)
        )

    def test_hash_tracks_models(self):
        a = resolve_provider_config(env={})
        b = resolve_provider_config(env={"OPENAI_MODELS": "gpt-4o"})
        assert compute_config_hash(a) != compute_config_hash(b)
