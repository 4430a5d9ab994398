"""Provider configuration loading and resolution."""

import hashlib
import json
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml

from .errors import ProviderConfigError

PROVIDERS = ("openai", "huggingface")
ENDPOINT_MODES = ("default", "openai-chat", "openai-completions")

DEFAULT_OPENAI_MODELS = ("gpt-4", "gpt-4-0613", "gpt-3.5-turbo")
DEFAULT_HF_MODEL = "HuggingFaceH4/zephyr-7b-beta"
DEFAULT_SETTINGS_PATH = Path.home() / ".medportal" / "settings.yaml"

TUNABLES = ("temperature", "max_tokens", "max_new_tokens", "timeout_s", "max_attempts", "backoff_s", "deadline_s")


@dataclass(frozen=True)
class DirectEndpoint:
    """Client-direct inference endpoint configured in user settings."""

    url: str
    token: str


@dataclass(frozen=True)
class ProviderConfig:
    """Immutable provider configuration, resolved once per client."""

    provider: str
    api_key: str | None = None
    model_candidates: tuple[str, ...] = ()
    endpoint_override: str | None = None
    endpoint_mode: str = "default"
    proxy_base_url: str | None = None
    direct_endpoint: DirectEndpoint | None = None
    temperature: float = 0.3
    max_tokens: int = 2000
    max_new_tokens: int = 512
    timeout_s: float = 30.0
    max_attempts: int = 3
    backoff_s: float = 1.5
    deadline_s: float | None = None

    @property
    def model(self) -> str | None:
        """Primary model identifier."""
        return self.model_candidates[0] if self.model_candidates else None


@dataclass(frozen=True)
class UserSettings:
    """Values the user persisted locally (keys, tokens, direct mode)."""

    provider: str | None = None
    openai_api_key: str | None = None
    hf_api_token: str | None = None
    direct_ai_enabled: bool = False
    hf_direct_endpoint_url: str | None = None
    hf_direct_token: str | None = None


def load_settings(path: str | Path | None = None) -> UserSettings:
    """Load persisted user settings from YAML.

    A missing file yields empty settings; this module never writes the file.

    Args:
        path: Settings file. Defaults to $MEDPORTAL_SETTINGS or
            ~/.medportal/settings.yaml

    Returns:
        Parsed user settings

    Raises:
        ValueError: If the file is not a mapping with an optional 'ai' mapping
        yaml.YAMLError: If YAML is malformed
    """
    if path is None:
        path = os.getenv("MEDPORTAL_SETTINGS") or DEFAULT_SETTINGS_PATH
    path = Path(path)
    if not path.exists():
        return UserSettings()

    with open(path) as f:
        data = yaml.safe_load(f)

    if data is None:
        return UserSettings()
    if not isinstance(data, dict):
        raise ValueError(f"Settings file must contain a mapping: {path}")

    ai = data.get("ai") or {}
    if not isinstance(ai, dict):
        raise ValueError("Settings 'ai' section must be a mapping")

    return UserSettings(
        provider=_clean(ai.get("provider")),
        openai_api_key=_clean(ai.get("openai_api_key")),
        hf_api_token=_clean(ai.get("hf_api_token")),
        direct_ai_enabled=ai.get("direct_ai_enabled") is True or str(ai.get("direct_ai_enabled")).lower() == "true",
        hf_direct_endpoint_url=_clean(ai.get("hf_direct_endpoint_url")),
        hf_direct_token=_clean(ai.get("hf_direct_token")),
    )


def _clean(value: Any) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def resolve_provider_config(
    overrides: Dict[str, Any] | None = None,
    settings: UserSettings | None = None,
    env: Mapping[str, str] | None = None,
) -> ProviderConfig:
    """Resolve effective provider configuration.

    Precedence for every value: explicit override, then persisted user
    setting, then environment, then built-in default.

    Args:
        overrides: Explicit values (provider, api_key, model, model_candidates,
            endpoint_override, endpoint_mode, proxy_base_url and tunables)
        settings: Persisted user settings
        env: Environment mapping (defaults to os.environ)

    Returns:
        Frozen provider configuration

    Raises:
        ProviderConfigError: If provider or endpoint mode is unknown
    """
    overrides = overrides or {}
    settings = settings or UserSettings()
    env = os.environ if env is None else env

    def pick(key: str, setting_value: str | None, env_key: str | None, default: str | None = None) -> str | None:
        value = _clean(overrides.get(key))
        if value:
            return value
        if setting_value:
            return setting_value
        if env_key:
            value = _clean(env.get(env_key))
            if value:
                return value
        return default

    provider = pick("provider", settings.provider, "AI_PROVIDER", "openai").lower()
    if provider not in PROVIDERS:
        raise ProviderConfigError(
            f"Unknown AI provider '{provider}'. Available providers: {', '.join(PROVIDERS)}"
        )

    tunables = {key: overrides[key] for key in TUNABLES if overrides.get(key) is not None}

    if provider == "openai":
        candidates = overrides.get("model_candidates")
        if not candidates:
            model = _clean(overrides.get("model"))
            env_models = [m.strip() for m in (env.get("OPENAI_MODELS") or "").split(",") if m.strip()]
            candidates = [model] if model else (env_models or DEFAULT_OPENAI_MODELS)
        return ProviderConfig(
            provider=provider,
            api_key=pick("api_key", settings.openai_api_key, "OPENAI_API_KEY"),
            model_candidates=tuple(candidates),
            **tunables,
        )

    endpoint_mode = pick("endpoint_mode", None, "HF_ENDPOINT_MODE", "default").lower()
    if endpoint_mode not in ENDPOINT_MODES:
        raise ProviderConfigError(
            f"Unknown HF_ENDPOINT_MODE '{endpoint_mode}'. Expected one of: {', '.join(ENDPOINT_MODES)}"
        )

    endpoint_override = pick("endpoint_override", None, "HF_ENDPOINT_URL")
    proxy_base_url = pick("proxy_base_url", None, "AI_SERVER_BASE")

    direct_endpoint = None
    if settings.direct_ai_enabled and settings.hf_direct_endpoint_url and settings.hf_direct_token:
        direct_endpoint = DirectEndpoint(
            url=settings.hf_direct_endpoint_url.rstrip("/"),
            token=settings.hf_direct_token,
        )

    return ProviderConfig(
        provider=provider,
        api_key=pick("api_key", settings.hf_api_token, "HF_API_TOKEN"),
        model_candidates=(pick("model", None, "HF_CHAT_MODEL", DEFAULT_HF_MODEL),),
        endpoint_override=endpoint_override.rstrip("/") if endpoint_override else None,
        endpoint_mode=endpoint_mode,
        proxy_base_url=proxy_base_url.rstrip("/") if proxy_base_url else None,
        direct_endpoint=direct_endpoint,
        **tunables,
    )


def compute_config_hash(config: ProviderConfig) -> str:
    """Compute hash of configuration for reproducibility tracking.

    Excludes secrets (API keys and tokens) from the hash.

    Args:
        config: Provider configuration

    Returns:
        SHA256 hex digest of configuration
    """
    config_dict = asdict(config)
    config_dict.pop("api_key", None)
    if config_dict.get("direct_endpoint"):
        config_dict["direct_endpoint"] = {"url": config_dict["direct_endpoint"]["url"]}

    config_json = json.dumps(config_dict, sort_keys=True)
    return hashlib.sha256(config_json.encode()).hexdigest()
