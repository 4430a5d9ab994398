"""
AI Configuration Doctor - Validates provider configuration and optionally
exercises it end to end.

Usage:
    python -m medportal.llm.doctor
    python -m medportal.llm.doctor --settings ~/.medportal/settings.yaml --test
    python -m medportal.llm.doctor --direct-test
"""

import argparse
import sys
from typing import Any, Dict, Mapping

import requests
import yaml
from dotenv import load_dotenv

from .config import ProviderConfig, UserSettings, load_settings, resolve_provider_config
from .errors import ProviderError

DIRECT_TEST_INPUT = '[{"id":1,"text":"ok","type":"text","required":true}]'


def check_provider(config: ProviderConfig) -> Dict:
    """Check that the configured provider can be built and is usable.

    Returns:
        Dict with:
        - available: bool
        - error: str (if not available)
        - warnings: list of str
    """
    from .providers import build_provider

    result = {
        "available": False,
        "error": None,
        "warnings": []
    }

    try:
        provider = build_provider(config)
        provider.validate_config()
        result["available"] = True
    except ValueError as e:
        result["error"] = str(e)
        return result

    if config.temperature < 0 or config.temperature > 1:
        result["warnings"].append(f"Temperature {config.temperature} outside normal range [0, 1]")

    if config.provider == "huggingface":
        if not config.api_key:
            result["warnings"].append(
                "No Hugging Face token: only the proxy/client-direct paths can succeed"
            )
        if config.endpoint_mode != "default" and not config.endpoint_override:
            result["warnings"].append(
                f"Endpoint mode '{config.endpoint_mode}' used against the public inference API"
            )

    return result


def check_config(
    settings_path: str | None = None,
    overrides: Mapping[str, Any] | None = None,
    env: Mapping[str, str] | None = None,
) -> Dict:
    """Resolve and validate provider configuration.

    Returns:
        Dict with:
        - valid: bool
        - config: ProviderConfig or None
        - paths: {path name: enabled}
        - provider: result of check_provider
        - errors: [str]
        - warnings: [str]
    """
    result = {
        "valid": False,
        "config": None,
        "paths": {},
        "provider": {},
        "errors": [],
        "warnings": []
    }

    try:
        settings = load_settings(settings_path)
    except (ValueError, yaml.YAMLError) as e:
        result["errors"].append(f"Failed to read settings: {e}")
        return result

    try:
        config = resolve_provider_config(dict(overrides or {}), settings, env)
    except ValueError as e:
        result["errors"].append(str(e))
        return result

    result["config"] = config
    result["paths"] = describe_paths(config)
    result["warnings"].extend(_settings_warnings(settings))

    provider_result = check_provider(config)
    result["provider"] = provider_result
    if not provider_result["available"]:
        result["errors"].append(f"Provider '{config.provider}' unavailable: {provider_result['error']}")
    result["warnings"].extend(provider_result["warnings"])

    result["valid"] = len(result["errors"]) == 0
    return result


def describe_paths(config: ProviderConfig) -> Dict[str, bool]:
    """Which transport paths a configuration enables, in preference order."""
    if config.provider == "openai":
        return {"openai-chat": bool(config.api_key)}
    return {
        "client-direct": config.direct_endpoint is not None,
        "proxy": bool(config.proxy_base_url),
        "direct-to-provider": bool(config.api_key),
    }


def _settings_warnings(settings: UserSettings) -> list[str]:
    if settings.direct_ai_enabled and not (settings.hf_direct_endpoint_url and settings.hf_direct_token):
        return ["Direct AI is enabled but the endpoint URL or token is missing; client-direct mode is off"]
    return []


def run_questionnaire_test(config: ProviderConfig) -> Dict:
    """Generate a test questionnaire and report how many items came back."""
    from medportal.questionnaire import QuestionnaireError, QuestionnaireGenerator

    from .client import LLMClient

    result = {"ok": False, "count": 0, "error": None}
    try:
        questions = QuestionnaireGenerator(LLMClient(config)).generate({"test": True})
    except (QuestionnaireError, ProviderError) as e:
        result["error"] = str(e)
        return result

    result["ok"] = True
    result["count"] = len(questions)
    return result


def run_direct_test(config: ProviderConfig) -> Dict:
    """Send a minimal JSON payload to the client-direct endpoint."""
    result = {"ok": False, "status": None, "body": "", "error": None}
    endpoint = config.direct_endpoint
    if endpoint is None:
        result["error"] = "Enable Direct AI and provide endpoint URL + token"
        return result

    try:
        response = requests.post(
            endpoint.url,
            headers={"Content-Type": "application/json", "Authorization": f"Bearer {endpoint.token}"},
            json={
                "inputs": DIRECT_TEST_INPUT,
                "parameters": {"max_new_tokens": 8, "temperature": 0.0, "return_full_text": False},
                "options": {"wait_for_model": True},
            },
            timeout=config.timeout_s,
        )
    except requests.RequestException as e:
        result["error"] = str(e)
        return result

    result["status"] = response.status_code
    result["body"] = (response.text or "")[:200]
    if 200 <= response.status_code < 300:
        result["ok"] = True
    else:
        result["error"] = f"HTTP {response.status_code} {result['body']}"
    return result


def format_status(available: bool) -> str:
    """Format availability status with emoji."""
    return "✓" if available else "✗"


def print_report(check_result: Dict) -> None:
    """Print configuration validation report."""
    print("AI Configuration Doctor")
    print("=" * 40)
    print()

    config = check_result["config"]
    if config is not None:
        print(f"Provider: {config.provider}")
        print(f"Models:   {', '.join(config.model_candidates) or '-'}")
        if config.provider == "huggingface":
            print(f"Endpoint: {config.endpoint_override or 'public inference API'} ({config.endpoint_mode})")
        print()

        print("Paths:")
        for path, enabled in check_result["paths"].items():
            print(f"  {format_status(enabled)} {path}")
        print()

    if check_result["warnings"]:
        print("Warnings:")
        for warning in check_result["warnings"]:
            print(f"  - {warning}")
        print()

    if check_result["errors"]:
        print("Errors:")
        for error in check_result["errors"]:
            print(f"  - {error}")
        print()

    error_count = len(check_result["errors"])
    warning_count = len(check_result["warnings"])

    if check_result["valid"] and warning_count:
        print(f"Status: ⚠ VALID ({warning_count} warning(s))")
    elif check_result["valid"]:
        print("Status: ✓ VALID")
    else:
        print(f"Status: ✗ INVALID ({error_count} error(s))")


def main():
    """CLI entry point."""
    load_dotenv()

    parser = argparse.ArgumentParser(
        description="Validate AI provider configuration and connectivity"
    )
    parser.add_argument(
        "--settings",
        default=None,
        help="Path to user settings YAML (default: $MEDPORTAL_SETTINGS or ~/.medportal/settings.yaml)"
    )
    parser.add_argument(
        "--provider",
        choices=["openai", "huggingface"],
        help="Override the configured provider"
    )
    parser.add_argument(
        "--test",
        action="store_true",
        help="Generate a test questionnaire through the configured provider"
    )
    parser.add_argument(
        "--direct-test",
        action="store_true",
        help="Send a minimal JSON request to the client-direct endpoint"
    )

    args = parser.parse_args()

    overrides = {"provider": args.provider} if args.provider else {}
    result = check_config(args.settings, overrides)
    print_report(result)

    ok = result["valid"]
    if ok and args.test:
        test = run_questionnaire_test(result["config"])
        print()
        if test["ok"]:
            print(f"Questionnaire test: ✓ received {test['count']} items")
        else:
            print(f"Questionnaire test: ✗ {test['error']}")
            ok = False

    if result["config"] is not None and args.direct_test:
        direct = run_direct_test(result["config"])
        print()
        if direct["ok"]:
            print(f"Direct JSON test: ✓ HTTP {direct['status']} {direct['body']}")
        else:
            print(f"Direct JSON test: ✗ {direct['error']}")
            ok = False

    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
