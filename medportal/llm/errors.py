"""Error taxonomy for chat-completion providers."""


class ProviderError(Exception):
    """A provider call failed and no model/endpoint combination succeeded."""

    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class TransientProviderError(ProviderError):
    """Model loading, 503 or network hiccup. Retried within the attempt budget."""


class ModelNotFoundError(ProviderError):
    """Requested model is unavailable; the next candidate may be tried."""


class QuotaExceededError(ProviderError):
    """Quota or hard rate limit. Never retried."""


class ProviderConfigError(ProviderError, ValueError):
    """Missing or invalid key, token, endpoint or provider setting."""


class RequestCancelled(ProviderError):
    """The caller cancelled the request before it completed."""
