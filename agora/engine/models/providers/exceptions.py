"""Provider exceptions."""

from __future__ import annotations


class ProviderRateLimitError(RuntimeError):
    """Raised when a generation backend rejects a request for rate limiting."""

    def __init__(
        self,
        *,
        provider: str,
        model: str,
        status_code: int | None = None,
        detail: str | None = None,
    ):
        self.provider = provider
        self.model = model
        self.status_code = status_code
        self.detail = detail
        message = detail or f"{provider} rate limited the request"
        super().__init__(f"{message} (model={model}, status={status_code})")
