"""
Error taxonomy for the fetch tiers.

Every error carries enough context (tier, status code, body snippet) to be
turned into an EscalationSignal without going back to the response.
"""

from .models import EscalationSignal, TierFailure


class FetchError(Exception):
    """Base exception for fetch errors."""

    def __init__(
        self,
        message: str,
        *,
        tier: str | None = None,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.tier = tier
        self.status_code = status_code
        self.body = body

    def to_failure(self, tier: str | None = None) -> TierFailure:
        return TierFailure(
            tier=tier or self.tier or "unknown",
            message=self.message,
            status_code=self.status_code,
            body=self.body,
        )

    def signal(self) -> EscalationSignal:
        return EscalationSignal(self.message, self.status_code, self.body)


class ValidationError(FetchError):
    """Raised before any I/O for bad URLs, oversize batches or bad options."""

    def __init__(self, message: str, invalid_urls: list[str] | None = None) -> None:
        super().__init__(message)
        self.invalid_urls = list(invalid_urls or [])


class FetchTimeoutError(FetchError):
    pass


class UpstreamError(FetchError):
    """Non-success HTTP status from the reader service or the origin."""

    def __init__(self, message: str, status_code: int, *, tier: str | None = None, body: str | None = None) -> None:
        super().__init__(message, tier=tier, status_code=status_code, body=body)


class ExtractionError(FetchError):
    pass


class BrowserLaunchError(FetchError):
    pass


class EscalationExhaustedError(FetchError):
    """All attempted tiers failed. The message lists each failure in attempt order."""

    def __init__(self, failures: list[TierFailure]) -> None:
        self.failures = list(failures)
        detail = "; ".join(f"{f.tier}: {f.message}" for f in self.failures)
        super().__init__(f"All fetch methods failed. {detail}")
