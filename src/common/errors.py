"""
Error taxonomy for the tracking core.

Adapters raise `ProviderCallError` (wrapping a normalized `ProviderError`).
The merge engine raises `NoDataError` / `AllFailedError`, the only errors that
escape the core. The caller-facing layer turns those into one
`TrackingFailure` via `collapse_provider_errors` and raises `TrackingError`.
"""

from pydantic import BaseModel, Field

from models.provider import ProviderError, ProviderErrorKind


class ProviderCallError(Exception):
    """Raised by an adapter for a failed call."""

    def __init__(self, error: ProviderError):
        super().__init__(f"[{error.provider_id}] {error.kind.value}: {error.message}")
        self.error = error


class TrackingCoreError(Exception):
    """Base class for errors escaping the aggregation core."""


class NoDataError(TrackingCoreError):
    """Merge was given no results at all."""

    def __init__(self, message: str = "No tracking data available"):
        super().__init__(message)
        self.errors: list[ProviderError] = []


class AllFailedError(TrackingCoreError):
    """Every provider answered with an error."""

    def __init__(self, errors: list[ProviderError]):
        kinds = ", ".join(f"{e.provider_id}={e.kind.value}" for e in errors)
        super().__init__(f"All providers failed ({kinds})")
        self.errors = errors


class TrackingFailure(BaseModel):
    """One user-facing error, with HTTP hints the caller can relay."""

    code: str
    message: str
    user_message: str
    status_code: int
    retryable: bool
    retry_after: int | None = Field(None, description="Seconds")


class TrackingError(Exception):
    """Caller-facing failure carrying a `TrackingFailure`."""

    def __init__(self, failure: TrackingFailure):
        super().__init__(failure.message)
        self.failure = failure


def invalid_request(message: str) -> TrackingError:
    return TrackingError(
        TrackingFailure(
            code="INVALID_TRACKING_NUMBER",
            message=message,
            user_message=f"{message}.",
            status_code=400,
            retryable=False,
        )
    )


def collapse_provider_errors(errors: list[ProviderError]) -> TrackingFailure:
    """
    Collapse per-provider errors into one user-facing failure.

    Precedence:
        1. all RATE_LIMIT          -> 429, retryable, max retry_after
        2. any NETWORK_ERROR/TIMEOUT -> 503, retryable
        3. all NOT_FOUND           -> 404, not retryable
        4. anything else           -> 500, retryable, no retry_after
    """
    kinds = {e.kind for e in errors}
    message = "; ".join(f"{e.provider_id}: {e.kind.value}" for e in errors) or "No provider returned data"

    if errors and kinds == {ProviderErrorKind.RATE_LIMIT}:
        retry_after = max((e.retry_after for e in errors if e.retry_after is not None), default=None)
        return TrackingFailure(
            code="RATE_LIMITED",
            message=message,
            user_message="Too many requests. Please wait a moment before searching again.",
            status_code=429,
            retryable=True,
            retry_after=retry_after,
        )

    if kinds & {ProviderErrorKind.NETWORK_ERROR, ProviderErrorKind.TIMEOUT}:
        return TrackingFailure(
            code="SERVICE_TEMPORARILY_UNAVAILABLE",
            message=message,
            user_message="Our tracking service is temporarily unavailable. Please try again in a few minutes.",
            status_code=503,
            retryable=True,
        )

    if errors and kinds == {ProviderErrorKind.NOT_FOUND}:
        return TrackingFailure(
            code="TRACKING_NOT_FOUND",
            message=message,
            user_message=(
                "We couldn't find tracking information for this number. "
                "Please verify the tracking number and try again."
            ),
            status_code=404,
            retryable=False,
        )

    return TrackingFailure(
        code="UNKNOWN_ERROR",
        message=message,
        user_message="An unexpected error occurred. Please try again later.",
        status_code=500,
        retryable=True,
    )
