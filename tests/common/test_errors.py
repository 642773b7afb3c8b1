"""Tests for collapsing provider errors into one caller-facing failure."""

from common.errors import collapse_provider_errors, invalid_request
from models.provider import ProviderError, ProviderErrorKind


def error(kind: ProviderErrorKind, provider_id: str = "p", **kwargs) -> ProviderError:
    return ProviderError(kind=kind, provider_id=provider_id, **kwargs)


class TestCollapseProviderErrors:
    def test_all_rate_limited_uses_max_retry_after(self):
        """Three rate limits with 30/60/45s collapse to one 429 with 60s."""
        failure = collapse_provider_errors(
            [
                ProviderError.rate_limit("a", retry_after=30),
                ProviderError.rate_limit("b", retry_after=60),
                ProviderError.rate_limit("c", retry_after=45),
            ]
        )
        assert failure.status_code == 429
        assert failure.retryable is True
        assert failure.retry_after == 60
        assert failure.code == "RATE_LIMITED"

    def test_any_timeout_is_service_unavailable(self):
        failure = collapse_provider_errors(
            [error(ProviderErrorKind.NOT_FOUND, "a"), error(ProviderErrorKind.TIMEOUT, "b")]
        )
        assert failure.status_code == 503
        assert failure.retryable is True
        assert failure.retry_after is None

    def test_network_error_beats_rate_limit(self):
        failure = collapse_provider_errors(
            [ProviderError.rate_limit("a", retry_after=30), error(ProviderErrorKind.NETWORK_ERROR, "b")]
        )
        assert failure.status_code == 503

    def test_all_not_found_is_not_retryable(self):
        failure = collapse_provider_errors(
            [error(ProviderErrorKind.NOT_FOUND, "a"), error(ProviderErrorKind.NOT_FOUND, "b")]
        )
        assert failure.status_code == 404
        assert failure.retryable is False

    def test_mixed_errors_are_unknown(self):
        failure = collapse_provider_errors(
            [error(ProviderErrorKind.AUTH_ERROR, "a"), error(ProviderErrorKind.NOT_FOUND, "b")]
        )
        assert failure.status_code == 500
        assert failure.retryable is True
        assert failure.retry_after is None

    def test_empty_error_list_is_unknown(self):
        failure = collapse_provider_errors([])
        assert failure.status_code == 500
        assert failure.code == "UNKNOWN_ERROR"


def test_invalid_request_is_400():
    err = invalid_request("Tracking number cannot be empty")
    assert err.failure.status_code == 400
    assert err.failure.retryable is False
