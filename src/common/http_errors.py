"""
HTTP error handling utilities.

Provides a context manager that normalizes httpx exceptions raised by a
provider adapter into the closed `ProviderError` taxonomy, so nothing past
the adapter boundary ever sees a library-specific exception.
"""

from collections.abc import Generator
from contextlib import contextmanager

import httpx
from pydantic import ValidationError

from common.errors import ProviderCallError
from common.logging import get_logger
from models.provider import ProviderError, ProviderErrorKind

logger = get_logger(__name__)

DEFAULT_RETRY_AFTER = 60
QUOTA_RETRY_AFTER = 3600


def parse_retry_after(value: str | None, default: int = DEFAULT_RETRY_AFTER) -> int:
    """Read a Retry-After header given in seconds."""
    try:
        return max(0, int(value)) if value is not None else default
    except ValueError:
        return default


def error_from_response(provider_id: str, response: httpx.Response) -> ProviderError:
    """Map an unsuccessful HTTP response to a `ProviderError`."""
    status = response.status_code

    if status in (401, 403):
        kind, message = ProviderErrorKind.AUTH_ERROR, "Invalid or expired API key"
    elif status == 404:
        kind, message = ProviderErrorKind.NOT_FOUND, "Tracking number not found"
    elif status == 429:
        return ProviderError.rate_limit(
            provider_id,
            retry_after=parse_retry_after(response.headers.get("retry-after")),
        ).model_copy(update={"status_code": status})
    elif status == 402:
        # Payment required: freemium quota exhausted
        return ProviderError.rate_limit(
            provider_id, retry_after=QUOTA_RETRY_AFTER, message="Quota exceeded"
        ).model_copy(update={"status_code": status})
    elif status in (502, 503):
        kind, message = ProviderErrorKind.NETWORK_ERROR, f"Upstream unavailable ({status})"
    elif status == 504:
        kind, message = ProviderErrorKind.TIMEOUT, "Upstream gateway timeout"
    else:
        kind, message = ProviderErrorKind.INVALID_RESPONSE, f"HTTP {status} {response.reason_phrase}"

    return ProviderError(kind=kind, provider_id=provider_id, message=message, status_code=status)


@contextmanager
def normalize_http_errors(provider_id: str) -> Generator[None, None, None]:
    """
    Context manager for handling httpx errors consistently.

    Usage:
        with normalize_http_errors("maersk"):
            resp = await client.get(url)
            resp.raise_for_status()

    Raises:
        ProviderCallError: with a normalized `ProviderError` for any httpx,
            JSON or schema failure.
    """
    try:
        yield
    except ProviderCallError:
        raise
    except httpx.HTTPStatusError as e:
        error = error_from_response(provider_id, e.response)
        logger.warning(f"[{provider_id}] HTTP {e.response.status_code}: {error.kind.value}")
        raise ProviderCallError(error) from e
    except httpx.TimeoutException as e:
        logger.warning(f"[{provider_id}] Request timed out: {e!r}")
        raise ProviderCallError(
            ProviderError(kind=ProviderErrorKind.TIMEOUT, provider_id=provider_id, message="Request timeout")
        ) from e
    except httpx.RequestError as e:
        logger.warning(f"[{provider_id}] Request failed: {e!r}")
        raise ProviderCallError(
            ProviderError(
                kind=ProviderErrorKind.NETWORK_ERROR,
                provider_id=provider_id,
                message=f"Unable to connect: {type(e).__name__}",
            )
        ) from e
    except (ValueError, ValidationError) as e:
        # json decoding errors and pydantic validation errors are both ValueErrors
        logger.error(f"[{provider_id}] Invalid response: {e}")
        raise ProviderCallError(
            ProviderError(
                kind=ProviderErrorKind.INVALID_RESPONSE,
                provider_id=provider_id,
                message="Invalid response payload",
            )
        ) from e
