"""
Retry envelope around a single provider call.

Each attempt runs under the provider's own timeout. TIMEOUT and
NETWORK_ERROR are retried with exponential backoff. Every other error
ends the call immediately. The envelope never raises: the final outcome
is always a `RawResult`.
"""

import asyncio
from collections.abc import Awaitable, Callable

from common.config import config
from common.errors import ProviderCallError
from common.logging import get_logger
from models.provider import ProviderError, ProviderErrorKind, RawResult
from models.tracking import TrackingQuery
from services.providers.base import TrackingProvider

logger = get_logger(__name__)

Sleep = Callable[[float], Awaitable[None]]


def _calculate_backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    """Exponential backoff, capped. Never decreases with the attempt number."""
    return min(base_delay * (2 ** (attempt - 1)), max_delay)


def _should_retry_error(
    error: ProviderError, attempt: int, max_attempts: int, base_delay: float, max_delay: float
) -> tuple[bool, float | None]:
    """
    Determine if an error should be retried and calculate delay.

    Returns:
        Tuple of (should_retry, delay_seconds)
    """
    if attempt >= max_attempts or not error.kind.retryable:
        return False, None
    return True, _calculate_backoff_delay(attempt, base_delay, max_delay)


async def _attempt(provider: TrackingProvider, query: TrackingQuery) -> RawResult:
    """One call, with every failure (raised or returned) mapped to a `ProviderCallError`."""
    try:
        result = await asyncio.wait_for(
            provider.fetch(query.tracking_number, query.tracking_type),
            timeout=provider.profile.timeout_seconds,
        )
    except ProviderCallError:
        raise
    except asyncio.TimeoutError as e:
        raise ProviderCallError(
            ProviderError(
                kind=ProviderErrorKind.TIMEOUT,
                provider_id=provider.id,
                message=f"No response within {provider.profile.timeout_seconds}s",
            )
        ) from e
    except Exception as e:
        logger.exception(f"[{provider.id}] Unexpected adapter error")
        raise ProviderCallError(
            ProviderError(
                kind=ProviderErrorKind.INVALID_RESPONSE,
                provider_id=provider.id,
                message=f"Unexpected adapter error: {type(e).__name__}",
            )
        ) from e

    if not result.ok and result.error is not None:
        raise ProviderCallError(result.error)
    return result


async def call_with_retry(
    provider: TrackingProvider,
    query: TrackingQuery,
    base_delay: float = config.retry_base_delay,
    max_delay: float = config.retry_max_delay,
    sleep: Sleep = asyncio.sleep,
) -> RawResult:
    """
    Call a provider with bounded retries.

    Example:
        result = await call_with_retry(maersk, TrackingQuery.create("MAEU1234567"))
        if not result.ok:
            print(result.error.kind)
    """
    max_attempts = provider.profile.attempts

    for attempt in range(1, max_attempts + 1):
        try:
            if attempt > 1:
                logger.debug(f"[{provider.id}] Attempt {attempt}/{max_attempts}")
            result = await _attempt(provider, query)
            return result.model_copy(update={"attempts": attempt})

        except ProviderCallError as e:
            should_retry, delay = _should_retry_error(e.error, attempt, max_attempts, base_delay, max_delay)

            if should_retry and delay is not None:
                logger.warning(
                    f"[{provider.id}] {e.error.kind.value} (attempt {attempt}/{max_attempts}). "
                    f"Retrying in {delay:.1f}s..."
                )
                await sleep(delay)
                continue

            logger.warning(f"[{provider.id}] Giving up after {attempt} attempt(s): {e.error.kind.value}")
            return RawResult.failure(query.tracking_number, e.error, attempts=attempt)

    # Should never reach here, but for type safety
    raise RuntimeError(f"[{provider.id}] Exhausted all {max_attempts} attempts")
