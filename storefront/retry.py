"""Retry policy for backend reads (tenacity)."""
import logging

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from storefront.logging import get_logger

logger = get_logger(__name__)

# Timeouts, connection resets and DNS failures; HTTP error statuses are not retried
TRANSIENT_ERRORS = (httpx.TransportError,)


def transient_retry(attempts: int, backoff: float) -> AsyncRetrying:
    """
    Retrying controller for transient transport errors.

    Usage:
        async for attempt in transient_retry(2, 0.8):
            with attempt:
                result = await query.execute()
    """
    return AsyncRetrying(
        reraise=True,
        stop=stop_after_attempt(max(1, attempts)),
        wait=wait_exponential(multiplier=backoff, min=backoff, max=backoff * 8),
        retry=retry_if_exception_type(TRANSIENT_ERRORS),
        before_sleep=before_sleep_log(logger, logging.WARNING),
    )
