"""Retry on Confluence rate limits.

The publish pipeline itself never retries; a failed remote call aborts the
run. The only retry policy lives here, inside the client: HTTP 429 responses
are retried with exponential backoff (1s, 2s, 4s). Every other error is
passed through immediately.
"""

import logging
import time
from typing import Callable, TypeVar

from .errors import APIAccessError

logger = logging.getLogger(__name__)

T = TypeVar('T')

MAX_RETRIES = 3

RATE_LIMIT_PATTERNS = (
    '429',
    'too many requests',
    'rate limit exceeded',
    'rate limited',
)


def retry_on_rate_limit(func: Callable[..., T], *args, **kwargs) -> T:
    """Call func, retrying up to MAX_RETRIES times on rate limit errors.

    Args:
        func: The callable to execute
        *args: Positional arguments for func
        **kwargs: Keyword arguments for func

    Returns:
        The return value of func

    Raises:
        APIAccessError: If the rate limit persists after all retries
        Exception: Any non rate limit error, unchanged
    """
    for attempt in range(MAX_RETRIES + 1):
        try:
            return func(*args, **kwargs)
        except Exception as e:
            if not is_rate_limit_error(e):
                raise
            if attempt >= MAX_RETRIES:
                logger.error(f"Rate limit persisted after {MAX_RETRIES} retries, giving up")
                raise APIAccessError(
                    f"Confluence API failure (after {MAX_RETRIES} retries)"
                ) from e

            wait_time = 2 ** attempt
            logger.info(
                f"Rate limit hit, retrying in {wait_time}s "
                f"(retry {attempt + 1}/{MAX_RETRIES})"
            )
            time.sleep(wait_time)

    raise APIAccessError(f"Confluence API failure (after {MAX_RETRIES} retries)")


def is_rate_limit_error(exception: Exception) -> bool:
    """Check whether an exception represents an HTTP 429 response."""
    status_code = getattr(exception, 'status_code', None)
    if status_code is None:
        response = getattr(exception, 'response', None)
        status_code = getattr(response, 'status_code', None)
    if status_code == 429:
        return True

    error_msg = str(exception).lower()
    return any(pattern in error_msg for pattern in RATE_LIMIT_PATTERNS)
