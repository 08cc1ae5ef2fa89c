"""
Retries for LeadRadar's upstream API calls.

Only transient failures are retried: dropped connections, timeouts and
HTTP 429/5xx answers. A rejected key or a malformed request fails at once.
"""

import random
import time
from typing import Callable, Optional, TypeVar

from requests.exceptions import ConnectionError, HTTPError, RequestException, SSLError, Timeout

from .config import RetryConfig
from .logging_setup import get_logger

logger = get_logger("retry")

T = TypeVar("T")

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


def is_transient(error: Exception) -> bool:
    """True if repeating the same request could succeed."""
    if isinstance(error, SSLError):
        return False
    if isinstance(error, (ConnectionError, Timeout)):
        return True
    if isinstance(error, HTTPError) and error.response is not None:
        return error.response.status_code in RETRYABLE_STATUS_CODES
    return False


def _retry_after_seconds(error: Exception) -> Optional[float]:
    response = getattr(error, "response", None)
    if response is None:
        return None
    value = response.headers.get("Retry-After")
    try:
        return max(0.0, float(value)) if value else None
    except (TypeError, ValueError):
        # HTTP-date form; fall back to our own backoff
        return None


def backoff_seconds(attempt: int, config: RetryConfig, retry_after: Optional[float] = None) -> float:
    """
    Wait before the retry that follows failed attempt number `attempt` (0-based).
    A server-provided Retry-After wins, but never past max_delay_seconds.
    """
    if retry_after is not None:
        return min(retry_after, config.max_delay_seconds)

    delay = min(config.base_delay_seconds * config.exponential_base ** attempt, config.max_delay_seconds)
    if config.jitter:
        delay *= random.uniform(0.75, 1.25)
    return delay


def call_upstream(request: Callable[[], T], config: RetryConfig, operation: str) -> T:
    """
    Run `request`, retrying transient failures up to config.max_retries times.

    Raises:
        RequestException: the first non-transient error, or the last
            transient one once retries are used up
    """
    attempts = config.max_retries + 1
    attempt = 0
    while True:
        try:
            return request()
        except RequestException as e:
            attempt += 1
            if not is_transient(e) or attempt >= attempts:
                logger.error(f"{operation} failed after {attempt} attempt(s): {type(e).__name__}: {e}")
                raise

            delay = backoff_seconds(attempt - 1, config, _retry_after_seconds(e))
            logger.warning(
                f"{operation} attempt {attempt}/{attempts} failed: {type(e).__name__}: {e}. "
                f"Retrying in {delay:.1f}s"
            )
            time.sleep(delay)
