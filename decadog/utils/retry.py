"""Retry utilities for transient transport failures.

Key Exports:
    call_with_retry: Call a function, retrying selected exceptions with
        exponential backoff.

Example:
    >>> from decadog.utils.retry import call_with_retry
    >>> response = call_with_retry(
    ...     lambda: client.send(request),
    ...     max_attempts=3,
    ...     exceptions=(TransportError,),
    ... )

Backoff Formula:
    delay = backoff_factor ** attempt_number
    For backoff_factor=2.0: 2s, 4s, 8s, 16s, ...
"""

import time
from collections.abc import Callable
from typing import TypeVar

import structlog

log = structlog.get_logger(__name__)

T = TypeVar("T")


def call_with_retry(
    func: Callable[[], T],
    max_attempts: int = 3,
    backoff_factor: float = 2.0,
    exceptions: tuple[type[Exception], ...] = (Exception,),
) -> T:
    """Call ``func`` until it succeeds or ``max_attempts`` is reached.

    Args:
        func: Zero-argument callable to invoke.
        max_attempts: Maximum number of calls, including the first. Values
            below 1 are treated as 1.
        backoff_factor: Base for the exponential delay between attempts.
        exceptions: Exception types that trigger a retry. Anything else
            propagates immediately.

    Returns:
        Whatever ``func`` returns.

    Raises:
        The last caught exception once all attempts are exhausted.
    """
    attempts = max(1, max_attempts)
    name = getattr(func, "__name__", repr(func))

    for attempt in range(1, attempts + 1):
        try:
            return func()
        except exceptions as e:
            if attempt == attempts:
                log.error("retry_exhausted", function=name, attempts=attempt, error=str(e))
                raise

            delay = backoff_factor**attempt
            log.warning(
                "retry_attempt",
                function=name,
                attempt=attempt,
                max_attempts=attempts,
                delay=delay,
                error=str(e),
            )
            time.sleep(delay)

    raise RuntimeError("Retry logic error")
