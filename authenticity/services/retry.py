import logging
import time
from typing import Any, Callable, Optional, TypeVar

from authenticity.services.errors import RateLimitedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_rate_limited(exc: BaseException) -> bool:
    """
    True when an exception signals HTTP 429.

    A structured status code wins when the exception carries one. Only when it
    carries none do we fall back to looking for "429" in the message, which is
    what older callers relied on and can misfire on unrelated text.
    """
    if isinstance(exc, RateLimitedError):
        return True
    for attr in ("upstream_status", "status_code"):
        status = getattr(exc, attr, None)
        if isinstance(status, int):
            return status == 429
    return "429" in str(exc)


class RetryingFetchClient:
    """
    Calls an upstream endpoint, retrying only on rate limiting with an
    exponentially doubling delay. Any other error propagates immediately.
    """

    def __init__(self, max_retries: int = 3, initial_delay: float = 1.0,
                 sleep: Callable[[float], Any] = time.sleep):
        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self._sleep = sleep

    def call(self, endpoint: Callable[[Any], T], payload: Any,
             max_retries: Optional[int] = None, initial_delay: Optional[float] = None) -> T:
        retries = self.max_retries if max_retries is None else max_retries
        delay = self.initial_delay if initial_delay is None else initial_delay
        name = getattr(endpoint, "name", None)
        if not isinstance(name, str):
            name = getattr(endpoint, "__name__", endpoint.__class__.__name__)

        attempt = 0
        while True:
            try:
                return endpoint(payload)
            except Exception as e:
                if not is_rate_limited(e) or attempt >= retries:
                    raise
                attempt += 1
                logger.warning("Rate limited by %s; retry %d/%d in %.2fs", name, attempt, retries, delay)
                self._sleep(delay)
                delay *= 2
