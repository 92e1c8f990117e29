"""Request throttling for the GoodReads client."""

import time

from common.constants import SLEEP_BETWEEN_REQUESTS
from common.logger import get_logger

logger = get_logger(__name__)


class RateLimiter:
    """Minimum-interval throttle between consecutive requests.

    GoodReads' terms ask for no more than one request per second. This is a
    courtesy throttle rather than a token bucket: a single last-request
    timestamp, no burst allowance, no per-endpoint distinction. Each client
    owns its own limiter.

    Example:
        >>> limiter = RateLimiter(min_interval=1.0)
        >>> limiter.wait_if_needed()  # Blocks if the last request was < 1s ago
        >>> ...  # make the request
        >>> limiter.record_request()
    """

    def __init__(self, min_interval: float = SLEEP_BETWEEN_REQUESTS):
        """Initialize rate limiter.

        Args:
            min_interval: Minimum seconds between the end of one request and
                the start of the next
        """
        self.min_interval = min_interval
        self.last_request_time: float | None = None

    def wait_if_needed(self) -> None:
        """Sleep until ``min_interval`` has passed since the last request.

        This method should be called before each API request.
        """
        if self.last_request_time is None:
            return

        elapsed = time.monotonic() - self.last_request_time
        remaining = self.min_interval - elapsed
        if remaining > 0:
            logger.debug(f"Rate limiting: sleeping {remaining:.3f}s")
            time.sleep(remaining)

    def record_request(self) -> None:
        """Mark that a request has just been made (successful or not)."""
        self.last_request_time = time.monotonic()

    def reset(self) -> None:
        """Forget the last request (useful for testing)."""
        self.last_request_time = None
