"""
Rate limit enforcement.

The limit is a sliding window over the usage ledger: the number of attempts
recorded for a caller since ``now - window`` is compared to a fixed maximum.
There are no buckets and nothing to reset.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from .errors import RateLimitExceeded


@dataclass(frozen=True)
class RateLimitPolicy:
    """Sliding-window limit on generation attempts per caller."""
    max_requests: int = 12
    window_minutes: int = 15

    def __post_init__(self):
        if self.max_requests <= 0:
            raise ValueError("max_requests must be > 0")
        if self.window_minutes <= 0:
            raise ValueError("window_minutes must be > 0")

    @property
    def window(self) -> timedelta:
        return timedelta(minutes=self.window_minutes)

    def window_start(self, now: datetime) -> datetime:
        """Lower bound (inclusive) of the trailing window ending at ``now``."""
        return now - self.window


def check_rate_limit(recent_count: int, policy: RateLimitPolicy) -> int:
    """
    Enforce the limit for a caller with ``recent_count`` attempts in window.

    Args:
        recent_count: Ledger rows for the caller inside the trailing window
        policy: Limit to enforce

    Returns:
        Attempts still available in the window before this one is made

    Raises:
        RateLimitExceeded: If the caller already reached ``max_requests``
    """
    if recent_count >= policy.max_requests:
        raise RateLimitExceeded(
            f"Rate limit exceeded. Max {policy.max_requests} requests per "
            f"{policy.window_minutes} minutes.",
            count=recent_count,
            limit=policy.max_requests,
        )
    return policy.max_requests - recent_count
