"""
Usage ledger.

Wraps a ledger store with the two operations the request pipeline needs: the
trailing-window count for rate limiting and the per-attempt audit append.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from ..storage.models import GenerationStatus, UsageLogEntry
from .rate_limit import RateLimitPolicy

logger = logging.getLogger(__name__)


class UsageLedger:
    """Rate-limit window and audit trail over one ledger store.

    ``store`` is any object with ``count_since(user_id, since)`` and
    ``append(entry)`` coroutines (see ``recipe_guard.storage``).
    """

    def __init__(
        self,
        store,
        policy: Optional[RateLimitPolicy] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.policy = policy or RateLimitPolicy()
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    async def recent_count(self, user_id: str) -> int:
        """Attempts recorded for ``user_id`` in the trailing window."""
        since = self.policy.window_start(self.clock())
        return await self.store.count_since(user_id, since)

    async def record(
        self,
        user_id: str,
        status: GenerationStatus,
        ingredient_count: int,
        error_code: Optional[str] = None,
        latency_ms: Optional[int] = None,
    ) -> UsageLogEntry:
        """Append exactly one ledger row. Store failures propagate."""
        entry = UsageLogEntry(
            user_id=user_id,
            status=status,
            ingredient_count=ingredient_count,
            error_code=error_code,
            latency_ms=latency_ms,
        )
        await self.store.append(entry)
        return entry

    async def record_safely(
        self,
        user_id: str,
        status: GenerationStatus,
        ingredient_count: int,
        error_code: Optional[str] = None,
        latency_ms: Optional[int] = None,
    ) -> Optional[UsageLogEntry]:
        """Best-effort ``record``: failures are logged and discarded.

        Returns the written entry, or None when the write failed.
        """
        try:
            return await self.record(
                user_id,
                status,
                ingredient_count,
                error_code=error_code,
                latency_ms=latency_ms,
            )
        except Exception:
            logger.warning(
                "Failed to record %s ledger entry for user %s",
                status.value, user_id, exc_info=True,
            )
            return None
