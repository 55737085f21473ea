"""
Hosted ledger store.

Talks to the backend's PostgREST endpoint for the ledger table: a HEAD
request with an exact-count preference for the window count, and a POST for
appends. The caller's bearer credential is forwarded so row-level policies
apply on the backend.
"""

from datetime import datetime, timezone
from typing import Optional

import httpx

from ..core.errors import LedgerError
from .models import LEDGER_TABLE, UsageLogEntry


def parse_content_range_total(header_value: Optional[str]) -> int:
    """Extract the total from a ``Content-Range`` header such as ``0-11/12``.

    Missing, unknown (``*``) or garbled totals count as zero.
    """
    if not header_value:
        return 0
    _, _, total_part = header_value.partition("/")
    if not total_part:
        return 0
    try:
        total = int(total_part.strip())
    except ValueError:
        return 0
    return total if total >= 0 else 0


class RestLedgerStore:
    """Ledger store backed by the hosted ``recipe_generation_logs`` table."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        service_key: str,
        authorization: str,
        table: str = LEDGER_TABLE,
    ):
        self.client = client
        self.url = f"{base_url.rstrip('/')}/rest/v1/{table}"
        self.service_key = service_key
        self.authorization = authorization

    def _headers(self, **extra: str) -> dict:
        headers = {"Authorization": self.authorization, "apikey": self.service_key}
        headers.update(extra)
        return headers

    async def count_since(self, user_id: str, since: datetime) -> int:
        """Count the caller's rows newer than ``since`` without fetching them."""
        if since.tzinfo is None:
            since = since.replace(tzinfo=timezone.utc)
        params = {
            "select": "id",
            "user_id": f"eq.{user_id}",
            "requested_at": f"gte.{since.astimezone(timezone.utc).isoformat()}",
        }
        response = await self.client.head(
            self.url, params=params, headers=self._headers(Prefer="count=exact")
        )
        if not response.is_success:
            raise LedgerError("usage_count_failed")
        return parse_content_range_total(response.headers.get("content-range"))

    async def append(self, entry: UsageLogEntry) -> None:
        response = await self.client.post(
            self.url,
            json=entry.to_row(),
            headers=self._headers(Prefer="return=minimal"),
        )
        if not response.is_success:
            raise LedgerError("usage_log_failed")
