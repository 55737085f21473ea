"""
Repository pattern for the local usage ledger.

SQLite-backed ledger store used for local development, the CLI and tests.
It exposes the same count/append interface as the REST store.
"""

from datetime import datetime, timezone
from typing import Callable, List, Optional

from .db import DEFAULT_DB_PATH, get_connection
from .models import LEDGER_TABLE, GenerationStatus, UsageLogEntry

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _format_timestamp(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="microseconds")


def initialize_schema(db_path: str = DEFAULT_DB_PATH) -> None:
    """Create the ledger table if it doesn't exist.

    This creates an append-only ledger of generation attempts.
    No UPDATE or DELETE operations should ever be performed on this table.

    Args:
        db_path: Path to SQLite database file
    """
    conn = get_connection(db_path)
    try:
        conn.execute(f"""
            CREATE TABLE IF NOT EXISTS {LEDGER_TABLE} (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id TEXT NOT NULL,
                status TEXT NOT NULL,
                provider TEXT NOT NULL,
                ingredient_count INTEGER NOT NULL,
                error_code TEXT,
                latency_ms INTEGER,
                requested_at TEXT NOT NULL
            )
        """)
        conn.execute(f"""
            CREATE INDEX IF NOT EXISTS idx_{LEDGER_TABLE}_user_time
            ON {LEDGER_TABLE} (user_id, requested_at)
        """)
        conn.commit()
    finally:
        conn.close()


def insert_usage_entry(
    entry: UsageLogEntry,
    db_path: str = DEFAULT_DB_PATH,
    requested_at: Optional[datetime] = None,
) -> None:
    """Append a single entry to the ledger.

    Args:
        entry: The attempt to record
        db_path: Path to SQLite database file
        requested_at: Timestamp to store (defaults to now, UTC)
    """
    row = entry.to_row()
    conn = get_connection(db_path)
    try:
        conn.execute(f"""
            INSERT INTO {LEDGER_TABLE}
            (user_id, status, provider, ingredient_count, error_code,
             latency_ms, requested_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """, (
            row["user_id"],
            row["status"],
            row["provider"],
            row["ingredient_count"],
            row["error_code"],
            row["latency_ms"],
            _format_timestamp(requested_at or utc_now()),
        ))
        conn.commit()
    finally:
        conn.close()


def count_usage_since(user_id: str, since: datetime, db_path: str = DEFAULT_DB_PATH) -> int:
    """Count ledger rows for ``user_id`` with ``requested_at >= since``."""
    conn = get_connection(db_path)
    try:
        cursor = conn.execute(
            f"SELECT COUNT(*) FROM {LEDGER_TABLE} WHERE user_id = ? AND requested_at >= ?",
            (user_id, _format_timestamp(since)),
        )
        return cursor.fetchone()[0]
    finally:
        conn.close()


def fetch_recent_usage_entries(
    user_id: Optional[str] = None,
    limit: int = 100,
    db_path: str = DEFAULT_DB_PATH
) -> List[UsageLogEntry]:
    """Fetch recent ledger entries, newest first.

    Args:
        user_id: Optional filter for a single caller
        limit: Maximum number of entries to return
        db_path: Path to SQLite database file

    Returns:
        List of entries ordered by timestamp (newest first)
    """
    conn = get_connection(db_path)
    try:
        query = (
            "SELECT user_id, status, provider, ingredient_count, error_code, "
            f"latency_ms, requested_at FROM {LEDGER_TABLE}"
        )
        params: list = []
        if user_id:
            query += " WHERE user_id = ?"
            params.append(user_id)
        query += " ORDER BY requested_at DESC, id DESC LIMIT ?"
        params.append(limit)

        cursor = conn.execute(query, params)
        return [
            UsageLogEntry(
                user_id=row[0],
                status=GenerationStatus(row[1]),
                provider=row[2],
                ingredient_count=row[3],
                error_code=row[4],
                latency_ms=row[5],
                requested_at=datetime.fromisoformat(row[6]),
            )
            for row in cursor.fetchall()
        ]
    finally:
        conn.close()


class SQLiteLedgerStore:
    """Ledger store over a local SQLite file.

    The store assigns ``requested_at`` from its own clock, the way the hosted
    table assigns it server-side.
    """

    def __init__(self, db_path: str = DEFAULT_DB_PATH, clock: Optional[Clock] = None):
        self.db_path = db_path
        self.clock = clock or utc_now
        initialize_schema(db_path)

    async def count_since(self, user_id: str, since: datetime) -> int:
        return count_usage_since(user_id, since, self.db_path)

    async def append(self, entry: UsageLogEntry) -> None:
        insert_usage_entry(entry, self.db_path, requested_at=self.clock())

    def recent_entries(self, user_id: Optional[str] = None, limit: int = 100) -> List[UsageLogEntry]:
        return fetch_recent_usage_entries(user_id=user_id, limit=limit, db_path=self.db_path)
