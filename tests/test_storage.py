"""
Unit tests for storage layer.

Tests schema creation, ledger appends and window counts for both the local
SQLite store and the hosted REST store.
"""

import json
import os
import tempfile
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from recipe_guard.core.errors import LedgerError
from recipe_guard.storage.db import get_connection
from recipe_guard.storage.models import GenerationStatus, UsageLogEntry
from recipe_guard.storage.repository import (
    SQLiteLedgerStore,
    count_usage_since,
    fetch_recent_usage_entries,
    initialize_schema,
    insert_usage_entry,
)
from recipe_guard.storage.rest import RestLedgerStore, parse_content_range_total

NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_entry(user_id="user-1", status=GenerationStatus.SUCCESS, **kwargs):
    return UsageLogEntry(user_id=user_id, status=status, ingredient_count=kwargs.pop("ingredient_count", 5), **kwargs)


class TestStorageSchema:
    """Test database schema creation and structure."""

    def test_schema_creation(self):
        """Verify table is created correctly."""
        with tempfile.TemporaryDirectory() as temp_dir:
            db_path = os.path.join(temp_dir, "test.db")
            initialize_schema(db_path)

            conn = get_connection(db_path)
            try:
                cursor = conn.execute("PRAGMA table_info(recipe_generation_logs)")
                column_names = [col[1] for col in cursor.fetchall()]
                assert column_names == [
                    'id', 'user_id', 'status', 'provider', 'ingredient_count',
                    'error_code', 'latency_ms', 'requested_at'
                ]
            finally:
                conn.close()

    def test_schema_creation_is_idempotent(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            db_path = os.path.join(temp_dir, "nested", "test.db")
            initialize_schema(db_path)
            initialize_schema(db_path)
            assert fetch_recent_usage_entries(db_path=db_path) == []


class TestLedgerAppend:
    """Test append and read-back of ledger entries."""

    def test_insert_single_entry(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            db_path = os.path.join(temp_dir, "test.db")
            initialize_schema(db_path)

            insert_usage_entry(
                make_entry(status=GenerationStatus.ERROR, error_code="openai_timeout", latency_ms=20010),
                db_path,
                requested_at=NOW,
            )

            entries = fetch_recent_usage_entries(db_path=db_path)
            assert len(entries) == 1
            entry = entries[0]
            assert entry.user_id == "user-1"
            assert entry.status == GenerationStatus.ERROR
            assert entry.provider == "openai"
            assert entry.ingredient_count == 5
            assert entry.error_code == "openai_timeout"
            assert entry.latency_ms == 20010
            assert entry.requested_at == NOW

    def test_entries_newest_first_and_filtered(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            db_path = os.path.join(temp_dir, "test.db")
            initialize_schema(db_path)
            insert_usage_entry(make_entry(ingredient_count=3), db_path, requested_at=NOW)
            insert_usage_entry(make_entry(ingredient_count=4), db_path, requested_at=NOW + timedelta(minutes=1))
            insert_usage_entry(make_entry(user_id="other"), db_path, requested_at=NOW)

            entries = fetch_recent_usage_entries(user_id="user-1", db_path=db_path)
            assert [e.ingredient_count for e in entries] == [4, 3]


class TestWindowCount:
    """Test trailing-window counting."""

    def test_count_respects_lower_bound_and_user(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            db_path = os.path.join(temp_dir, "test.db")
            initialize_schema(db_path)
            insert_usage_entry(make_entry(), db_path, requested_at=NOW - timedelta(minutes=20))
            insert_usage_entry(make_entry(), db_path, requested_at=NOW - timedelta(minutes=15))
            insert_usage_entry(make_entry(), db_path, requested_at=NOW - timedelta(minutes=1))
            insert_usage_entry(make_entry(user_id="other"), db_path, requested_at=NOW)

            since = NOW - timedelta(minutes=15)
            assert count_usage_since("user-1", since, db_path) == 2
            assert count_usage_since("other", since, db_path) == 1
            assert count_usage_since("nobody", since, db_path) == 0

    @pytest.mark.asyncio
    async def test_store_assigns_timestamp_from_clock(self, tmp_path):
        store = SQLiteLedgerStore(str(tmp_path / "ledger.db"), clock=lambda: NOW)
        await store.append(make_entry(status=GenerationStatus.RATE_LIMITED))

        assert await store.count_since("user-1", NOW) == 1
        assert await store.count_since("user-1", NOW + timedelta(microseconds=1)) == 0
        assert store.recent_entries()[0].requested_at == NOW


class TestContentRange:
    """Test Content-Range total parsing."""

    @pytest.mark.parametrize("header,expected", [
        ("0-11/12", 12),
        ("*/0", 0),
        ("0-0/1", 1),
        ("0-4/*", 0),
        ("garbage", 0),
        ("", 0),
        (None, 0),
        ("0-1/-3", 0),
    ])
    def test_parse(self, header, expected):
        assert parse_content_range_total(header) == expected


class TestRestLedgerStore:
    """Test the hosted store against a mocked backend."""

    def _store(self, handler):
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return RestLedgerStore(client, "https://db.example.co/", "anon-key", "Bearer user-token")

    @pytest.mark.asyncio
    async def test_count_uses_head_with_exact_count(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["request"] = request
            return httpx.Response(200, headers={"content-range": "0-6/7"})

        store = self._store(handler)
        count = await store.count_since("user-1", NOW - timedelta(minutes=15))

        request = seen["request"]
        assert count == 7
        assert request.method == "HEAD"
        assert request.url.path == "/rest/v1/recipe_generation_logs"
        assert request.url.params["select"] == "id"
        assert request.url.params["user_id"] == "eq.user-1"
        assert request.url.params["requested_at"] == "gte.2024-06-01T11:45:00+00:00"
        assert request.headers["prefer"] == "count=exact"
        assert request.headers["authorization"] == "Bearer user-token"
        assert request.headers["apikey"] == "anon-key"

    @pytest.mark.asyncio
    async def test_count_failure_raises(self):
        store = self._store(lambda request: httpx.Response(500))
        with pytest.raises(LedgerError, match="usage_count_failed"):
            await store.count_since("user-1", NOW)

    @pytest.mark.asyncio
    async def test_append_posts_row(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["request"] = request
            return httpx.Response(201)

        store = self._store(handler)
        await store.append(make_entry(
            status=GenerationStatus.ERROR, error_code="openai_http_500", latency_ms=812, ingredient_count=6
        ))

        request = seen["request"]
        assert request.method == "POST"
        assert request.headers["prefer"] == "return=minimal"
        assert json.loads(request.content) == {
            "user_id": "user-1",
            "status": "error",
            "provider": "openai",
            "ingredient_count": 6,
            "error_code": "openai_http_500",
            "latency_ms": 812,
        }

    @pytest.mark.asyncio
    async def test_append_failure_raises(self):
        store = self._store(lambda request: httpx.Response(403))
        with pytest.raises(LedgerError, match="usage_log_failed"):
            await store.append(make_entry())
