"""Integration tests for the SQLite metric store."""

import math

import aiosqlite
import pytest

from httpgauge.adapters.storage import SQLiteMetricStore
from httpgauge.core.metrics import gauge
from httpgauge.core.models import MetricIdentity

# All tests in this module are tier 2 (integration tests with file I/O)
pytestmark = [pytest.mark.tier(2), pytest.mark.storage]


class TestSQLiteMetricStore:
    """Tests for SQLiteMetricStore."""

    async def test_upsert_and_snapshot(self, metrics_db_path: str) -> None:
        async with SQLiteMetricStore(metrics_db_path) as store:
            await store.upsert(gauge("yaks", 5, {"key": "total"}, timestamp_ms=10))
            await store.upsert(gauge("yaks", 3, {"key": "shaved"}, timestamp_ms=10))

            entries = await store.snapshot()

        assert [(e.identity, e.value, e.timestamp_ms) for e in entries] == [
            (MetricIdentity.of("yaks", {"key": "shaved"}), 3.0, 10),
            (MetricIdentity.of("yaks", {"key": "total"}), 5.0, 10),
        ]

    async def test_upsert_replaces_existing_row(self, metrics_db_path: str) -> None:
        async with SQLiteMetricStore(metrics_db_path) as store:
            await store.upsert(gauge("m", 1, {"b": "2", "a": "1"}, timestamp_ms=1))
            await store.upsert(gauge("m", 2, {"a": "1", "b": "2"}, timestamp_ms=2))

            entries = await store.snapshot()

        assert len(entries) == 1
        assert (entries[0].value, entries[0].timestamp_ms) == (2.0, 2)

    async def test_new_process_starts_empty(self, metrics_db_path: str) -> None:
        """Gauges do not outlive the store that wrote them."""
        async with SQLiteMetricStore(metrics_db_path) as first:
            await first.upsert(gauge("m", 1, timestamp_ms=1))

        async with SQLiteMetricStore(metrics_db_path) as second:
            assert await second.snapshot() == []

    async def test_rows_are_readable_by_other_connections(
        self, metrics_db_path: str
    ) -> None:
        async with SQLiteMetricStore(metrics_db_path) as store:
            await store.upsert(gauge("m", 7, {"k": "v"}, timestamp_ms=3))

            async with aiosqlite.connect(metrics_db_path) as db:
                async with db.execute("SELECT name, labels, value FROM gauges") as cur:
                    rows = await cur.fetchall()

        assert rows == [("m", '{"k":"v"}', 7.0)]

    async def test_reuses_one_connection(self, metrics_db_path: str) -> None:
        store = SQLiteMetricStore(metrics_db_path)
        try:
            db = await store.open()
            await store.upsert(gauge("m", 1, timestamp_ms=1))
            await store.snapshot()
            assert await store.open() is db
        finally:
            await store.close()

    async def test_memory_database(self) -> None:
        store = SQLiteMetricStore(":memory:")
        try:
            await store.upsert(gauge("m", 4, timestamp_ms=1))
            assert [e.value for e in await store.snapshot()] == [4.0]
        finally:
            await store.close()

    async def test_nan_survives_round_trip(self, metrics_db_path: str) -> None:
        async with SQLiteMetricStore(metrics_db_path) as store:
            await store.upsert(gauge("m", math.nan, timestamp_ms=1))

            entries = await store.snapshot()

        assert math.isnan(entries[0].value)
