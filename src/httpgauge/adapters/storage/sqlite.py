"""SQLite storage adapter for gauges."""

import asyncio
import json
import math

import aiosqlite

from httpgauge.core.models import MetricIdentity, Observation, StoreEntry

# value is nullable because SQLite stores NaN as NULL.
_GAUGES_SCHEMA = """
CREATE TABLE IF NOT EXISTS gauges (
    name TEXT NOT NULL,
    labels TEXT NOT NULL DEFAULT '{}',
    value REAL,
    timestamp_ms INTEGER NOT NULL,
    PRIMARY KEY (name, labels)
);
"""

_UPSERT_GAUGE = """
INSERT INTO gauges (name, labels, value, timestamp_ms) VALUES (?, ?, ?, ?)
ON CONFLICT (name, labels) DO UPDATE SET
    value = excluded.value,
    timestamp_ms = excluded.timestamp_ms
"""

_SELECT_GAUGES = """
SELECT name, labels, value, timestamp_ms FROM gauges
"""

_CLEAR_GAUGES = """
DELETE FROM gauges
"""


def _encode_labels(labels: dict[str, str]) -> str:
    return json.dumps(labels, sort_keys=True, separators=(",", ":"))


class SQLiteMetricStore:
    """SQLite implementation of MetricStorePort.

    Holds one row per identity and upserts with a single
    ``INSERT ... ON CONFLICT`` statement, so a row's value and timestamp
    always change together. The table is emptied when the store opens:
    gauges live as long as the process, and a file database only lets
    other tools read them while it runs.

    The store keeps a single connection from first use until close(),
    which also keeps a :memory: database alive between calls.
    """

    def __init__(self, db_path: str = ":memory:") -> None:
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None
        # Created on first use so the store can be built outside a loop
        self._open_lock: asyncio.Lock | None = None

    async def open(self) -> aiosqlite.Connection:
        """Connect, create the schema and clear old gauges, once."""
        if self._db is not None:
            return self._db
        if self._open_lock is None:
            self._open_lock = asyncio.Lock()
        async with self._open_lock:
            if self._db is None:
                db = await aiosqlite.connect(self._db_path)
                if self._db_path != ":memory:":
                    await db.execute("PRAGMA journal_mode=WAL")
                await db.executescript(_GAUGES_SCHEMA)
                await db.execute(_CLEAR_GAUGES)
                await db.commit()
                self._db = db
        return self._db

    async def upsert(self, observation: Observation) -> None:
        """Insert or replace the row for the observation's identity."""
        db = await self.open()
        await db.execute(
            _UPSERT_GAUGE,
            (
                observation.name,
                _encode_labels(observation.labels),
                observation.value,
                observation.timestamp_ms,
            ),
        )
        await db.commit()

    async def snapshot(self) -> list[StoreEntry]:
        """Return all rows ordered by name then labels."""
        db = await self.open()
        async with db.execute(_SELECT_GAUGES) as cursor:
            rows = await cursor.fetchall()
        entries = [
            StoreEntry(
                identity=MetricIdentity.of(row[0], json.loads(row[1])),
                value=math.nan if row[2] is None else row[2],
                timestamp_ms=row[3],
            )
            for row in rows
        ]
        return sorted(entries, key=lambda e: e.identity.sort_key())

    async def close(self) -> None:
        if self._db is not None:
            await self._db.close()
            self._db = None

    async def __aenter__(self) -> "SQLiteMetricStore":
        await self.open()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
