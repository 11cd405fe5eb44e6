"""In-memory metric store."""

import threading

from httpgauge.core.models import MetricIdentity, Observation, StoreEntry


class InMemoryMetricStore:
    """In-memory implementation of MetricStorePort.

    Keeps one StoreEntry per identity in a dict. Entries are immutable and
    replaced whole under a lock, so readers never see a value paired with
    another observation's timestamp.
    """

    def __init__(self) -> None:
        self._entries: dict[MetricIdentity, StoreEntry] = {}
        self._lock = threading.Lock()

    async def upsert(self, observation: Observation) -> None:
        """Insert or replace the entry for the observation's identity."""
        identity = observation.identity
        entry = StoreEntry(
            identity=identity,
            value=observation.value,
            timestamp_ms=observation.timestamp_ms,
        )
        with self._lock:
            self._entries[identity] = entry

    async def snapshot(self) -> list[StoreEntry]:
        """Return all entries ordered by name then labels."""
        with self._lock:
            entries = list(self._entries.values())
        return sorted(entries, key=lambda e: e.identity.sort_key())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
