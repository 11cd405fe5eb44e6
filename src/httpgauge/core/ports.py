"""Port interfaces for adapters.

These protocols define the contracts that adapters must implement.
The core domain depends only on these interfaces, not concrete implementations.
"""

from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

from httpgauge.core.models import Observation, StoreEntry

CompiledQuery = Callable[[str], Any]


@runtime_checkable
class MetricStorePort(Protocol):
    """Port for the latest-value gauge store.

    Adapters keep at most one entry per MetricIdentity.
    Examples: InMemoryMetricStore, SQLiteMetricStore.
    """

    async def upsert(self, observation: Observation) -> None:
        """Insert or atomically replace the entry for the observation's identity."""
        ...

    async def snapshot(self) -> list[StoreEntry]:
        """Return every entry, ordered by name then sorted labels.

        Each entry is consistent on its own; the list as a whole need not be
        linearizable against concurrent upserts.
        """
        ...


@runtime_checkable
class QueryEvaluator(Protocol):
    """Port for a structured-query language (jq)."""

    def compile(self, query: str) -> CompiledQuery:
        """Compile a query.

        Returns:
            Callable taking the raw response text and returning the first
            result as a decoded JSON value (None when there is no output).

        Raises:
            ValueError: The query does not compile.
        """
        ...


@runtime_checkable
class FetcherPort(Protocol):
    """Port for fetching a target's response body."""

    async def fetch(self, url: str, headers: Mapping[str, str], timeout: float) -> str:
        """Return the response text.

        Raises:
            FetchError: Network error, timeout, or non-success status.
        """
        ...


@runtime_checkable
class Trigger(Protocol):
    """A recurring schedule."""

    def next_after(self, moment: datetime) -> datetime:
        """Return the first fire time strictly after moment."""
        ...
