"""Storage adapters implementing MetricStorePort."""

from httpgauge.adapters.storage.in_memory import InMemoryMetricStore
from httpgauge.adapters.storage.sqlite import SQLiteMetricStore

__all__ = ["InMemoryMetricStore", "SQLiteMetricStore"]
