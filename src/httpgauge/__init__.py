"""httpgauge - poll HTTP endpoints on schedules and export Prometheus gauges."""

__version__ = "0.1.0"

from httpgauge.core.errors import (
    ConfigError,
    ExtractionError,
    FetchError,
    HttpGaugeError,
)
from httpgauge.core.extraction import extract
from httpgauge.core.encoding.prometheus import render
from httpgauge.core.models import (
    ExtractorKind,
    MetricIdentity,
    Observation,
    Rule,
    StoreEntry,
    Target,
)
from httpgauge.adapters.storage.in_memory import InMemoryMetricStore

__all__ = [
    "ConfigError",
    "ExtractionError",
    "ExtractorKind",
    "FetchError",
    "HttpGaugeError",
    "InMemoryMetricStore",
    "MetricIdentity",
    "Observation",
    "Rule",
    "StoreEntry",
    "Target",
    "__version__",
    "extract",
    "render",
]
