"""Helper functions for creating Observation objects."""

import time

from httpgauge.core.models import Observation


def now_ms() -> int:
    """Return the current Unix time in whole milliseconds."""
    return int(time.time() * 1000)


def gauge(
    name: str,
    value: float,
    labels: dict[str, str] | None = None,
    timestamp_ms: int | None = None,
) -> Observation:
    """Create a gauge observation.

    Args:
        name: Metric name (e.g., "stargazers")
        value: Current gauge value
        labels: Optional dimension labels
        timestamp_ms: Extraction time; defaults to now

    Returns:
        Observation with the given or current timestamp
    """
    return Observation(
        name=name,
        labels=labels or {},
        value=float(value),
        timestamp_ms=now_ms() if timestamp_ms is None else timestamp_ms,
    )
