"""Prometheus text format encoder for stored gauges."""

import math
import re
from collections.abc import Iterable
from itertools import groupby

from httpgauge.core.models import StoreEntry

CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"

_INVALID_CHARS = re.compile(r"[^a-zA-Z0-9_]")


def sanitize_name(name: str) -> str:
    """Make a metric name or label key a valid identifier.

    Every character outside [a-zA-Z0-9_] becomes an underscore, and a
    leading digit (or an empty name) gets an underscore prefix.
    """
    sanitized = _INVALID_CHARS.sub("_", name)
    if not sanitized or sanitized[0].isdigit():
        sanitized = "_" + sanitized
    return sanitized


def escape_label_value(value: str) -> str:
    """Escape backslash, double quote and newline in a label value."""
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def format_value(value: float) -> str:
    """Render a sample value.

    Integral values drop the decimal point (48213, not 48213.0).
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return repr(value)


def _sanitize_label_keys(labels: Iterable[tuple[str, str]]) -> list[tuple[str, str]]:
    # Keys that sanitize alike get _1, _2... in sorted original-key order
    taken: set[str] = set()
    pairs = []
    for key, value in sorted(labels):
        base = candidate = sanitize_name(key)
        suffix = 0
        while candidate in taken:
            suffix += 1
            candidate = f"{base}_{suffix}"
        taken.add(candidate)
        pairs.append((candidate, value))
    return sorted(pairs)


def _format_labels(labels: Iterable[tuple[str, str]]) -> str:
    pairs = _sanitize_label_keys(labels)
    if not pairs:
        return ""
    rendered = ",".join(f'{key}="{escape_label_value(value)}"' for key, value in pairs)
    return "{" + rendered + "}"


def _series(entries: Iterable[StoreEntry]) -> list[tuple[str, str, StoreEntry]]:
    """Key entries by their rendered series, keeping the newest per series.

    Distinct identities may sanitize to the same name and labels; only one
    sample per series is valid exposition text.
    """
    newest: dict[tuple[str, str], StoreEntry] = {}
    for entry in entries:
        key = (sanitize_name(entry.identity.name), _format_labels(entry.identity.labels))
        current = newest.get(key)
        if current is None or (entry.timestamp_ms, entry.identity.sort_key()) > (
            current.timestamp_ms,
            current.identity.sort_key(),
        ):
            newest[key] = entry
    return sorted((name, labels, entry) for (name, labels), entry in newest.items())


def render(entries: Iterable[StoreEntry]) -> str:
    """Encode store entries to Prometheus text format.

    Each metric name gets one ``# TYPE <name> gauge`` line followed by a
    sample line per series, with the extraction timestamp in milliseconds.
    Families and samples are sorted so the output is stable. When several
    identities collapse to one series after sanitizing, the newest wins.

    Args:
        entries: Store snapshot.

    Returns:
        Prometheus text, newline terminated. Empty string if no entries.
    """
    lines: list[str] = []
    for name, family in groupby(_series(entries), key=lambda series: series[0]):
        lines.append(f"# TYPE {name} gauge")
        for _, labels, entry in family:
            lines.append(
                f"{name}{labels} {format_value(entry.value)} {entry.timestamp_ms}"
            )

    if not lines:
        return ""

    return "\n".join(lines) + "\n"
