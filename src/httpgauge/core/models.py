"""Core domain models for targets, observations and stored gauges."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ExtractorKind(str, Enum):
    """Engine used to turn a response body into observations."""

    JQ = "jq"
    REGEX = "regex"


@dataclass(frozen=True)
class Rule:
    """A named extraction directive.

    Attributes:
        name: Metric name for every observation the rule produces.
        extract: A jq query or a regular expression, depending on the
            target's extractor kind.
    """

    name: str
    extract: str


@dataclass(frozen=True)
class Target:
    """A remote HTTP resource polled on its own schedule.

    Attributes:
        name: Display name used in logs.
        url: The URL that is fetched on every cycle.
        schedule: Cron expression or English recurrence phrase.
        extractor: Which engine processes the response.
        headers: Additional request headers.
        rules: Extraction rules, executed in order.
        timeout: Fetch budget in seconds.
    """

    name: str
    url: str
    schedule: str
    extractor: ExtractorKind = ExtractorKind.JQ
    headers: dict[str, str] = field(default_factory=dict)
    rules: tuple[Rule, ...] = ()
    timeout: float = 10.0


@dataclass(frozen=True)
class Observation:
    """A single value produced by one rule execution.

    Attributes:
        name: Metric name.
        labels: Key-value pairs for metric dimensions.
        value: The extracted value.
        timestamp_ms: Unix timestamp in milliseconds, captured at extraction.
    """

    name: str
    labels: dict[str, str]
    value: float
    timestamp_ms: int

    @property
    def identity(self) -> "MetricIdentity":
        return MetricIdentity.of(self.name, self.labels)


@dataclass(frozen=True)
class MetricIdentity:
    """The (name, label set) pair keying a stored gauge.

    Labels are held as a frozenset so two label mappings with the same
    items compare equal regardless of insertion order.
    """

    name: str
    labels: frozenset[tuple[str, str]] = frozenset()

    @classmethod
    def of(cls, name: str, labels: dict[str, str] | None = None) -> "MetricIdentity":
        return cls(name=name, labels=frozenset((labels or {}).items()))

    @property
    def label_dict(self) -> dict[str, str]:
        return dict(sorted(self.labels))

    def sort_key(self) -> tuple[str, tuple[tuple[str, str], ...]]:
        return (self.name, tuple(sorted(self.labels)))


@dataclass(frozen=True)
class StoreEntry:
    """Latest value and timestamp for one identity."""

    identity: MetricIdentity
    value: float
    timestamp_ms: int


# Shapes a structured-query result can take. classify() in
# httpgauge.core.extraction is the only producer.


@dataclass(frozen=True)
class NumberResult:
    value: float


@dataclass(frozen=True)
class ObjectResult:
    entries: dict[str, Any]


@dataclass(frozen=True)
class ArrayResult:
    items: list[Any]


@dataclass(frozen=True)
class OtherResult:
    raw: Any = None


QueryResult = NumberResult | ObjectResult | ArrayResult | OtherResult
