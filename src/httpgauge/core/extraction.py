"""Extraction engine: turns a response body into observations.

Two extractor kinds exist. The jq kind evaluates a query against a JSON
document and fans the result out by shape:

- number: one observation, no labels
- object: one observation per numeric entry, labelled ``key=<entry key>``
- array: one observation per object element with a numeric ``value`` field,
  labelled by the element's other scalar fields
- anything else: no observations

The regex kind applies a pattern to the raw text and uses the first match
only. Named groups switch to labelled mode, where the ``value`` group is the
number and every other named group is a label.

Extraction never performs I/O and never touches the store.
"""

import json
import logging
import re
from typing import Any, Protocol

from httpgauge.core.errors import (
    ConfigError,
    NumberParseError,
    PatternMismatchError,
    QueryError,
)
from httpgauge.core.metrics import gauge, now_ms
from httpgauge.core.models import (
    ArrayResult,
    ExtractorKind,
    NumberResult,
    Observation,
    ObjectResult,
    OtherResult,
    QueryResult,
    Rule,
)
from httpgauge.core.ports import QueryEvaluator

logger = logging.getLogger(__name__)

# Plain decimal or scientific notation, or inf/infinity/nan. No whitespace,
# underscores or digit grouping.
_NUMBER = re.compile(
    r"[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan)",
    re.IGNORECASE,
)


def parse_number(text: str) -> float:
    """Parse text as a float, rejecting anything but a bare number.

    Raises:
        NumberParseError: The text is not a number.
    """
    if _NUMBER.fullmatch(text) is None:
        raise NumberParseError(f"not a number: {text!r}")
    return float(text)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def classify(value: Any) -> QueryResult:
    """Map a decoded JSON value onto its QueryResult shape."""
    if _is_number(value):
        return NumberResult(float(value))
    if isinstance(value, dict):
        return ObjectResult(value)
    if isinstance(value, list):
        return ArrayResult(value)
    return OtherResult(value)


def _label_text(value: Any) -> str | None:
    """Render a scalar JSON field as a label value, or None if not scalar."""
    if isinstance(value, str):
        return value
    if isinstance(value, (bool, int, float)):
        return json.dumps(value)
    return None


def observations_from_result(
    name: str, result: QueryResult, timestamp_ms: int
) -> list[Observation]:
    """Fan a query result out into observations named after the rule."""
    match result:
        case NumberResult(value=value):
            return [gauge(name, value, timestamp_ms=timestamp_ms)]
        case ObjectResult(entries=entries):
            return [
                gauge(name, value, {"key": str(key)}, timestamp_ms)
                for key, value in entries.items()
                if _is_number(value)
            ]
        case ArrayResult(items=items):
            observations = []
            for item in items:
                if not isinstance(item, dict) or not _is_number(item.get("value")):
                    continue
                labels: dict[str, str] = {}
                for key, field_value in item.items():
                    if key == "value":
                        continue
                    text = _label_text(field_value)
                    if text is not None:
                        labels[str(key)] = text
                observations.append(gauge(name, item["value"], labels, timestamp_ms))
            return observations
        case OtherResult():
            return []


class Extractor(Protocol):
    """A compiled rule, ready to run against response bodies."""

    rule: Rule

    def extract(self, body: str, timestamp_ms: int | None = None) -> list[Observation]:
        ...


class QueryExtractor:
    """Runs a compiled jq query against a JSON body."""

    def __init__(self, rule: Rule, evaluator: QueryEvaluator) -> None:
        self.rule = rule
        try:
            self._query = evaluator.compile(rule.extract)
        except ValueError as e:
            raise ConfigError(
                f"rule {rule.name!r}: invalid jq query {rule.extract!r}: {e}"
            ) from e

    def extract(self, body: str, timestamp_ms: int | None = None) -> list[Observation]:
        """Evaluate the query and fan the result out.

        Raises:
            QueryError: The body is not valid JSON or evaluation failed.
        """
        try:
            value = self._query(body)
        except ValueError as e:
            raise QueryError(f"jq {self.rule.extract!r} failed: {e}") from e
        result = classify(value)
        logger.debug(
            "Query result classified",
            extra={"rule": self.rule.name, "shape": type(result).__name__},
        )
        ts = now_ms() if timestamp_ms is None else timestamp_ms
        return observations_from_result(self.rule.name, result, ts)


class RegexExtractor:
    """Applies a regular expression to a text body, first match only."""

    def __init__(self, rule: Rule) -> None:
        self.rule = rule
        try:
            self._pattern = re.compile(rule.extract)
        except re.error as e:
            raise ConfigError(
                f"rule {rule.name!r}: invalid pattern {rule.extract!r}: {e}"
            ) from e

    def extract(self, body: str, timestamp_ms: int | None = None) -> list[Observation]:
        """Extract one observation from the first match.

        Raises:
            PatternMismatchError: The pattern does not match.
            NumberParseError: The matched text is not a number.
        """
        match = self._pattern.search(body)
        if match is None:
            raise PatternMismatchError(f"pattern {self.rule.extract!r} did not match")
        ts = now_ms() if timestamp_ms is None else timestamp_ms
        if self._pattern.groupindex:
            return [self._labelled(match, ts)]

        captured = [group for group in match.groups() if group is not None]
        text = "".join(captured) if captured else match.group(0)
        return [gauge(self.rule.name, parse_number(text), timestamp_ms=ts)]

    def _labelled(self, match: re.Match[str], timestamp_ms: int) -> Observation:
        groups = match.groupdict()
        raw = groups.get("value")
        if raw is None:
            raise NumberParseError(
                f"pattern {self.rule.extract!r} has no participating 'value' group"
            )
        labels = {
            name: text
            for name, text in groups.items()
            if name != "value" and text is not None
        }
        return gauge(self.rule.name, parse_number(raw), labels, timestamp_ms)


def build_extractor(
    kind: ExtractorKind, rule: Rule, evaluator: QueryEvaluator | None = None
) -> Extractor:
    """Compile a rule for the given extractor kind.

    Raises:
        ConfigError: The query or pattern is invalid, or a jq rule has no
            evaluator.
    """
    if kind is ExtractorKind.REGEX:
        return RegexExtractor(rule)
    if kind is ExtractorKind.JQ:
        if evaluator is None:
            raise ConfigError(f"rule {rule.name!r}: jq extractor needs an evaluator")
        return QueryExtractor(rule, evaluator)
    raise ConfigError(f"unknown extractor kind: {kind!r}")


def extract(
    body: str,
    kind: ExtractorKind,
    rule: Rule,
    evaluator: QueryEvaluator | None = None,
    timestamp_ms: int | None = None,
) -> list[Observation]:
    """Compile and run a single rule against a body.

    Args:
        body: Raw response text.
        kind: Extractor kind of the owning target.
        rule: The rule to run.
        evaluator: jq evaluator, required for ExtractorKind.JQ.
        timestamp_ms: Extraction time; defaults to now.

    Returns:
        Zero or more observations, in fan-out order.

    Raises:
        ExtractionError: The rule failed for this body.
        ConfigError: The rule does not compile.
    """
    return build_extractor(kind, rule, evaluator).extract(body, timestamp_ms)
