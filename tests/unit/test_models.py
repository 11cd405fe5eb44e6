"""Tests for core domain models."""

import pytest

from httpgauge.core.models import ExtractorKind, MetricIdentity, Observation, Target


class TestMetricIdentity:
    """Tests for MetricIdentity."""

    @pytest.mark.core
    def test_label_order_is_irrelevant(self) -> None:
        a = MetricIdentity.of("m", {"x": "1", "y": "2"})
        b = MetricIdentity.of("m", {"y": "2", "x": "1"})
        assert a == b
        assert hash(a) == hash(b)

    @pytest.mark.core
    def test_label_values_distinguish(self) -> None:
        assert MetricIdentity.of("m", {"x": "1"}) != MetricIdentity.of("m", {"x": "2"})

    @pytest.mark.core
    def test_no_labels_equals_empty_labels(self) -> None:
        assert MetricIdentity.of("m") == MetricIdentity.of("m", {})

    @pytest.mark.core
    def test_label_dict_is_sorted(self) -> None:
        identity = MetricIdentity.of("m", {"b": "2", "a": "1"})
        assert list(identity.label_dict) == ["a", "b"]


class TestObservation:
    """Tests for Observation."""

    @pytest.mark.core
    def test_identity(self) -> None:
        observation = Observation(
            name="yaks", labels={"key": "total"}, value=5.0, timestamp_ms=1
        )
        assert observation.identity == MetricIdentity.of("yaks", {"key": "total"})


class TestTarget:
    """Tests for Target defaults."""

    @pytest.mark.core
    def test_defaults(self) -> None:
        target = Target(name="t", url="http://x", schedule="every minute")
        assert target.extractor is ExtractorKind.JQ
        assert target.headers == {}
        assert target.rules == ()
        assert target.timeout == 10.0

    @pytest.mark.core
    def test_extractor_kind_from_config_value(self) -> None:
        assert ExtractorKind("regex") is ExtractorKind.REGEX
        with pytest.raises(ValueError):
            ExtractorKind("xpath")
