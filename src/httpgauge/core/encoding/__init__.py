"""Encoders for stored gauges."""

from httpgauge.core.encoding.prometheus import CONTENT_TYPE, render

__all__ = ["CONTENT_TYPE", "render"]
