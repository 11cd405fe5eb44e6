"""Structured-query evaluators."""

from httpgauge.adapters.query.jq import JqEvaluator

__all__ = ["JqEvaluator"]
