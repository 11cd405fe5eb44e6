"""Shared test fixtures for all test modules."""

from pathlib import Path

import httpx
import pytest

from httpgauge.adapters.query import JqEvaluator
from httpgauge.adapters.storage.in_memory import InMemoryMetricStore


@pytest.fixture
def metrics_db_path(tmp_path: Path) -> str:
    """Provide a temporary database path for SQLite store tests."""
    return str(tmp_path / "gauges.db")


@pytest.fixture
def store() -> InMemoryMetricStore:
    """Fixture providing an empty in-memory store."""
    return InMemoryMetricStore()


@pytest.fixture
def jq_evaluator() -> JqEvaluator:
    return JqEvaluator()


# === ASGI Test Fixtures ===


@pytest.fixture
def asgi_send_capture():
    """Fixture that returns a send callable and a responses list for capture.

    Returns a tuple of (send_func, responses_list) for recording ASGI messages.
    """

    responses: list[dict[str, object]] = []

    async def send(message: dict[str, object]) -> None:
        """Capture ASGI messages."""
        responses.append(message)

    return send, responses


@pytest.fixture
def asgi_test_client():
    """Factory fixture that creates an httpx.AsyncClient for ASGI testing.

    Usage:
        async def test_something(asgi_test_client):
            app = create_asgi_app(store)
            async with asgi_test_client(app) as client:
                response = await client.get("/metrics")
    """

    def _get_client(app):
        """Return an AsyncClient context manager for the given app."""
        return httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test"
        )

    return _get_client
