"""Example FastAPI application publishing httpgauge metrics.

Run with:
    uvicorn examples.fastapi_example:app

Endpoints:
    /metrics  - Prometheus text format (latest value per gauge)
    /         - the application's own route

The scheduler runs inside the application's lifespan and shares the store
with the metrics router.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from httpgauge.adapters.frameworks.fastapi import create_metrics_router
from httpgauge.adapters.http import HttpxFetcher
from httpgauge.adapters.query import JqEvaluator
from httpgauge.adapters.storage.in_memory import InMemoryMetricStore
from httpgauge.core.models import Rule, Target
from httpgauge.core.runner import Scheduler, TargetRunner

store = InMemoryMetricStore()

TARGETS = [
    Target(
        name="github",
        url="https://api.github.com/repos/jqlang/jq",
        schedule="every 10 minutes",
        rules=(Rule("jq_stargazers", ".stargazers_count"),),
    ),
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    async with HttpxFetcher() as fetcher:
        evaluator = JqEvaluator()
        scheduler = Scheduler(
            [TargetRunner(target, fetcher, store, evaluator) for target in TARGETS]
        )
        scheduler.start(run_on_startup=True)
        try:
            yield
        finally:
            await scheduler.stop()


app = FastAPI(title="httpgauge example", lifespan=lifespan)
app.include_router(create_metrics_router(store))


@app.get("/")
async def root() -> dict[str, str]:
    return {"metrics": "/metrics"}
