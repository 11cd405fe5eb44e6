"""Wiring: build the store, runners and scheduler from a Config and serve."""

import logging

import uvicorn

from httpgauge.adapters.frameworks.asgi import create_asgi_app
from httpgauge.adapters.http import HttpxFetcher
from httpgauge.adapters.query import JqEvaluator
from httpgauge.adapters.storage import InMemoryMetricStore, SQLiteMetricStore
from httpgauge.config import Config
from httpgauge.core.models import ExtractorKind
from httpgauge.core.ports import FetcherPort, MetricStorePort, QueryEvaluator
from httpgauge.core.runner import Scheduler, TargetRunner

logger = logging.getLogger(__name__)


def build_store(config: Config) -> MetricStorePort:
    if config.store.backend == "sqlite":
        return SQLiteMetricStore(config.store.path)
    return InMemoryMetricStore()


def build_runners(
    config: Config,
    fetcher: FetcherPort,
    store: MetricStorePort,
    evaluator: QueryEvaluator | None = None,
) -> list[TargetRunner]:
    """Compile every target's rules.

    Raises:
        ConfigError: A rule's query or pattern does not compile.
    """
    runners = []
    for target in config.to_targets():
        logger.info("Setting up extractors", extra={"target": target.name})
        if target.extractor is ExtractorKind.JQ and evaluator is None:
            evaluator = JqEvaluator()
        runners.append(TargetRunner(target, fetcher, store, evaluator))
    return runners


async def serve(config: Config) -> None:
    """Run the scheduler and the publication endpoint until interrupted.

    Raises:
        ConfigError: A rule does not compile. Nothing has been scheduled yet.
    """
    store = build_store(config)
    fetcher = HttpxFetcher()
    try:
        scheduler = Scheduler(build_runners(config, fetcher, store))
        if isinstance(store, SQLiteMetricStore):
            await store.open()
        server = uvicorn.Server(
            uvicorn.Config(
                create_asgi_app(store),
                host=config.host,
                port=config.port,
                log_level=config.log_level,
                access_log=False,
            )
        )
        scheduler.start(run_on_startup=config.scrape_on_startup)
        try:
            logger.info("Serving metrics on http://%s/metrics", config.address)
            await server.serve()
        finally:
            await scheduler.stop()
    finally:
        await fetcher.close()
        if isinstance(store, SQLiteMetricStore):
            await store.close()
