"""Step definitions for scheduling.feature.

pytest-bdd steps are synchronous, so every scenario owns an event loop and
each step drives it with run_until_complete(). Tasks started by one step
keep living in that loop across later steps.
"""

import asyncio
from collections.abc import Iterator
from dataclasses import dataclass, field

import pytest
from pytest_bdd import given, parsers, then, when

from httpgauge.adapters.query import JqEvaluator
from httpgauge.adapters.storage.in_memory import InMemoryMetricStore
from httpgauge.core.encoding.prometheus import render
from httpgauge.core.errors import FetchError
from httpgauge.core.metrics import gauge
from httpgauge.core.models import MetricIdentity, Rule, Target
from httpgauge.core.runner import TargetRunner
from tests.fakes import FakeFetcher


@dataclass
class SchedulingContext:
    """Shared state between steps in a scheduling scenario."""

    loop: asyncio.AbstractEventLoop
    store: InMemoryMetricStore = field(default_factory=InMemoryMetricStore)
    fetcher: FakeFetcher = field(default_factory=FakeFetcher)
    runners: dict[str, TargetRunner] = field(default_factory=dict)
    gates: dict[str, asyncio.Event] = field(default_factory=dict)

    def run(self, coro):
        return self.loop.run_until_complete(coro)

    def add_target(self, name: str) -> None:
        # One rule per target, named after it; {"up": n} bodies yield n
        target = Target(
            name=name,
            url=_url(name),
            schedule="every minute",
            rules=(Rule(name, "if type == \"object\" and has(\"up\") then .up else . end"),),
        )
        self.runners[name] = TargetRunner(
            target, self.fetcher, self.store, JqEvaluator()
        )


def _url(name: str) -> str:
    return f"http://{name}.test/"


@pytest.fixture
def ctx() -> Iterator[SchedulingContext]:
    """Fresh scenario context with its own event loop."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    context = SchedulingContext(loop=loop)
    yield context
    pending = asyncio.all_tasks(loop)
    for task in pending:
        task.cancel()
    loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
    loop.close()
    asyncio.set_event_loop(None)


# === Given ===


@given("an empty metric store")
def step_empty_store(ctx: SchedulingContext) -> None:
    assert len(ctx.store) == 0


@given(parsers.parse('a target "{name}" whose fetch blocks'))
def step_blocking_target(ctx: SchedulingContext, name: str) -> None:
    ctx.fetcher.responses[_url(name)] = "1"
    ctx.gates[name] = ctx.fetcher.block(_url(name))
    ctx.add_target(name)


@given(parsers.parse('a target "{name}" whose fetch fails'))
def step_failing_target(ctx: SchedulingContext, name: str) -> None:
    ctx.fetcher.responses[_url(name)] = FetchError("connection refused")
    ctx.add_target(name)


@given(parsers.parse("a target \"{name}\" returning '{body}'"))
def step_target_returning(ctx: SchedulingContext, name: str, body: str) -> None:
    ctx.fetcher.responses[_url(name)] = body
    ctx.add_target(name)


@given(parsers.parse('the store holds "{name}" = {value:d}'))
def step_store_holds(ctx: SchedulingContext, name: str, value: int) -> None:
    ctx.run(ctx.store.upsert(gauge(name, value, timestamp_ms=1)))


# === When ===


@when(parsers.parse('"{name}" fires'))
def step_fire(ctx: SchedulingContext, name: str) -> None:
    async def fire() -> None:
        ctx.runners[name].fire()
        await asyncio.sleep(0)

    ctx.run(fire())


@when(parsers.parse('the fetch of "{name}" completes'))
def step_release(ctx: SchedulingContext, name: str) -> None:
    ctx.gates[name].set()
    ctx.run(ctx.runners[name].wait())


@when(parsers.parse('"{name}" finishes its cycle'))
def step_finish(ctx: SchedulingContext, name: str) -> None:
    ctx.run(ctx.runners[name].wait())


@when(parsers.parse('"{first}" and "{second}" run a cycle at the same time'))
def step_run_together(ctx: SchedulingContext, first: str, second: str) -> None:
    ctx.run(
        asyncio.gather(
            ctx.runners[first].run_cycle(), ctx.runners[second].run_cycle()
        )
    )


# === Then ===


@then(parsers.parse('exactly {count:d} cycle has run for "{name}"'))
@then(parsers.parse('exactly {count:d} cycles have run for "{name}"'))
def step_cycle_count(ctx: SchedulingContext, count: int, name: str) -> None:
    assert ctx.fetcher.calls_to(_url(name)) == count


@then(parsers.parse('the store holds "{name}" = {value:d}'))
def step_then_store_holds(ctx: SchedulingContext, name: str, value: int) -> None:
    values = {e.identity: e.value for e in ctx.run(ctx.store.snapshot())}
    assert values[MetricIdentity.of(name)] == value


@then("the published metrics contain:")
def step_published(ctx: SchedulingContext, docstring: str) -> None:
    body = render(ctx.run(ctx.store.snapshot()))
    # Drop timestamps, they are wall-clock dependent
    lines = [
        line if line.startswith("#") else line.rsplit(" ", 1)[0]
        for line in body.splitlines()
    ]
    assert lines == docstring.splitlines()
