"""Per-target runners and the scheduler that drives them.

Every target gets its own timer task. When the timer fires, the target's
cycle runs in a separate task, so a slow fetch never holds back the timer of
this or any other target. A target never has two cycles in flight: a firing
that arrives while the previous cycle is still running is skipped.
"""

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone

from httpgauge.core.errors import ExtractionError, FetchError
from httpgauge.core.extraction import Extractor, build_extractor
from httpgauge.core.metrics import now_ms
from httpgauge.core.models import Observation, Target
from httpgauge.core.ports import FetcherPort, MetricStorePort, QueryEvaluator, Trigger
from httpgauge.core.schedule import parse_schedule

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class CycleResult:
    """Outcome of one fetch/extract/store cycle."""

    target: str
    observations: list[Observation] = field(default_factory=list)
    failed_rules: list[str] = field(default_factory=list)
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class TargetRunner:
    """Runs the cycle for one target and enforces the overlap policy.

    Rules are compiled on construction, so an invalid pattern or query
    raises ConfigError before anything is scheduled.
    """

    def __init__(
        self,
        target: Target,
        fetcher: FetcherPort,
        store: MetricStorePort,
        evaluator: QueryEvaluator | None = None,
        trigger: Trigger | None = None,
    ) -> None:
        self.target = target
        self._fetcher = fetcher
        self._store = store
        self.trigger = trigger if trigger is not None else parse_schedule(target.schedule)
        self._extractors: list[Extractor] = [
            build_extractor(target.extractor, rule, evaluator) for rule in target.rules
        ]
        self._inflight: asyncio.Task[CycleResult] | None = None

    @property
    def busy(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    def fire(self) -> bool:
        """Start a cycle unless one is already running.

        Returns:
            True if a cycle was started, False if the firing was skipped.
        """
        if self.busy:
            logger.warning(
                "Previous cycle still running, skipping this run",
                extra={"target": self.target.name},
            )
            return False
        self._inflight = asyncio.create_task(
            self.run_cycle(), name=f"httpgauge-cycle-{self.target.name}"
        )
        self._inflight.add_done_callback(self._report_crash)
        return True

    def _report_crash(self, task: "asyncio.Task[CycleResult]") -> None:
        if task.cancelled() or task.exception() is None:
            return
        logger.error(
            "Cycle crashed",
            exc_info=task.exception(),
            extra={"target": self.target.name},
        )

    async def wait(self) -> CycleResult | None:
        """Wait for the in-flight cycle, if any, and return its result."""
        if self._inflight is None:
            return None
        return await self._inflight

    def cancel(self) -> "asyncio.Task[CycleResult] | None":
        """Cancel the in-flight cycle and return its task, if any."""
        if not self.busy:
            return None
        assert self._inflight is not None
        self._inflight.cancel()
        return self._inflight

    async def run_cycle(self) -> CycleResult:
        """Fetch the target, run every rule in order and store the results.

        A fetch failure aborts the whole cycle and leaves the store untouched.
        A rule failure skips only that rule. Errors are logged, never raised.
        """
        result = CycleResult(target=self.target.name)
        try:
            body = await self._fetcher.fetch(
                self.target.url, self.target.headers, self.target.timeout
            )
        except FetchError as e:
            logger.error(
                "Fetch failed: %s", e, extra={"target": self.target.name}
            )
            result.error = e
            return result

        for extractor in self._extractors:
            rule = extractor.rule
            try:
                observations = extractor.extract(body, now_ms())
            except ExtractionError as e:
                logger.warning(
                    "Rule failed: %s",
                    e,
                    extra={"target": self.target.name, "rule": rule.name},
                )
                result.failed_rules.append(rule.name)
                continue
            for observation in observations:
                await self._store.upsert(observation)
            result.observations.extend(observations)

        logger.info(
            "Scraped %d metrics",
            len(result.observations),
            extra={"target": self.target.name},
        )
        return result


class Scheduler:
    """Drives one independent timer per target until stopped."""

    def __init__(
        self,
        runners: Sequence[TargetRunner],
        clock: Clock = utc_now,
    ) -> None:
        self.runners = list(runners)
        self._clock = clock
        self._timers: list[asyncio.Task[None]] = []

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._timers)

    def start(self, run_on_startup: bool = False) -> None:
        """Start a timer task per target.

        Args:
            run_on_startup: Run every target once immediately, before its
                first scheduled firing.
        """
        if self.running:
            raise RuntimeError("scheduler already started")
        logger.info("Scheduling %d targets", len(self.runners))
        self._timers = [
            asyncio.create_task(
                self._drive(runner, run_on_startup),
                name=f"httpgauge-timer-{runner.target.name}",
            )
            for runner in self.runners
        ]

    async def _drive(self, runner: TargetRunner, run_on_startup: bool) -> None:
        if run_on_startup:
            runner.fire()
        last_fire: datetime | None = None
        while True:
            now = self._clock()
            # sleep() may wake marginally early; never fire the same slot twice
            moment = now if last_fire is None else max(now, last_fire)
            next_fire = runner.trigger.next_after(moment)
            logger.debug(
                "Next run at %s",
                next_fire.isoformat(),
                extra={"target": runner.target.name},
            )
            await asyncio.sleep(max((next_fire - now).total_seconds(), 0.0))
            last_fire = next_fire
            runner.fire()

    async def stop(self) -> None:
        """Cancel all timers and abandon in-flight cycles.

        Store upserts are atomic, so abandoning a cycle midway leaves every
        entry either at its old or at its new value.
        """
        for task in self._timers:
            task.cancel()
        cycles = []
        for runner in self.runners:
            cycle = runner.cancel()
            if cycle is not None:
                cycles.append(cycle)
        await asyncio.gather(*self._timers, *cycles, return_exceptions=True)
        self._timers = []
        logger.info("Scheduler stopped")
