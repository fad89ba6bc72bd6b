import asyncio
import contextlib
import logging
from collections.abc import Callable

import aiohttp
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)

from .collector import ResultCollector
from .dispatcher import Dispatcher
from .metrics import LatencyAggregator
from .models import AggregateStats, Attempt, Config, RecordSink, RunStats
from .rendering import render_aggregate, render_latency_histogram, render_run_summary
from .throttling import Pacer
from .utils import now
from .worker import HttpAttempt

logger = logging.getLogger(__name__)


class LoadRunner:
    """Runs ``repeat_count`` load runs back to back and merges their stats."""

    def __init__(
        self,
        config: Config,
        sink: RecordSink | None = None,
        report_path: str | None = None,
        attempt_factory: Callable[[aiohttp.ClientSession, int], Attempt] | None = None,
        use_progress_bar: bool = True,
        histogram_bins: int = 20,
        echo: bool = True,
    ) -> None:
        self.config = config
        self.sink = sink
        self.report_path = report_path
        # (session, request_id) -> Attempt; tests swap in fakes
        self.attempt_factory = attempt_factory or self._http_attempt
        self.use_progress_bar = use_progress_bar
        self.histogram_bins = histogram_bins
        self.echo = echo

        self.pauses: list[float] = []
        logger.info(
            f"Initialized LoadRunner for {config.url}: requests={config.requests}, "
            f"concurrency={config.concurrency}, "
            f"{'burst' if config.burst else f'interval={config.interval}s'}, "
            f"max_retries={config.max_retries}, runs={config.repeat_count}"
        )

    def _http_attempt(self, session: aiohttp.ClientSession, request_id: int) -> Attempt:
        return HttpAttempt(session, self.config.url, trace=self.config.log_requests)

    def _session(self) -> aiohttp.ClientSession:
        connector = aiohttp.TCPConnector(limit=0, ssl=self.config.verify_tls)
        timeout = aiohttp.ClientTimeout(total=self.config.request_timeout_s)
        return aiohttp.ClientSession(connector=connector, timeout=timeout)

    def _progress(self) -> Progress | None:
        if not self.use_progress_bar:
            return None
        return Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            transient=True,
        )

    def _print(self, text: str) -> None:
        if self.echo:
            print(text)

    async def _pause(self, seconds: float) -> None:
        self.pauses.append(seconds)
        self._print(f"Waiting {seconds:g} seconds before next run...")
        await asyncio.sleep(seconds)

    async def run_once(self, run_id: int) -> RunStats:
        cfg = self.config
        logger.info(f"Starting test run #{run_id}")
        started_at = now()
        results: asyncio.Queue = asyncio.Queue()
        progress = self._progress()

        async with self._session() as session:
            dispatcher = Dispatcher(
                requests=cfg.requests,
                concurrency=cfg.concurrency,
                max_retries=cfg.max_retries,
                attempt_factory=lambda request_id: self.attempt_factory(session, request_id),
                results=results,
                pacer=Pacer.for_run(cfg.interval, cfg.requests, cfg.burst),
            )
            collector = ResultCollector(
                run_id, cfg.requests, results, sink=self.sink, progress=progress
            )
            if progress is not None:
                progress.start()
            dispatch = asyncio.create_task(dispatcher.run())
            try:
                stats = await collector.collect(started_at)
                await dispatch
            finally:
                if not dispatch.done():
                    # collector failed; no task may outlive the session
                    dispatch.cancel()
                    with contextlib.suppress(asyncio.CancelledError):
                        await dispatch
                if progress is not None:
                    progress.stop()

        logger.debug(
            f"Run {run_id}: peak concurrency {dispatcher.gate.high_water}/{cfg.concurrency}"
        )
        self._print(render_run_summary(stats))
        return stats

    async def run(self) -> AggregateStats:
        cfg = self.config
        aggregate = LatencyAggregator()
        self.pauses = []
        total = AggregateStats(
            total_requests=cfg.requests * cfg.repeat_count,
            report_path=self.report_path,
        )

        for run_id in range(1, cfg.repeat_count + 1):
            stats = await self.run_once(run_id)
            aggregate.extend(stats.latencies, stats.success, stats.failed)
            total.runs.append(stats)
            total.elapsed_s += stats.elapsed_s
            if run_id < cfg.repeat_count:
                await self._pause(cfg.repeat_delay)

        total.success = aggregate.success
        total.failed = aggregate.failed
        total.p50, total.p90, total.p99 = aggregate.percentiles()
        total.latencies = list(aggregate.snapshot())

        self._print(render_aggregate(total))
        if self.histogram_bins:
            self._print(render_latency_histogram(total.latencies, self.histogram_bins))

        logger.info(
            f"All runs completed: {total.success} succeeded, {total.failed} failed "
            f"of {total.total_requests}"
        )
        return total
