import asyncio
import logging

from rich.progress import Progress

from .dispatcher import END_OF_STREAM
from .metrics import LatencyAggregator
from .models import RecordSink, ReportRecord, Result, RunStats
from .utils import now

logger = logging.getLogger(__name__)


class ResultCollector:
    """Drains one run's result stream into RunStats.

    Every Result is forwarded to ``sink`` exactly once, in arrival order.
    """

    def __init__(
        self,
        run_id: int,
        requests: int,
        results: asyncio.Queue,
        sink: RecordSink | None = None,
        progress: Progress | None = None,
    ) -> None:
        self.run_id = run_id
        self.requests = requests
        self.results = results
        self.sink = sink
        self.progress = progress
        self.aggregator = LatencyAggregator()
        self.seen: set[int] = set()

    def _consume(self, result: Result) -> None:
        if result.request_id in self.seen:
            logger.warning(
                f"Run {self.run_id}: duplicate result for request {result.request_id}"
            )
        self.seen.add(result.request_id)
        self.aggregator.append(result.duration_ms, ok=result.ok)
        if self.sink is not None:
            self.sink(ReportRecord.from_result(self.run_id, result))

    async def collect(self, started_at: float | None = None) -> RunStats:
        started_at = now() if started_at is None else started_at
        task_id = None
        if self.progress is not None:
            task_id = self.progress.add_task(
                f"[cyan]Run {self.run_id}", total=self.requests
            )

        while True:
            result = await self.results.get()
            if result is END_OF_STREAM:
                break
            self._consume(result)
            if task_id is not None:
                self.progress.update(
                    task_id,
                    advance=1,
                    description=(
                        f"[cyan]Run {self.run_id} "
                        f"[green]ok={self.aggregator.success} "
                        f"[red]failed={self.aggregator.failed}"
                    ),
                )

        if len(self.seen) != self.requests:
            logger.warning(
                f"Run {self.run_id}: expected {self.requests} results, got {len(self.seen)}"
            )

        p50, p90, p99 = self.aggregator.percentiles()
        return RunStats(
            run_id=self.run_id,
            requests=self.requests,
            success=self.aggregator.success,
            failed=self.aggregator.failed,
            p50=p50,
            p90=p90,
            p99=p99,
            elapsed_s=now() - started_at,
            latencies=self.aggregator.snapshot(),
        )
