import asyncio
import logging
from collections.abc import Callable

from .models import Attempt, Result
from .throttling import AdmissionGate, Pacer
from .worker import run_task

logger = logging.getLogger(__name__)

# Marks the end of a run's result stream
END_OF_STREAM = None


class Dispatcher:
    """Starts one task per request id, bounded by the admission gate.

    Results go onto ``results`` as tasks finish; once every task has
    reported, END_OF_STREAM follows.
    """

    def __init__(
        self,
        requests: int,
        concurrency: int,
        max_retries: int,
        attempt_factory: Callable[[int], Attempt],
        results: asyncio.Queue,
        pacer: Pacer | None = None,
    ) -> None:
        self.requests = requests
        self.max_retries = max_retries
        self.attempt_factory = attempt_factory
        self.results = results
        self.pacer = pacer or Pacer(0.0)
        self.gate = AdmissionGate(concurrency)
        self.dispatched: list[int] = []

    async def _task(self, request_id: int) -> None:
        try:
            result: Result = await run_task(
                request_id, self.attempt_factory(request_id), self.max_retries
            )
            await self.results.put(result)
        finally:
            self.gate.release()

    async def run(self) -> None:
        tasks: list[asyncio.Task] = []
        try:
            for request_id in range(1, self.requests + 1):
                if request_id > 1:
                    await self.pacer.wait()
                await self.gate.acquire()
                self.dispatched.append(request_id)
                tasks.append(asyncio.create_task(self._task(request_id)))
            logger.debug(f"Dispatched {len(tasks)} tasks")
            await asyncio.gather(*tasks)
        except BaseException:
            pending = [t for t in tasks if not t.done()]
            for t in pending:
                t.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            if pending:
                logger.warning(f"Dispatch aborted, cancelled {len(pending)} in-flight tasks")
            raise
        finally:
            self.results.put_nowait(END_OF_STREAM)
        logger.debug(
            f"All tasks reported (peak concurrency {self.gate.high_water}/{self.gate.capacity})"
        )
