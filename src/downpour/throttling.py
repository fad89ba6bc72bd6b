import asyncio
import logging


logger = logging.getLogger(__name__)


class AdmissionGate:
    """Counting gate bounding how many tasks may be attempting at once."""

    def __init__(self, capacity: int) -> None:
        assert capacity >= 1
        self.capacity = capacity
        self._sema = asyncio.Semaphore(capacity)
        self.in_use = 0
        self.high_water = 0
        logger.debug(f"Created admission gate: capacity={capacity}")

    async def acquire(self) -> None:
        await self._sema.acquire()
        self.in_use += 1
        if self.in_use > self.high_water:
            self.high_water = self.in_use

    def release(self) -> None:
        self.in_use -= 1
        self._sema.release()

    async def __aenter__(self) -> "AdmissionGate":
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.release()


def pacing_delay(interval_s: float, requests: int, burst: bool) -> float:
    """Seconds to wait between successive task starts."""
    if burst or requests <= 0 or interval_s <= 0:
        return 0.0
    return interval_s / requests


class Pacer:
    """Spaces task starts evenly across the run interval."""

    def __init__(self, delay_s: float) -> None:
        self.delay_s = delay_s
        self.waits = 0

    @classmethod
    def for_run(cls, interval_s: float, requests: int, burst: bool) -> "Pacer":
        delay = pacing_delay(interval_s, requests, burst)
        if delay > 0:
            logger.debug(f"Pacing task starts every {delay:.4f}s")
        return cls(delay)

    @property
    def enabled(self) -> bool:
        return self.delay_s > 0

    async def wait(self) -> None:
        if not self.enabled:
            return
        self.waits += 1
        await asyncio.sleep(self.delay_s)
