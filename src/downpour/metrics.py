import logging
from collections.abc import Iterable, Sequence

logger = logging.getLogger(__name__)

PERCENTILES = (0.50, 0.90, 0.99)


def percentile(sorted_values: Sequence[int], fraction: float) -> int | None:
    """Nearest-rank percentile over an ascending sample.

    Picks the element at index floor(fraction * n), no interpolation.
    Returns None for an empty sample.
    """
    n = len(sorted_values)
    if n == 0:
        return None
    idx = int(fraction * n)
    return sorted_values[max(0, min(n - 1, idx))]


class LatencyAggregator:
    """Latency sample (ms) plus success/failure counters.

    Owned by a single consumer: the collector within a run, the runner
    across runs. Not safe to share between producers.
    """

    def __init__(self) -> None:
        self._samples: list[int] = []
        self._sorted = True
        self.success = 0
        self.failed = 0

    def __len__(self) -> int:
        return len(self._samples)

    def append(self, latency_ms: int, ok: bool = True) -> None:
        if self._samples and latency_ms < self._samples[-1]:
            self._sorted = False
        self._samples.append(latency_ms)
        if ok:
            self.success += 1
        else:
            self.failed += 1

    def extend(self, latencies: Iterable[int], success: int, failed: int) -> None:
        """Merge another finalized sample (and its counters) into this one."""
        self._samples.extend(latencies)
        self._sorted = False
        self.success += success
        self.failed += failed

    def _finalize(self) -> list[int]:
        if not self._sorted:
            self._samples.sort()
            self._sorted = True
        return self._samples

    def percentile(self, fraction: float) -> int | None:
        return percentile(self._finalize(), fraction)

    def percentiles(self) -> tuple[int | None, ...]:
        values = self._finalize()
        result = tuple(percentile(values, f) for f in PERCENTILES)
        logger.debug(
            f"Percentiles over {len(values)} samples: "
            + ", ".join(f"p{int(f * 100)}={v}" for f, v in zip(PERCENTILES, result))
        )
        return result

    def snapshot(self) -> tuple[int, ...]:
        return tuple(self._finalize())
