from collections.abc import Sequence

from .metrics import PERCENTILES, percentile
from .models import AggregateStats, RunStats


def _ms(value: int | None) -> str:
    return "n/a" if value is None else str(value)


def render_run_summary(stats: RunStats) -> str:
    return (
        f"Run {stats.run_id} completed: Requests={stats.requests}, "
        f"Success={stats.success}, Failed={stats.failed}, Time={stats.elapsed_s:.2f}s\n"
        f"Latency(ms): p50={_ms(stats.p50)}, p90={_ms(stats.p90)}, p99={_ms(stats.p99)}"
    )


def render_aggregate(stats: AggregateStats) -> str:
    lines = [
        f"All test runs completed ({len(stats.runs)} runs).",
        f"Total requests: {stats.total_requests}, "
        f"Succeeded: {stats.success}, Failed: {stats.failed}",
        f"Overall latency(ms): p50={_ms(stats.p50)}, p90={_ms(stats.p90)}, p99={_ms(stats.p99)}",
        f"Total wall-clock time for all runs: {stats.elapsed_s:.2f}s",
    ]
    if stats.report_path:
        lines.append(f"Report saved to: {stats.report_path}")
    return "\n".join(lines)


def latency_buckets(sorted_ms: Sequence[int], bins: int) -> list[tuple[float, float, int]]:
    """Split an ascending ms sample into equal-width (low, high, count) buckets."""
    lo, hi = sorted_ms[0], sorted_ms[-1]
    span = (hi - lo) / bins
    counts = [0] * bins
    for v in sorted_ms:
        counts[min(bins - 1, int((v - lo) / span))] += 1
    return [(lo + i * span, lo + (i + 1) * span, c) for i, c in enumerate(counts)]


def render_latency_histogram(latencies: Sequence[int], bins: int = 20, width: int = 40) -> str:
    if not latencies:
        return "No latency data."
    sample = sorted(latencies)
    if sample[0] == sample[-1]:
        return f"Histogram: single value {sample[0]}ms"

    buckets = latency_buckets(sample, bins)
    peak = max(c for _, _, c in buckets)
    marks = {f"p{int(f * 100)}": percentile(sample, f) for f in PERCENTILES}

    lines = ["Latency Histogram"]
    for i, (low, high, count) in enumerate(buckets):
        last = i == len(buckets) - 1
        tags = [
            name for name, v in marks.items()
            if low <= v < high or (last and v == high)
        ]
        bar = "#" * max(1, count * width // peak) if count else ""
        suffix = f" <- {'/'.join(tags)}" if tags else ""
        lines.append(f"{low:8.1f}ms - {high:8.1f}ms | {bar:<{width}} ({count}){suffix}")
    return "\n".join(lines)
