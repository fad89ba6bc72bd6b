from dataclasses import dataclass, field
from typing import Any
from collections.abc import Awaitable, Callable


@dataclass(frozen=True)
class Config:
    url: str = "https://www.google.com/generate_204"
    requests: int = 1000
    concurrency: int = 100
    interval: float = 5.0
    burst: bool = False
    max_retries: int = 2
    repeat_count: int = 1
    repeat_delay: float = 5.0
    compress: bool = False
    log_requests: bool = False
    verify_tls: bool = True
    request_timeout_s: float = 15.0
    report_dir: str = "reports"
    log_dir: str = "logs"


@dataclass
class Result:
    request_id: int
    status: int = 0
    error: str = ""
    duration: float = 0.0  # seconds, all attempts included
    retries: int = 0

    @property
    def ok(self) -> bool:
        return not self.error

    @property
    def duration_ms(self) -> int:
        return int(self.duration * 1000)


@dataclass(frozen=True)
class ReportRecord:
    run_id: int
    request_id: int
    status: int
    error: str
    duration_ms: int
    retries: int

    @classmethod
    def from_result(cls, run_id: int, result: Result) -> "ReportRecord":
        return cls(
            run_id=run_id,
            request_id=result.request_id,
            status=result.status,
            error=result.error,
            duration_ms=result.duration_ms,
            retries=result.retries,
        )

    def as_row(self) -> list[str]:
        return [
            str(self.run_id),
            str(self.request_id),
            str(self.status),
            self.error,
            str(self.duration_ms),
            str(self.retries),
        ]


@dataclass(frozen=True)
class RunStats:
    run_id: int
    requests: int
    success: int
    failed: int
    p50: int | None
    p90: int | None
    p99: int | None
    elapsed_s: float
    latencies: tuple[int, ...] = field(default=(), repr=False)


@dataclass
class AggregateStats:
    total_requests: int = 0
    success: int = 0
    failed: int = 0
    elapsed_s: float = 0.0
    p50: int | None = None
    p90: int | None = None
    p99: int | None = None
    latencies: list[int] = field(default_factory=list, repr=False)
    runs: list[RunStats] = field(default_factory=list, repr=False)
    report_path: str | None = None


# One network attempt: resolves to the HTTP status or raises a retryable DownpourError
Attempt = Callable[[], Awaitable[int]]

# Record sink: receives every completed request exactly once
RecordSink = Callable[[ReportRecord], Any]
