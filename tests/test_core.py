import asyncio

import pytest

from downpour.core import LoadRunner
from downpour.errors import ReportError
from downpour.models import Config


def ok_attempt(session, request_id):
    async def attempt():
        return 200

    return attempt


def quiet_runner(config, **kwargs):
    kwargs.setdefault("use_progress_bar", False)
    kwargs.setdefault("echo", False)
    return LoadRunner(config, **kwargs)


@pytest.mark.asyncio
async def test_repeated_runs_pause_between_runs_only(monkeypatch):
    config = Config(url="http://unused.invalid/", requests=4, concurrency=2, burst=True, repeat_count=3, repeat_delay=5)
    records = []
    runner = quiet_runner(config, sink=records.append, attempt_factory=ok_attempt)

    pauses = []

    async def fake_pause(seconds):
        pauses.append((seconds, len(records)))

    monkeypatch.setattr(runner, "_pause", fake_pause)
    total = await runner.run()

    # after run 1 and run 2, never after run 3
    assert pauses == [(5, 4), (5, 8)]
    assert total.total_requests == 12
    assert total.success == 12
    assert total.failed == 0
    assert len(total.runs) == 3
    assert [s.run_id for s in total.runs] == [1, 2, 3]
    assert len(total.latencies) == 12
    for run_id in (1, 2, 3):
        ids = sorted(r.request_id for r in records if r.run_id == run_id)
        assert ids == [1, 2, 3, 4]


@pytest.mark.asyncio
async def test_single_run_never_pauses(monkeypatch):
    runner = quiet_runner(Config(requests=2, burst=True, repeat_count=1), attempt_factory=ok_attempt)

    async def fail_pause(seconds):
        raise AssertionError("unexpected pause")

    monkeypatch.setattr(runner, "_pause", fail_pause)
    total = await runner.run()
    assert total.total_requests == 2
    assert total.success == 2


@pytest.mark.asyncio
async def test_unreachable_host_exhausts_retries():
    config = Config(url="http://127.0.0.1:1/", requests=10, concurrency=5, burst=True, max_retries=2, request_timeout_s=5)
    records = []
    total = await quiet_runner(config, sink=records.append).run()

    run = total.runs[0]
    assert run.failed == 10
    assert run.success == 0
    assert len(records) == 10
    assert all(r.retries == 2 for r in records)
    assert all(r.status == 0 and r.error for r in records)


@pytest.mark.asyncio
async def test_zero_requests_run():
    total = await quiet_runner(Config(requests=0, repeat_count=2, repeat_delay=0), attempt_factory=ok_attempt).run()
    assert total.total_requests == 0
    assert total.p50 is None
    assert [s.success + s.failed for s in total.runs] == [0, 0]


@pytest.mark.asyncio
async def test_prints_run_and_aggregate_summary(capsys):
    config = Config(requests=3, burst=True)
    runner = LoadRunner(config, attempt_factory=ok_attempt, use_progress_bar=False, report_path="reports/x.csv")
    await runner.run()

    out = capsys.readouterr().out
    assert "Run 1 completed: Requests=3, Success=3, Failed=0, Time=" in out
    assert "Latency(ms): p50=" in out
    assert "Report saved to: reports/x.csv" in out


@pytest.mark.asyncio
async def test_run_twice_starts_from_empty_totals():
    config = Config(requests=4, burst=True, repeat_count=2, repeat_delay=0)
    runner = quiet_runner(config, attempt_factory=ok_attempt)

    first = await runner.run()
    second = await runner.run()

    for total in (first, second):
        assert total.total_requests == 8
        assert total.success + total.failed == 8
        assert len(total.latencies) == 8
        assert len(total.runs) == 2
    assert runner.pauses == [0]


def slow_attempt(session, request_id):
    async def attempt():
        await asyncio.sleep(0.01)
        return 200

    return attempt


@pytest.mark.asyncio
async def test_failing_sink_aborts_run_without_leaking_tasks():
    def full_disk(record):
        raise ReportError("cannot write report: disk full")

    config = Config(requests=20, concurrency=2, burst=True)
    runner = quiet_runner(config, sink=full_disk, attempt_factory=slow_attempt)

    with pytest.raises(ReportError):
        await runner.run()

    await asyncio.sleep(0)
    leftover = [t for t in asyncio.all_tasks() if t is not asyncio.current_task()]
    assert leftover == []


@pytest.mark.asyncio
async def test_sink_oserror_propagates_and_cancels_dispatch():
    attempts = []

    def counting_attempt(session, request_id):
        attempts.append(request_id)
        return slow_attempt(session, request_id)

    def broken(record):
        raise OSError("disk full")

    runner = quiet_runner(Config(requests=50, concurrency=2, burst=True), sink=broken, attempt_factory=counting_attempt)
    with pytest.raises(OSError):
        await runner.run()

    started = len(attempts)
    await asyncio.sleep(0.05)
    assert len(attempts) == started < 50
