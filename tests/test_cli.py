import csv

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from downpour import cli


@pytest.fixture(autouse=True)
def no_logging_setup(monkeypatch):
    monkeypatch.setattr(cli, "setup_logging", lambda **kwargs: None)


def test_parse_args_leaves_unset_options_to_environment():
    args = cli.parse_args(["-n", "5", "--burst", "--timeout", "2"])
    assert args.requests == 5
    assert args.burst is True
    assert args.request_timeout_s == 2.0
    assert args.concurrency is None
    assert args.compress is None


def test_unwritable_report_dir_aborts(tmp_path, monkeypatch):
    blocker = tmp_path / "file"
    blocker.write_text("")
    monkeypatch.setenv("URL", "http://127.0.0.1:1/")
    with pytest.raises(SystemExit) as exc_info:
        cli.main(["-n", "1", "--report-dir", str(blocker / "reports"), "--no-progress"])
    assert exc_info.value.code == 1


@pytest.mark.asyncio
async def test_run_writes_report(tmp_path):
    async def handler(request):
        return web.Response(status=204)

    app = web.Application()
    app.router.add_get("/", handler)
    async with TestServer(app) as server:
        stats = await cli.run(
            [
                "--url", str(server.make_url("/")),
                "-n", "6",
                "-c", "3",
                "--burst",
                "--repeat-count", "2",
                "--repeat-delay", "0",
                "--report-dir", str(tmp_path),
                "--no-progress",
                "--histogram-bins", "0",
            ]
        )

    assert stats.total_requests == 12
    assert stats.success == 12
    (report,) = tmp_path.glob("results_*.csv")
    with open(report, newline="") as f:
        rows = list(csv.reader(f))
    assert len(rows) == 13
    assert {row[2] for row in rows[1:]} == {"204"}
