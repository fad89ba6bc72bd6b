"""
Quick sanity test: two short bursty runs against a public endpoint.
Run: python examples/burst_against_httpbin.py
"""
import asyncio
import os

from downpour import Config, LoadRunner
from downpour.persistence import ReportWriter


async def main():
    config = Config(
        url=os.getenv("URL", "https://httpbin.org/status/200"),
        requests=40,
        concurrency=8,
        burst=True,
        max_retries=1,
        repeat_count=2,
        repeat_delay=1,
        request_timeout_s=float(os.getenv("HTTP_REQUEST_TIMEOUT_S", "10")),
    )

    with ReportWriter("reports") as report:
        runner = LoadRunner(config, sink=report.write, report_path=report.path, histogram_bins=24)
        stats = await runner.run()
    print("\nStats:", stats)

if __name__ == "__main__":
    asyncio.run(main())
