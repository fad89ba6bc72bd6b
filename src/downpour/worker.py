import asyncio
import enum
import logging

import aiohttp

from .errors import HTTPStatusError, RetryableError, TransportError
from .logging_config import TRACE_LOGGER
from .models import Attempt, Result
from .utils import USER_AGENT, now, format_headers

logger = logging.getLogger(__name__)
trace_logger = logging.getLogger(TRACE_LOGGER)


class TaskState(enum.Enum):
    PENDING = "pending"  # created, not yet started
    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    EXHAUSTED_FAILED = "exhausted_failed"


class HttpAttempt:
    """One GET against the target URL, bound to a shared session."""

    def __init__(self, session: aiohttp.ClientSession, url: str, trace: bool = False):
        self.session = session
        self.url = url
        self.trace = trace
        self.headers = {"User-Agent": USER_AGENT}

    async def __call__(self) -> int:
        if self.trace:
            trace_logger.info(
                f">>> GET {self.url}\n{format_headers(self.headers)}"
            )
        try:
            async with self.session.get(self.url, headers=self.headers) as resp:
                body = await resp.read()
                status = resp.status
                if self.trace:
                    trace_logger.info(
                        f"<<< HTTP/{resp.version.major}.{resp.version.minor} "
                        f"{status} {resp.reason}\n{format_headers(resp.headers)}\n\n"
                        f"{body.decode('utf-8', errors='replace')}"
                    )
        except aiohttp.ClientError as e:
            if self.trace:
                trace_logger.info(f"<<< transport error: {e!r}")
            raise TransportError(e) from e
        except asyncio.TimeoutError as e:
            if self.trace:
                trace_logger.info("<<< transport error: timeout")
            raise TransportError(f"timeout requesting {self.url}") from e

        if status >= 400:
            raise HTTPStatusError(status, body)
        return status


async def run_task(request_id: int, attempt: Attempt, max_retries: int) -> Result:
    """Run one task's attempt sequence and return its terminal Result.

    Makes up to 1 + max_retries attempts, retrying immediately on any
    retryable failure. Status and error describe the last attempt only.
    """
    result = Result(request_id=request_id)
    start = now()
    attempt_no = 0

    state = TaskState.ATTEMPTING
    while state is TaskState.ATTEMPTING:
        try:
            result.status = await attempt()
            result.error = ""
            state = TaskState.SUCCEEDED
        except RetryableError as e:
            result.status = e.status if isinstance(e, HTTPStatusError) else 0
            result.error = str(e)
            logger.debug(
                f"[R{request_id}] attempt {attempt_no} failed: {result.error}"
            )
            if attempt_no < max_retries:
                attempt_no += 1
            else:
                state = TaskState.EXHAUSTED_FAILED

    result.duration = now() - start
    result.retries = attempt_no
    logger.debug(
        f"[R{request_id}] {state.value}: status={result.status}, "
        f"retries={result.retries}, {result.duration_ms}ms"
    )
    return result
