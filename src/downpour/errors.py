class DownpourError(Exception):
    """Base class for every error raised by downpour."""


class ConfigError(DownpourError):
    pass


class ReportError(DownpourError):
    """The report destination could not be created or written."""


class RetryableError(DownpourError):
    """Failure of a single attempt; the worker may try again."""


class TransportError(RetryableError):
    """Connection, timeout or DNS failure below HTTP."""

    def __init__(self, cause: BaseException | str):
        self.cause = cause
        message = str(cause) or type(cause).__name__
        super().__init__(message)


class HTTPStatusError(RetryableError):
    SNIPPET_BYTES = 200

    def __init__(self, status: int, body: bytes = b""):
        self.status = status
        self.body_snippet = body[: self.SNIPPET_BYTES].decode("utf-8", errors="replace")
        message = f"HTTP {status}"
        if self.body_snippet:
            message = f"{message}: {self.body_snippet}"
        super().__init__(message)
