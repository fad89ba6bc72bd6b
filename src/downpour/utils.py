import time

USER_AGENT = "Mozilla/5.0 (compatible; LoadTester/1.0; +https://example.com)"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def now() -> float:
    return time.perf_counter()


def parse_bool(value: str) -> bool:
    v = value.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    raise ValueError(f"not a boolean: {value!r}")


def format_headers(headers) -> str:
    return "\n".join(f"{k}: {v}" for k, v in headers.items())
