import logging
import os
from collections.abc import Mapping
from dataclasses import fields

from .errors import ConfigError
from .models import Config
from .utils import parse_bool

logger = logging.getLogger(__name__)

# field name -> (environment variable, default)
ENV_VARS: dict[str, tuple[str, str]] = {
    "url": ("URL", "https://www.google.com/generate_204"),
    "requests": ("REQUESTS", "1000"),
    "concurrency": ("CONCURRENCY", "100"),
    "interval": ("INTERVAL", "5"),
    "burst": ("BURST", "false"),
    "max_retries": ("MAX_RETRIES", "2"),
    "repeat_count": ("REPEAT_COUNT", "1"),
    "repeat_delay": ("REPEAT_DELAY", "5"),
    "compress": ("COMPRESS", "false"),
    "log_requests": ("LOG_REQUESTS", "false"),
    "verify_tls": ("VERIFY_TLS", "true"),
    "request_timeout_s": ("REQUEST_TIMEOUT", "15"),
    "report_dir": ("REPORT_DIR", "reports"),
    "log_dir": ("LOG_DIR", "logs"),
}

# minimum accepted value for numeric fields
_MINIMUMS = {
    "requests": 0,
    "concurrency": 1,
    "interval": 0,
    "max_retries": 0,
    "repeat_count": 1,
    "repeat_delay": 0,
    "request_timeout_s": 0,
}

_TYPES = {f.name: f.type for f in fields(Config)}


def _convert(name: str, raw: str):
    kind = _TYPES[name]
    try:
        if kind in (bool, "bool"):
            return parse_bool(raw)
        if kind in (int, "int"):
            value = int(raw)
        elif kind in (float, "float"):
            value = float(raw)
        else:
            return raw
    except ValueError as e:
        env_name = ENV_VARS.get(name, (name,))[0]
        raise ConfigError(f"{env_name}={raw!r}: {e}") from e

    minimum = _MINIMUMS.get(name)
    if minimum is not None and value < minimum:
        raise ConfigError(f"{name} must be >= {minimum}, got {value}")
    return value


def build_config(values: Mapping[str, str]) -> Config:
    """Build a validated Config from raw string values keyed by field name."""
    unknown = set(values) - set(_TYPES)
    if unknown:
        raise ConfigError(f"unknown config fields: {', '.join(sorted(unknown))}")
    converted = {name: _convert(name, raw) for name, raw in values.items()}
    if not converted.get("url", "x"):
        raise ConfigError("url must not be empty")
    return Config(**converted)


def load_config(env: Mapping[str, str] | None = None, **overrides) -> Config:
    """Read Config from environment variables, then apply overrides.

    Overrides are raw strings or typed values keyed by field name; None
    means "not given".
    """
    env = os.environ if env is None else env
    raw = {name: env.get(var, default) for name, (var, default) in ENV_VARS.items()}
    for name, value in overrides.items():
        if value is not None:
            raw[name] = value if isinstance(value, str) else str(value)
    config = build_config(raw)
    logger.debug(f"Loaded config: {config}")
    return config
