__all__ = [
    "Config",
    "Result",
    "RunStats",
    "AggregateStats",
    "LoadRunner",
    "load_config",
    "percentile",
    "render_latency_histogram",
]


from .models import Config, Result, RunStats, AggregateStats
from .core import LoadRunner
from .config import load_config
from .metrics import percentile
from .rendering import render_latency_histogram
