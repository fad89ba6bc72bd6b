# downpour/logging_config.py
import logging
import os
import sys
import time

TRACE_LOGGER = "downpour.trace"

_CONSOLE_FORMAT = logging.Formatter(
    fmt="%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
# request/response dumps are multi-line; keep only the timestamp prefix
_TRACE_FORMAT = logging.Formatter(fmt="%(asctime)s %(message)s", datefmt="%Y-%m-%d %H:%M:%S")


def _replace_handlers(target: logging.Logger, *handlers: logging.Handler) -> None:
    for old in list(target.handlers):
        target.removeHandler(old)
        old.close()
    for h in handlers:
        target.addHandler(h)


def _trace_handler(trace_dir: str) -> logging.FileHandler:
    os.makedirs(trace_dir, exist_ok=True)
    path = os.path.join(trace_dir, f"results_{int(time.time())}.log")
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(_TRACE_FORMAT)
    return handler


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    trace_dir: str | None = None,
) -> str | None:
    """
    Send run logs to stdout, plus log_file when given.

    With trace_dir set, every request/response dump goes to
    <trace_dir>/results_<unix>.log through the non-propagating trace
    logger. Returns that path, or None when tracing is off.
    """
    root = logging.getLogger()
    root.setLevel(level.upper())

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(_CONSOLE_FORMAT)
    handlers: list[logging.Handler] = [console]
    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(_CONSOLE_FORMAT)
        handlers.append(file_handler)
    _replace_handlers(root, *handlers)
    if log_file:
        root.info(f"Logging to file: {log_file}")

    trace = logging.getLogger(TRACE_LOGGER)
    trace_path = None
    if trace_dir is not None:
        handler = _trace_handler(trace_dir)
        trace_path = handler.baseFilename
        trace.setLevel(logging.INFO)
        trace.propagate = False
        _replace_handlers(trace, handler)
        root.info(f"Tracing requests to {trace_path}")
    else:
        trace.propagate = True
        _replace_handlers(trace)

    def handle_exception(exc_type, exc_value, exc_traceback):
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return
        root.error("Uncaught exception", exc_info=(exc_type, exc_value, exc_traceback))

    sys.excepthook = handle_exception

    return trace_path
