"""
debug_trace.py

Logging setup and trace instrumentation.

Tracing is off unless ``[logging] trace = true`` is set in settings.toml
or ``set_trace_enabled(True)`` is called.
"""

import logging
import sys
from functools import wraps
from typing import Optional

TRACE_LOGGER = "opsmap.trace"

_LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"

_trace_enabled = False
_file_handler: Optional[logging.Handler] = None

log = logging.getLogger(TRACE_LOGGER)


def configure_logging(level: str = "INFO", log_file: str = "", trace_enabled: bool = False) -> None:
    """Configure root logging for the application.

    Args:
        level: Root log level name (DEBUG, INFO, WARNING, ...).
        log_file: Optional file that receives a copy of every record.
        trace_enabled: Whether trace() lines are emitted.
    """
    global _file_handler
    root = logging.getLogger()
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    if not any(getattr(h, "_opsmap", False) for h in root.handlers):
        stream = logging.StreamHandler(sys.stderr)
        stream.setFormatter(logging.Formatter(_LOG_FORMAT, "%H:%M:%S"))
        stream._opsmap = True
        root.addHandler(stream)

    if log_file and _file_handler is None:
        try:
            _file_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
        except OSError as e:
            root.warning("Cannot open log file %s: %s", log_file, e)
        else:
            _file_handler.setFormatter(logging.Formatter(_LOG_FORMAT))
            root.addHandler(_file_handler)

    set_trace_enabled(trace_enabled)


def set_trace_enabled(enabled: bool) -> None:
    """Turn trace() output on or off."""
    global _trace_enabled
    _trace_enabled = bool(enabled)
    if _trace_enabled:
        log.setLevel(logging.DEBUG)


def trace(msg: str, category: str = "INFO"):
    """Emit a categorised trace line."""
    if not _trace_enabled:
        return
    log.debug("[%s] %s", category, msg)


def trace_exception(msg: str = "Exception"):
    """Log the exception currently being handled."""
    log.exception(msg)


def trace_call(category: str = "CALL"):
    """Decorator to trace function calls."""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            if not _trace_enabled:
                return func(*args, **kwargs)
            func_name = func.__qualname__
            trace(f">>> {func_name}", category)
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                trace(f"!!! {func_name} raised {type(e).__name__}: {e}", "ERROR")
                raise
            trace(f"<<< {func_name}", category)
            return result
        return wrapper
    return decorator


def close_log():
    """Detach and close the log file handler."""
    global _file_handler
    if _file_handler is not None:
        logging.getLogger().removeHandler(_file_handler)
        _file_handler.close()
        _file_handler = None
