"""Call logging for the standings service and the OpenF1 fetch layer."""

from __future__ import annotations

import functools
import logging
import threading
import time
from typing import Any, Callable, TypeVar

F = TypeVar("F", bound=Callable[..., Any])

LOGGER_NAME = "f1standings"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_configured = False
_configure_lock = threading.Lock()


def get_logger(suffix: str | None = None) -> logging.Logger:
    """Return the package logger or one of its children."""
    name = f"{LOGGER_NAME}.{suffix}" if suffix else LOGGER_NAME
    return logging.getLogger(name)


def configure_logging(level: str | int = "INFO") -> logging.Logger:
    """Attach a single stream handler to the package logger.

    Safe to call more than once; only the level is updated on later calls.
    """
    global _configured
    logger = get_logger()
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logger.setLevel(level)

    with _configure_lock:
        if not _configured:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            logger.addHandler(handler)
            logger.propagate = False
            _configured = True
    return logger


def _describe_args(args: tuple[Any, ...], kwargs: dict[str, Any], skip_first: bool) -> str:
    parts = [repr(a) for a in (args[1:] if skip_first else args)]
    parts += [f"{k}={v!r}" for k, v in kwargs.items()]
    return ", ".join(parts)


def log_api_call(fn: F) -> F:
    """Decorator that logs OpenF1 transport calls (skips ``self``)."""

    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        logger = get_logger("api")
        arg_str = _describe_args(args, kwargs, skip_first=True)
        logger.debug("CALL: %s(%s)", fn.__qualname__, arg_str)

        start = time.monotonic()
        try:
            result = fn(*args, **kwargs)
        except Exception as exc:
            elapsed = time.monotonic() - start
            logger.error(
                "FAIL: %s(%s) -> %s: %s (%.3fs)",
                fn.__qualname__, arg_str, type(exc).__name__, exc, elapsed,
            )
            raise
        elapsed = time.monotonic() - start
        count = len(result) if isinstance(result, list) else 1
        logger.info(
            "OK: %s(%s) -> %d items (%.3fs)",
            fn.__qualname__, arg_str, count, elapsed,
        )
        return result

    return wrapper  # type: ignore[return-value]


def log_service_call(fn: F) -> F:
    """Decorator that logs service-layer calls.

    The first positional argument is the database session and is left out
    of the log line.
    """

    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        logger = get_logger("service")
        arg_str = _describe_args(args, kwargs, skip_first=True)
        logger.info("SERVICE CALL: %s(%s)", fn.__qualname__, arg_str)

        start = time.monotonic()
        try:
            result = fn(*args, **kwargs)
        except Exception as exc:
            elapsed = time.monotonic() - start
            logger.error(
                "SERVICE FAIL: %s -> %s: %s (%.3fs)",
                fn.__qualname__, type(exc).__name__, exc, elapsed,
            )
            raise
        elapsed = time.monotonic() - start
        logger.info("SERVICE OK: %s -> %.3fs", fn.__qualname__, elapsed)
        return result

    return wrapper  # type: ignore[return-value]
