"""Telemetry helpers for timing and scoped log context."""

import functools
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any, ParamSpec, TypeVar

from src.commons.telemetry.logger import get_log_context, get_logger, log_context_var

P = ParamSpec("P")
R = TypeVar("R")


def timed(
    *,
    logger: logging.Logger | None = None,
    level: int = logging.INFO,
    label: str | None = None,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Decorator to measure and log the duration of a coroutine.

    The log line is emitted whether the call succeeds or raises, with an
    ``outcome`` field of ``ok`` or ``error``.

    Args:
        logger: Optional logger instance. Defaults to the function's module logger.
        level: Log level for timing messages.
        label: Name used in the message. Defaults to the function's qualname.

    Returns:
        Decorator for async functions.
    """

    def decorator(fn: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        log = logger or get_logger(fn.__module__)
        name = label or fn.__qualname__

        @functools.wraps(fn)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            start = time.perf_counter()
            outcome = "error"
            try:
                result = await fn(*args, **kwargs)
                outcome = "ok"
                return result
            finally:
                elapsed_ms = (time.perf_counter() - start) * 1000
                log.log(
                    level,
                    f"{name} finished",
                    extra={"duration_ms": round(elapsed_ms, 2), "outcome": outcome},
                )

        return wrapper

    return decorator


class LogContext:
    """Context manager for adding temporary logging context.

    Example:
        with LogContext(video_id=video_id):
            logger.info("Transcoding")  # carries video_id
    """

    def __init__(self, **kwargs: Any) -> None:
        self.context = kwargs
        self._previous_context: dict[str, Any] = {}

    def __enter__(self) -> "LogContext":
        self._previous_context = get_log_context()
        log_context_var.set({**self._previous_context, **self.context})
        return self

    def __exit__(self, *args: Any) -> None:
        log_context_var.set(self._previous_context)
