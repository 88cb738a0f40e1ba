"""Decorators for logging failures and timings at runtime seams.

Domain errors (container, pipeline, provider) are raised and propagate.
``handle_exceptions`` is reserved for shutdown paths where one failure must
not stop the rest.
"""
from __future__ import annotations

import functools
import inspect
import time
from typing import Any, Callable, Optional, Tuple, Type

from loguru import logger


def handle_exceptions(
    message: Optional[str] = None,
    *,
    default: Any = None,
    reraise: bool = False,
    exceptions: Tuple[Type[BaseException], ...] = (Exception,),
    log=logger,
):
    """Log ``exceptions`` raised by the wrapped callable.

    Args:
        message: Prefix for the error line (defaults to "<name> failed")
        default: Value returned when an exception is swallowed
        reraise: Re-raise after logging instead of returning ``default``
        exceptions: Exception types that are handled; others propagate untouched
        log: Logger receiving the error line
    """
    def decorator(func: Callable) -> Callable:
        prefix = message or f"{func.__qualname__} failed"

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except exceptions as e:
                log.error("{}: {}", prefix, e)
                if reraise:
                    raise
                return default
        return wrapper
    return decorator


def log_execution_time(level: str = "DEBUG", *, log=logger):
    """Log how long the wrapped callable took, in milliseconds.

    Coroutine functions are timed until the coroutine completes.
    """
    def decorator(func: Callable) -> Callable:
        emit = getattr(log, level.lower(), log.debug)

        def report(started: float) -> None:
            emit("{} took {:.1f}ms", func.__qualname__, (time.perf_counter() - started) * 1000)

        if inspect.iscoroutinefunction(func):
            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                started = time.perf_counter()
                try:
                    return await func(*args, **kwargs)
                finally:
                    report(started)
            return async_wrapper

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            started = time.perf_counter()
            try:
                return func(*args, **kwargs)
            finally:
                report(started)
        return wrapper
    return decorator
