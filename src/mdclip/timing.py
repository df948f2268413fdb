"""Elapsed-time logging for pipeline stages."""

import inspect
import logging
import time
from collections.abc import Callable, Generator
from contextlib import contextmanager
from functools import wraps
from typing import ParamSpec, TypeVar

from mdclip.logger import logger

__all__ = ["timeit", "timer"]

P = ParamSpec("P")
R = TypeVar("R")


@contextmanager
def timer(name: str = "Operation", log_level: int = logging.DEBUG) -> Generator[None]:
    """Log how long the wrapped block took.

    Example:
        >>> with timer("Rendering"):
        ...     markdown = renderer.render(tree)

    """
    start_time = time.perf_counter()
    try:
        yield
    finally:
        logger.log(log_level, "%s took %.4f seconds", name, time.perf_counter() - start_time)


def timeit(
    name: str | None = None, log_level: int = logging.DEBUG
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Time a sync or async callable with :func:`timer`.

    Args:
        name: Operation name (default: module-qualified function name)
        log_level: Logging level to use (default: DEBUG)

    """
    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        operation_name = name or f"{func.__module__}.{func.__name__}"

        if inspect.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
                with timer(operation_name, log_level):
                    return await func(*args, **kwargs)  # type: ignore[no-any-return]
            return async_wrapper  # type: ignore[return-value]

        @wraps(func)
        def sync_wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            with timer(operation_name, log_level):
                return func(*args, **kwargs)
        return sync_wrapper
    return decorator
