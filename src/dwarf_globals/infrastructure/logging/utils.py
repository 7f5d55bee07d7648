#!/usr/bin/env python3

"""Logging helpers shared by every layer."""

import logging
from collections.abc import Callable
from functools import wraps
from time import perf_counter
from typing import Any, TypeVar, cast

F = TypeVar("F", bound=Callable[..., Any])


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for the given module name.

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger instance, configured by LoggerSetup once initialized
    """
    return logging.getLogger(name)


def log_timing(func: F) -> F:
    """
    Decorator that logs start, duration and failure of a call.

    The logger is the one of the module that defines ``func``, so timing lines
    show up under the same name as the function's own messages.

    Args:
        func: Function to decorate

    Returns:
        Wrapped function
    """

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        logger = get_logger(func.__module__)
        func_name = func.__qualname__

        logger.debug(f"Starting {func_name}")
        start = perf_counter()

        try:
            result = func(*args, **kwargs)
        except BaseException as e:
            elapsed = perf_counter() - start
            # SystemExit(0) is how the CLI finishes normally
            if isinstance(e, SystemExit) and not e.code:
                logger.debug(f"Completed {func_name} in {elapsed:.2f}s")
            else:
                logger.error(f"Failed {func_name} after {elapsed:.2f}s: {e!r}")
            raise

        logger.debug(f"Completed {func_name} in {perf_counter() - start:.2f}s")
        return result

    return cast("F", wrapper)
