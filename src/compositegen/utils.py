from __future__ import annotations

import functools
import logging
import math
import time
from typing import Callable, TypeVar

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable)


def timer(func: F) -> F:
    """Log the wall-clock time spent in the decorated call."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        result = func(*args, **kwargs)
        elapsed = time.perf_counter() - start
        logger.info(f"{func.__qualname__} done ({elapsed:.3f}s)")
        return result

    return wrapper  # type: ignore[return-value]


def format_real(value: float) -> str:
    """Shortest round-trip text for a real number; integral values drop '.0'."""
    value = float(value)
    if math.isfinite(value) and value == int(value):
        return str(int(value))
    return repr(value)
