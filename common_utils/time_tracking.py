import functools
import time
import logging


logger = logging.getLogger(__name__)


def timeit(func):
    """Decorator to measure execution time of a function and log it."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        with Stopwatch() as watch:
            result = func(*args, **kwargs)
        logger.debug(f"[TIMEIT] {func.__qualname__} executed in {watch.elapsed:.4f} seconds")
        return result
    return wrapper


class Stopwatch:
    """Context manager measuring wall-clock time of the enclosed block in seconds."""

    def __init__(self):
        self.start = None
        self.elapsed = 0.0

    def __enter__(self):
        self.start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.elapsed = time.perf_counter() - self.start
        return False
