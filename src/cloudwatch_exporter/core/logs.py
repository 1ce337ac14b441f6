"""Logging helpers shared by the scrape engine and HTTP adapters."""

import logging
import time
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass

logger = logging.getLogger("cloudwatch_exporter")


@dataclass
class TimedResult:
    """Result object for the timed context manager."""

    elapsed_seconds: float = 0.0


@contextmanager
def timed(
    message: str,
    **attributes: str | int | float | bool,
) -> Generator[TimedResult]:
    """Context manager that logs entry and exit with elapsed time.

    The elapsed time is recorded even when the block raises.

    Args:
        message: The base log message
        **attributes: Additional structured fields

    Yields:
        TimedResult whose elapsed_seconds is set on exit
    """
    result = TimedResult()
    start = time.perf_counter()
    logger.debug("%s [entry]", message, extra={"phase": "entry", **attributes})
    try:
        yield result
    finally:
        result.elapsed_seconds = time.perf_counter() - start
        logger.debug(
            "%s [exit]",
            message,
            extra={
                "phase": "exit",
                "elapsed_seconds": result.elapsed_seconds,
                **attributes,
            },
        )


def log_exception(
    message: str,
    level: int = logging.ERROR,
    **attributes: str | int | float | bool,
) -> None:
    """Log the exception currently being handled, with its traceback.

    Args:
        message: The log message
        level: Logging level (default ERROR)
        **attributes: Additional structured fields
    """
    logger.log(level, message, exc_info=True, extra=dict(attributes))
