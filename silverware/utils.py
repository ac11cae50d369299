"""Helpers shared by runtime providers."""

import logging
import threading
import time
from collections.abc import Callable, Iterable
from typing import Any

import requests

logger = logging.getLogger(__name__)

DEFAULT_HTTP_WAIT_ATTEMPTS = 10
DEFAULT_HTTP_WAIT_INTERVAL = 1.0


def parse_boolean(value: Any) -> bool:
    """Parse a property value the way configuration flags are read.

    Only the string "true" (any case) or the boolean True count as true.
    Absent values and anything else are false.
    """
    if isinstance(value, bool):
        return value
    return isinstance(value, str) and value.lower() == "true"


def wait_for_http(
    url: str,
    code: int,
    attempts: int = DEFAULT_HTTP_WAIT_ATTEMPTS,
    interval: float = DEFAULT_HTTP_WAIT_INTERVAL,
    timeout: float = 2.0,
    sleep: Callable[[float], None] | None = None,
) -> bool:
    """Poll a URL until it answers with the expected status code.

    The response body is never read, so endpoints that stream forever can be
    probed too.

    Args:
        url: URL to GET
        code: Expected HTTP status code
        attempts: Maximum number of requests
        interval: Seconds to wait between failed attempts
        timeout: Connect/read timeout per request in seconds
        sleep: Waits between attempts; defaults to time.sleep. Pass an
            interruptible sleep such as Context.sleep to let cancellation
            end the wait early.

    Returns:
        True once a response with the expected code arrives, False if all
        attempts fail

    Raises:
        Any exception raised by sleep
    """
    pause = sleep if sleep is not None else time.sleep

    for attempt in range(1, attempts + 1):
        try:
            with requests.get(url, stream=True, timeout=timeout) as response:
                if response.status_code == code:
                    logger.debug(f"{url} answered {code} after {attempt} attempt(s)")
                    return True
                logger.debug(
                    f"{url} answered {response.status_code}, expected {code} "
                    f"(attempt {attempt}/{attempts})"
                )
        except requests.RequestException as e:
            logger.debug(f"{url} not reachable (attempt {attempt}/{attempts}): {e}")

        if attempt < attempts:
            pause(interval)

    logger.warning(f"{url} did not answer {code} after {attempts} attempts")
    return False


def log_shutdown(log: logging.Logger, exc: BaseException) -> None:
    """Log a provider thread stopping because the runtime is shutting down."""
    log.info("Provider thread shutting down")
    log.debug(f"Shutdown cause: {exc}")


def join_threads(threads: Iterable[threading.Thread], timeout: float) -> list[str]:
    """Join threads against one shared deadline; returns names of those still alive."""
    pending = list(threads)
    deadline = time.perf_counter() + timeout
    for thread in pending:
        thread.join(timeout=max(0.0, deadline - time.perf_counter()))
    return [thread.name for thread in pending if thread.is_alive()]
