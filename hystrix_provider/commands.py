"""Circuit-breaker commands and the rolling metrics the stream publishes.

A command wraps calls to one downstream dependency. It counts outcomes in a
rolling time window and opens its circuit when too many calls fail:

    breaker = command_registry.get_or_create("inventory", group="backend")
    stock = breaker.execute(client.get_stock, sku, fallback=lambda sku: 0)

or, as a decorator:

    @command("inventory", group="backend", fallback=lambda sku: 0)
    def get_stock(sku: str) -> int: ...

Every command registered in ``command_registry`` shows up in the metrics
stream and in the Prometheus output.
"""

import functools
import logging
import math
import threading
import time
from collections import deque
from collections.abc import Callable
from enum import Enum
from typing import Any, TypeVar

from prometheus_client import Counter, Gauge

from hystrix_provider.exceptions import CircuitOpenError

logger = logging.getLogger(__name__)

T = TypeVar("T")

COMMAND_EVENTS_TOTAL = Counter(
    "hystrix_command_events_total",
    "Circuit-breaker command outcomes",
    ["command", "event"],
)
CIRCUIT_OPEN = Gauge(
    "hystrix_circuit_open",
    "Whether the command's circuit is open (1=open, 0=closed)",
    ["command"],
)

LATENCY_PERCENTILES = ("0", "25", "50", "75", "90", "95", "99", "99.5", "100")


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CommandEvent(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    SHORT_CIRCUITED = "short_circuited"
    FALLBACK_SUCCESS = "fallback_success"
    FALLBACK_FAILURE = "fallback_failure"


class CircuitBreakerCommand:
    """Circuit breaker with rolling-window health counts.

    Closed: calls go through. The circuit opens once the window holds at
    least ``request_volume_threshold`` executions and the error percentage
    reaches ``error_threshold_percentage``.
    Open: calls are short-circuited until ``sleep_window`` seconds passed.
    Half open: a single trial call goes through; success closes the circuit
    and resets the window, failure opens it again.
    """

    def __init__(
        self,
        name: str,
        group: str = "default",
        error_threshold_percentage: int = 50,
        request_volume_threshold: int = 20,
        sleep_window: float = 5.0,
        rolling_window: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.group = group
        self.error_threshold_percentage = error_threshold_percentage
        self.request_volume_threshold = request_volume_threshold
        self.sleep_window = sleep_window
        self.rolling_window = rolling_window
        self._clock = clock

        self._events: deque[tuple[float, CommandEvent]] = deque()
        self._latencies: deque[tuple[float, float]] = deque()
        self._state = CircuitState.CLOSED
        self._opened_at = 0.0
        self._concurrent = 0
        self._lock = threading.RLock()

        CIRCUIT_OPEN.labels(command=name).set(0)

    @property
    def state(self) -> CircuitState:
        with self._lock:
            return self._state

    def is_open(self) -> bool:
        return self.state != CircuitState.CLOSED

    def execute(
        self,
        func: Callable[..., T],
        *args: Any,
        fallback: Callable[..., T] | None = None,
        **kwargs: Any,
    ) -> T:
        """Run func through the circuit breaker.

        The fallback, when given, is called with the same arguments whenever
        func fails or the circuit is open.

        Raises:
            CircuitOpenError: If the circuit is open and there is no fallback
        """
        if not self._allow_request():
            self._record(CommandEvent.SHORT_CIRCUITED)
            if fallback is None:
                raise CircuitOpenError(self.name)
            return self._run_fallback(fallback, *args, **kwargs)

        with self._lock:
            self._concurrent += 1
        start = time.perf_counter()
        try:
            result = func(*args, **kwargs)
        except Exception:
            self._on_failure(time.perf_counter() - start)
            if fallback is None:
                raise
            return self._run_fallback(fallback, *args, **kwargs)
        finally:
            with self._lock:
                self._concurrent -= 1

        self._on_success(time.perf_counter() - start)
        return result

    def _run_fallback(self, fallback: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        try:
            result = fallback(*args, **kwargs)
        except Exception:
            self._record(CommandEvent.FALLBACK_FAILURE)
            raise
        self._record(CommandEvent.FALLBACK_SUCCESS)
        return result

    def _allow_request(self) -> bool:
        with self._lock:
            if self._state == CircuitState.CLOSED:
                return True
            if (
                self._state == CircuitState.OPEN
                and self._clock() - self._opened_at >= self.sleep_window
            ):
                self._state = CircuitState.HALF_OPEN
                logger.info(f"Circuit {self.name} half open, allowing a trial request")
                return True
            return False

    def _on_success(self, duration: float) -> None:
        with self._lock:
            if self._state == CircuitState.HALF_OPEN:
                self._events.clear()
                self._latencies.clear()
                self._set_state(CircuitState.CLOSED)
            self._record(CommandEvent.SUCCESS, duration)

    def _on_failure(self, duration: float) -> None:
        with self._lock:
            self._record(CommandEvent.FAILURE, duration)
            if self._state == CircuitState.HALF_OPEN:
                self._trip()
                return

            request_count, error_count = self._health_counts()
            if (
                request_count >= self.request_volume_threshold
                and _percentage(error_count, request_count) >= self.error_threshold_percentage
            ):
                self._trip()

    def _trip(self) -> None:
        self._opened_at = self._clock()
        self._set_state(CircuitState.OPEN)

    def _set_state(self, state: CircuitState) -> None:
        if state == self._state:
            return
        self._state = state
        if state == CircuitState.CLOSED:
            CIRCUIT_OPEN.labels(command=self.name).set(0)
            logger.info(f"Circuit {self.name} closed", extra={"group": self.group})
        else:
            CIRCUIT_OPEN.labels(command=self.name).set(1)
            logger.warning(f"Circuit {self.name} opened", extra={"group": self.group})

    def _record(self, event: CommandEvent, duration: float | None = None) -> None:
        now = self._clock()
        with self._lock:
            self._events.append((now, event))
            if duration is not None:
                self._latencies.append((now, duration * 1000.0))
            self._prune(now)
        COMMAND_EVENTS_TOTAL.labels(command=self.name, event=event.value).inc()

    def _prune(self, now: float) -> None:
        cutoff = now - self.rolling_window
        while self._events and self._events[0][0] < cutoff:
            self._events.popleft()
        while self._latencies and self._latencies[0][0] < cutoff:
            self._latencies.popleft()

    def _health_counts(self) -> tuple[int, int]:
        """(executions, failures) in the window; short circuits are not executions."""
        successes = failures = 0
        for _, event in self._events:
            if event == CommandEvent.SUCCESS:
                successes += 1
            elif event == CommandEvent.FAILURE:
                failures += 1
        return successes + failures, failures

    def snapshot(self) -> dict[str, Any]:
        """Rolling metrics in the JSON shape the Hystrix dashboard reads."""
        with self._lock:
            self._prune(self._clock())
            counts = {event: 0 for event in CommandEvent}
            for _, event in self._events:
                counts[event] += 1
            latencies = sorted(latency for _, latency in self._latencies)
            request_count, error_count = self._health_counts()
            state = self._state
            concurrent = self._concurrent

        latency_mean = int(sum(latencies) / len(latencies)) if latencies else 0
        latency_percentiles = {
            key: _percentile(latencies, float(key)) for key in LATENCY_PERCENTILES
        }

        return {
            "type": "HystrixCommand",
            "name": self.name,
            "group": self.group,
            "currentTime": int(time.time() * 1000),
            "isCircuitBreakerOpen": state != CircuitState.CLOSED,
            "errorPercentage": _percentage(error_count, request_count),
            "errorCount": error_count,
            "requestCount": request_count,
            "rollingCountSuccess": counts[CommandEvent.SUCCESS],
            "rollingCountFailure": counts[CommandEvent.FAILURE],
            "rollingCountShortCircuited": counts[CommandEvent.SHORT_CIRCUITED],
            "rollingCountFallbackSuccess": counts[CommandEvent.FALLBACK_SUCCESS],
            "rollingCountFallbackFailure": counts[CommandEvent.FALLBACK_FAILURE],
            "rollingCountTimeout": 0,
            "rollingCountThreadPoolRejected": 0,
            "rollingCountSemaphoreRejected": 0,
            "currentConcurrentExecutionCount": concurrent,
            "latencyExecute_mean": latency_mean,
            "latencyExecute": latency_percentiles,
            "latencyTotal_mean": latency_mean,
            "latencyTotal": latency_percentiles,
            "propertyValue_circuitBreakerRequestVolumeThreshold": self.request_volume_threshold,
            "propertyValue_circuitBreakerSleepWindowInMilliseconds": int(self.sleep_window * 1000),
            "propertyValue_circuitBreakerErrorThresholdPercentage": self.error_threshold_percentage,
            "propertyValue_circuitBreakerForceOpen": False,
            "propertyValue_circuitBreakerForceClosed": False,
            "propertyValue_circuitBreakerEnabled": True,
            "propertyValue_executionIsolationStrategy": "SEMAPHORE",
            "propertyValue_metricsRollingStatisticalWindowInMilliseconds": int(
                self.rolling_window * 1000
            ),
            "reportingHosts": 1,
        }


class CommandRegistry:
    """Process-wide set of commands, keyed by name."""

    def __init__(self) -> None:
        self._commands: dict[str, CircuitBreakerCommand] = {}
        self._lock = threading.Lock()

    def get_or_create(self, name: str, group: str = "default", **options: Any) -> CircuitBreakerCommand:
        """Return the command called name, creating it on first use.

        Options only apply when the command is created.
        """
        with self._lock:
            existing = self._commands.get(name)
            if existing is not None:
                return existing
            created = CircuitBreakerCommand(name, group=group, **options)
            self._commands[name] = created
            logger.debug(f"Registered command {name}", extra={"group": group})
            return created

    def get(self, name: str) -> CircuitBreakerCommand | None:
        with self._lock:
            return self._commands.get(name)

    def commands(self) -> list[CircuitBreakerCommand]:
        with self._lock:
            return list(self._commands.values())

    def snapshots(self) -> list[dict[str, Any]]:
        return [cmd.snapshot() for cmd in self.commands()]

    def clear(self) -> None:
        with self._lock:
            self._commands.clear()


command_registry = CommandRegistry()


def command(
    name: str | None = None,
    group: str = "default",
    fallback: Callable[..., Any] | None = None,
    registry: CommandRegistry | None = None,
    **options: Any,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator running a function through a registered circuit breaker."""

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        command_name = name or func.__qualname__

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            target = registry if registry is not None else command_registry
            breaker = target.get_or_create(command_name, group=group, **options)
            return breaker.execute(func, *args, fallback=fallback, **kwargs)

        return wrapper

    return decorator


def _percentage(part: int, total: int) -> int:
    return int(part * 100 / total) if total else 0


def _percentile(sorted_values: list[float], percentile: float) -> int:
    """Nearest-rank percentile in whole milliseconds."""
    if not sorted_values:
        return 0
    rank = math.ceil(percentile / 100 * len(sorted_values))
    rank = min(max(rank, 1), len(sorted_values))
    return int(sorted_values[rank - 1])
