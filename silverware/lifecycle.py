"""Process lifecycle: signal handling and stopping provider threads."""

import logging
import signal
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from enum import Enum

from prometheus_client import Gauge, Histogram

from silverware.context import Context
from silverware.utils import join_threads

logger = logging.getLogger(__name__)

RUNTIME_SHUTTING_DOWN = Gauge(
    "silverware_shutting_down",
    "Whether the runtime is shutting down (1=yes, 0=no)",
)
PROVIDER_THREADS_RUNNING = Gauge(
    "silverware_provider_threads_running",
    "Provider threads still alive at the end of the last shutdown",
)
SHUTDOWN_DURATION_SECONDS = Histogram(
    "silverware_shutdown_duration_seconds",
    "Time from shutdown request until provider threads stopped or were abandoned",
)


class LifecycleEvent(str, Enum):
    STARTUP = "startup"
    SHUTDOWN = "shutdown"
    AFTER_SHUTDOWN = "after-shutdown"


class LifecycleCoordinatorProtocol(ABC):
    """What the executor and entry point need from a lifecycle coordinator."""

    @abstractmethod
    def initialize(self) -> None: ...

    @abstractmethod
    def register_lifecycle_notification(self, callback: Callable[[LifecycleEvent], None]) -> None: ...

    @abstractmethod
    def register_provider_thread(self, thread: threading.Thread) -> None: ...

    @abstractmethod
    def is_shutting_down(self) -> bool: ...

    @abstractmethod
    def shutdown(self) -> None: ...

    @abstractmethod
    def fire_startup(self) -> None: ...


class LifecycleCoordinator(LifecycleCoordinatorProtocol):
    """Stops the runtime when the process is told to terminate.

    Shutdown broadcasts SHUTDOWN, interrupts the shared context so every
    provider leaves its sleep or wait, and joins the registered provider
    threads within ``graceful_shutdown_timeout`` seconds. Threads still alive
    after that are abandoned (they are daemons). AFTER_SHUTDOWN is broadcast
    last, whether or not every thread stopped.
    """

    def __init__(self, context: Context, graceful_shutdown_timeout: float):
        self._context = context
        self._graceful_shutdown_timeout = graceful_shutdown_timeout
        self._shutting_down = False
        self._started = False
        self._lock = threading.Lock()
        self._notifications: list[Callable[[LifecycleEvent], None]] = []
        self._threads: list[threading.Thread] = []

    def initialize(self) -> None:
        """Install SIGTERM/SIGINT handlers. Must run on the main thread."""
        signal.signal(signal.SIGTERM, self._handle_signal)
        signal.signal(signal.SIGINT, self._handle_signal)

    def register_lifecycle_notification(self, callback: Callable[[LifecycleEvent], None]) -> None:
        with self._lock:
            self._notifications.append(callback)

    def register_provider_thread(self, thread: threading.Thread) -> None:
        with self._lock:
            self._threads.append(thread)
        logger.debug(f"Tracking provider thread {thread.name}")

    def is_shutting_down(self) -> bool:
        with self._lock:
            return self._shutting_down

    def fire_startup(self) -> None:
        with self._lock:
            if self._started:
                return
            self._started = True
        self._notify(LifecycleEvent.STARTUP)

    def _handle_signal(self, signum: int, frame: object) -> None:
        logger.info(f"Received signal {signum}, stopping providers")
        self.shutdown()

    def shutdown(self) -> None:
        with self._lock:
            if self._shutting_down:
                logger.warning("Shutdown already in progress, ignoring request")
                return
            self._shutting_down = True
            threads = list(self._threads)

        RUNTIME_SHUTTING_DOWN.set(1)
        start = time.perf_counter()

        self._notify(LifecycleEvent.SHUTDOWN)
        self._context.interrupt()
        alive = join_threads(threads, self._graceful_shutdown_timeout)

        duration = time.perf_counter() - start
        SHUTDOWN_DURATION_SECONDS.observe(duration)
        PROVIDER_THREADS_RUNNING.set(len(alive))

        if alive:
            logger.warning(
                f"Abandoning provider threads after {duration:.1f}s: {', '.join(alive)}"
            )
        else:
            logger.info(f"Stopped {len(threads)} provider threads in {duration:.1f}s")

        self._notify(LifecycleEvent.AFTER_SHUTDOWN)

    def _notify(self, event: LifecycleEvent) -> None:
        with self._lock:
            callbacks = list(self._notifications)
        for callback in callbacks:
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Error in lifecycle event notification: {e}")
