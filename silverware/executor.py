"""Boots microservice providers, each on its own thread."""

import logging
import threading
from collections.abc import Sequence

from silverware.context import Context
from silverware.lifecycle import LifecycleCoordinatorProtocol
from silverware.providers import MicroserviceProvider
from silverware.utils import join_threads

logger = logging.getLogger(__name__)


class Executor:
    """Initializes providers with a shared context and runs them.

    Provider threads are handed to the lifecycle coordinator, which stops
    them on process shutdown.

    Example usage:
        executor = Executor(context, lifecycle_coordinator, [http, hystrix])
        executor.start()
    """

    def __init__(
        self,
        context: Context,
        lifecycle_coordinator: LifecycleCoordinatorProtocol,
        providers: Sequence[MicroserviceProvider],
    ):
        self.context = context
        self._lifecycle_coordinator = lifecycle_coordinator
        self._providers = list(providers)
        self._threads: list[threading.Thread] = []
        self._lock = threading.Lock()

    def start(self) -> None:
        """Initialize all providers, then start each run() on a daemon thread."""
        with self._lock:
            if self._threads:
                logger.warning("Executor already started")
                return

            for provider in self._providers:
                provider.initialize(self.context)
                logger.debug(f"Initialized provider {type(provider).__name__}")

            for provider in self._providers:
                thread = threading.Thread(
                    target=self._run_provider,
                    args=(provider,),
                    daemon=True,
                    name=type(provider).__name__,
                )
                self._threads.append(thread)
                thread.start()
                self._lifecycle_coordinator.register_provider_thread(thread)

        logger.info(f"Started {len(self._providers)} microservice providers")

    def stop(self, timeout: float = 5.0) -> bool:
        """Interrupt all providers and wait for their threads to finish.

        Returns:
            True if every provider thread ended within timeout
        """
        self.context.interrupt()

        with self._lock:
            threads = list(self._threads)

        alive = join_threads(threads, timeout)
        if alive:
            logger.warning(f"Providers still running after {timeout:.1f}s: {alive}")
            return False
        return True

    def _run_provider(self, provider: MicroserviceProvider) -> None:
        try:
            provider.run()
        except Exception:
            logger.error(
                "Microservice provider crashed",
                exc_info=True,
                extra={"provider": type(provider).__name__},
            )
