"""Shared runtime context: configuration properties and provider registry."""

import logging
import threading
from collections.abc import Mapping
from typing import Any, TypeVar

from silverware.exceptions import ProviderInterruptedException

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Properties:
    """Thread-safe string-keyed property store shared by all providers."""

    def __init__(self, initial: Mapping[str, Any] | None = None):
        self._values: dict[str, Any] = dict(initial or {})
        self._lock = threading.RLock()

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._values.get(key, default)

    def put(self, key: str, value: Any) -> None:
        with self._lock:
            self._values[key] = value

    def put_if_absent(self, key: str, value: Any) -> Any:
        """Store value unless the key is already present.

        Returns:
            The value now associated with the key
        """
        with self._lock:
            if key in self._values:
                return self._values[key]
            self._values[key] = value
            return value

    def __getitem__(self, key: str) -> Any:
        with self._lock:
            return self._values[key]

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._values

    def as_dict(self) -> dict[str, Any]:
        with self._lock:
            return dict(self._values)


class Context:
    """Runtime context handed to every microservice provider.

    Holds the process-wide properties, the registry through which providers
    discover each other, and the interruption flag used for cooperative
    cancellation of provider threads.
    """

    def __init__(self, properties: Mapping[str, Any] | None = None):
        self.properties = Properties(properties)
        self._providers: list[object] = []
        self._providers_lock = threading.Lock()
        self._interrupted = threading.Event()

    def get_properties(self) -> Properties:
        return self.properties

    def register_provider(self, provider: object) -> None:
        """Make a provider discoverable by other providers."""
        with self._providers_lock:
            if provider not in self._providers:
                self._providers.append(provider)
        logger.debug(f"Registered provider: {type(provider).__name__}")

    def get_provider(self, capability: type[T]) -> T | None:
        """Find the first registered provider implementing a capability.

        Args:
            capability: Interface class the provider must implement

        Returns:
            The provider, or None when nothing implementing it is registered yet
        """
        with self._providers_lock:
            providers = list(self._providers)

        for provider in providers:
            if isinstance(provider, capability):
                return provider
        return None

    def interrupt(self) -> None:
        """Ask all provider threads to stop."""
        self._interrupted.set()

    def is_interrupted(self) -> bool:
        return self._interrupted.is_set()

    def sleep(self, seconds: float) -> None:
        """Sleep unless interrupted.

        Raises:
            ProviderInterruptedException: If interrupted before or during the wait
        """
        if self._interrupted.wait(seconds):
            raise ProviderInterruptedException("Sleep interrupted")

    def wait_interrupted(self, timeout: float | None = None) -> bool:
        """Block until interrupted; returns True if interrupted."""
        return self._interrupted.wait(timeout)
