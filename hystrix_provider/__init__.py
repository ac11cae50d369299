"""Hystrix metrics stream provider.

Circuit-breaker commands record their outcomes in ``command_registry``; when
``hystrix.metrics.enabled`` is "true" the provider publishes them as a
dashboard-compatible event stream on the runtime's HTTP server.
"""

from hystrix_provider.commands import (
    CircuitBreakerCommand,
    CircuitState,
    CommandRegistry,
    command,
    command_registry,
)
from hystrix_provider.exceptions import CircuitOpenError, MetricsStreamStartupError
from hystrix_provider.provider import HystrixMicroserviceProvider
from hystrix_provider.stream import HystrixMetricsStreamServlet

__all__ = [
    "CircuitBreakerCommand",
    "CircuitOpenError",
    "CircuitState",
    "CommandRegistry",
    "HystrixMetricsStreamServlet",
    "HystrixMicroserviceProvider",
    "MetricsStreamStartupError",
    "command",
    "command_registry",
]
