"""Minimal microservices runtime.

Providers are plugins that share a Context: they publish configuration
properties, register capabilities and discover each other through it.

    context = Context()
    executor = Executor(context, lifecycle_coordinator, [HttpServerProvider()])
    executor.start()
"""

from silverware.context import Context, Properties
from silverware.executor import Executor
from silverware.providers import (
    HttpServerSilverService,
    HystrixSilverService,
    MicroserviceProvider,
)

__all__ = [
    "Context",
    "Executor",
    "HttpServerSilverService",
    "HystrixSilverService",
    "MicroserviceProvider",
    "Properties",
]
