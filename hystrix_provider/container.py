"""Runtime dependency injection container."""

from dependency_injector import containers, providers

from silverware.context import Context
from silverware.executor import Executor
from silverware.http.server import HttpServerProvider
from silverware.lifecycle import LifecycleCoordinator

from hystrix_provider.config import Settings
from hystrix_provider.provider import HystrixMicroserviceProvider


class ProviderContainer(containers.DeclarativeContainer):
    """Wires the runtime context, the microservice providers and the executor.

    Usage:
        container = ProviderContainer()
        container.config.override(Settings.load())
        container.executor().start()
    """

    # Configuration - must be overridden
    config = providers.Dependency(instance_of=Settings)

    context = providers.Singleton(
        Context,
        properties=config.provided.to_properties.call(),
    )

    lifecycle_coordinator = providers.Singleton(
        LifecycleCoordinator,
        context=context,
        graceful_shutdown_timeout=config.provided.graceful_shutdown_timeout,
    )

    http_server_provider = providers.Singleton(
        HttpServerProvider,
        threads=config.provided.waitress_threads,
    )

    hystrix_provider = providers.Singleton(HystrixMicroserviceProvider)

    executor = providers.Singleton(
        Executor,
        context=context,
        lifecycle_coordinator=lifecycle_coordinator,
        providers=providers.List(http_server_provider, hystrix_provider),
    )
