"""Pytest fixtures shared by the runtime and provider tests."""

from collections.abc import Generator

import pytest

from silverware.context import Context
from silverware.providers import HttpServerSilverService

from hystrix_provider.commands import command_registry
from hystrix_provider.stream import HystrixMetricsStreamServlet
from tests.testing_utils import FakeHttpServer, StubLifecycleCoordinator


@pytest.fixture(autouse=True)
def reset_hystrix_state() -> Generator[None, None, None]:
    """Reset process-wide command registry and stream state for isolation."""
    command_registry.clear()
    HystrixMetricsStreamServlet.reset()
    yield
    command_registry.clear()
    HystrixMetricsStreamServlet.reset()


@pytest.fixture
def context() -> Context:
    """Context with the address/port an HTTP server provider would publish."""
    return Context(
        {
            HttpServerSilverService.HTTP_SERVER_ADDRESS: "127.0.0.1",
            HttpServerSilverService.HTTP_SERVER_PORT: "8080",
        }
    )


@pytest.fixture
def fake_http() -> FakeHttpServer:
    return FakeHttpServer()


@pytest.fixture
def lifecycle_coordinator() -> StubLifecycleCoordinator:
    return StubLifecycleCoordinator()
