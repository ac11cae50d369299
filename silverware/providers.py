"""Provider interfaces implemented by runtime plugins."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from silverware.context import Context
    from silverware.http.servlet import ServletDescriptor


class MicroserviceProvider(ABC):
    """A runtime plugin.

    The executor calls initialize() on every provider before any run() starts,
    then calls run() once on a dedicated thread.
    """

    @abstractmethod
    def initialize(self, context: "Context") -> None:
        """Store the context and insert default properties."""
        pass

    @abstractmethod
    def get_context(self) -> "Context":
        """Return the context given to initialize()."""
        pass

    @abstractmethod
    def run(self) -> None:
        """Provider main loop."""
        pass


class HttpServerSilverService(ABC):
    """Capability of a provider that serves HTTP and hosts servlets."""

    HTTP_SERVER_ADDRESS = "http.server.address"
    HTTP_SERVER_PORT = "http.server.port"

    @abstractmethod
    def deploy_servlet(
        self,
        context_path: str,
        deployment_name: str,
        servlets: list["ServletDescriptor"],
    ) -> None:
        """Mount servlets under a context path."""
        pass


class HystrixSilverService:
    """Capability marker of the Hystrix metrics provider."""

    HYSTRIX_METRICS_ENABLED = "hystrix.metrics.enabled"
    HYSTRIX_METRICS_PATH = "hystrix.metrics.path"
