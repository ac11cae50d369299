"""HTTP server provider backed by Waitress."""

import logging
import threading
from typing import Any

from flask import Flask
from waitress import create_server

from silverware.context import Context
from silverware.exceptions import ServletDeploymentError
from silverware.http.dispatcher import DeploymentDispatcher
from silverware.http.flask_app import create_root_app
from silverware.http.servlet import ServletDescriptor
from silverware.providers import HttpServerSilverService, MicroserviceProvider

logger = logging.getLogger(__name__)

DEFAULT_ADDRESS = "127.0.0.1"
DEFAULT_PORT = "8080"


class HttpServerProvider(MicroserviceProvider, HttpServerSilverService):
    """Serves a root Flask app plus any servlets other providers deploy.

    Each deployment is its own Flask app mounted under a context path, so
    servlets can be added while the server is already taking requests.
    The provider registers itself in the context only once its socket is
    bound; until then collaborators polling for HttpServerSilverService see
    nothing.
    """

    def __init__(self, threads: int = 4):
        self._threads = threads
        self._context: Context | None = None
        self._server: Any = None
        self.app = create_root_app(self)
        self.wsgi_app = DeploymentDispatcher(self.app)

    def initialize(self, context: Context) -> None:
        self._context = context

        context.properties.put_if_absent(self.HTTP_SERVER_ADDRESS, DEFAULT_ADDRESS)
        context.properties.put_if_absent(self.HTTP_SERVER_PORT, DEFAULT_PORT)

    def get_context(self) -> Context:
        if self._context is None:
            raise RuntimeError("HttpServerProvider used before initialize()")
        return self._context

    def run(self) -> None:
        context = self.get_context()
        host = str(context.properties.get(self.HTTP_SERVER_ADDRESS))
        port = int(context.properties.get(self.HTTP_SERVER_PORT))

        try:
            self._server = create_server(
                self.wsgi_app, host=host, port=port, threads=self._threads
            )
        except OSError:
            logger.error(f"Unable to bind HTTP server to {host}:{port}", exc_info=True)
            return

        bound_port = _bound_port(self._server, port)
        context.properties.put(self.HTTP_SERVER_PORT, str(bound_port))

        thread = threading.Thread(target=self._server.run, daemon=True, name="waitress")
        thread.start()
        logger.info(f"HTTP server listening on http://{host}:{bound_port}/ with {self._threads} threads")

        context.register_provider(self)

        context.wait_interrupted()
        logger.info("Stopping HTTP server")
        self._server.close()

    def deploy_servlet(
        self,
        context_path: str,
        deployment_name: str,
        servlets: list[ServletDescriptor],
    ) -> None:
        """Mount servlets under /context_path.

        Raises:
            ServletDeploymentError: If the path is empty or already in use
        """
        mount = "/" + context_path.strip("/")
        if mount == "/":
            raise ServletDeploymentError(context_path, "the context path is empty")

        deployment = Flask(deployment_name)
        for descriptor in servlets:
            deployment.add_url_rule(
                _servlet_rule(mount, descriptor.mapping),
                endpoint=descriptor.name,
                view_func=descriptor.servlet_class.as_view(
                    descriptor.name, dict(descriptor.properties)
                ),
            )

        if not self.wsgi_app.mount(mount, deployment):
            raise ServletDeploymentError(context_path, "the path is already mounted")

        logger.info(
            f"Deployed {deployment_name} at {mount}",
            extra={"servlets": [descriptor.name for descriptor in servlets]},
        )

    def deployed_contexts(self) -> list[str]:
        return self.wsgi_app.prefixes()


def _servlet_rule(mount: str, mapping: str) -> str:
    """URL rule of a servlet mapping inside a mount ("/" maps to the mount itself)."""
    suffix = mapping.strip("/")
    return f"{mount}/{suffix}" if suffix else mount


def _bound_port(server: Any, requested: int) -> int:
    """Port the server actually listens on (differs from requested for port 0)."""
    effective_port = getattr(server, "effective_port", None)
    if effective_port is not None:
        return int(effective_port)

    effective_listen = getattr(server, "effective_listen", None)
    if effective_listen:
        return int(effective_listen[0][1])

    return requested
