"""Custom Flask application class with a server reference."""

from typing import TYPE_CHECKING

from flask import Flask

if TYPE_CHECKING:
    from silverware.http.server import HttpServerProvider


class App(Flask):
    """Root Flask application with typed access to its HTTP server provider."""

    server: "HttpServerProvider"


def create_root_app(server: "HttpServerProvider") -> App:
    """Create the root application serving /health and /metrics."""
    app = App(__name__)
    app.server = server

    from silverware.http.routes import health_bp, metrics_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(metrics_bp)

    return app
