"""Built-in endpoints of the root application."""

from typing import Any, cast

from flask import Blueprint, Response, current_app, jsonify
from prometheus_client import generate_latest

from silverware.http.flask_app import App

health_bp = Blueprint("health", __name__, url_prefix="/health")
metrics_bp = Blueprint("metrics", __name__, url_prefix="/metrics")


@health_bp.route("", methods=["GET"])
def get_health() -> Any:
    """Liveness check listing the mounted servlet deployments."""
    app = cast(App, current_app)
    return jsonify(
        {
            "status": "alive",
            "deployments": app.server.deployed_contexts(),
        }
    )


@metrics_bp.route("", methods=["GET"])
def get_metrics() -> Any:
    """Return metrics in Prometheus text format.

    Returns:
        Response with metrics data in Prometheus exposition format
    """
    return Response(
        generate_latest().decode("utf-8"),
        content_type="text/plain; version=0.0.4; charset=utf-8",
    )
