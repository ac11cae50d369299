"""Server-Sent Events stream of circuit-breaker metrics.

Compatible with the Hystrix dashboard: every ``delay`` milliseconds each
registered command is written as a ``data: {json}`` event, or a ``ping:``
comment when there are no commands yet.
"""

import json
import logging
import threading
from collections.abc import Iterator
from typing import Any

from flask import Response, request
from flask.views import MethodView

from hystrix_provider.commands import CommandRegistry, command_registry

logger = logging.getLogger(__name__)

DEFAULT_DELAY_MS = 500
DEFAULT_MAX_CONCURRENT_CONNECTIONS = 5

STREAM_HEADERS = {
    "Cache-Control": "no-cache, no-store, max-age=0, must-revalidate",
    "Pragma": "no-cache",
}


class HystrixMetricsStreamServlet(MethodView):
    """Streams command metrics to dashboard clients.

    Connection accounting and the shutdown flag are shared by every instance,
    since the view class is instantiated once per request.
    """

    _connections = 0
    _connections_lock = threading.Lock()
    _shutdown = threading.Event()

    def __init__(
        self,
        properties: dict[str, Any] | None = None,
        registry: CommandRegistry | None = None,
    ):
        properties = properties or {}
        self.max_concurrent_connections = int(
            properties.get("max_concurrent_connections", DEFAULT_MAX_CONCURRENT_CONNECTIONS)
        )
        self.registry = registry if registry is not None else command_registry

    @classmethod
    def shutdown(cls) -> None:
        """Stop all open streams and refuse new ones."""
        cls._shutdown.set()
        logger.info("Hystrix metrics streams shutting down")

    @classmethod
    def reset(cls) -> None:
        """Accept streams again after shutdown() and forget connection counts.

        Called before each deployment so a servlet deployed after an earlier
        shutdown in the same process serves clients.
        """
        cls._shutdown.clear()
        with cls._connections_lock:
            cls._connections = 0

    @classmethod
    def is_shut_down(cls) -> bool:
        return cls._shutdown.is_set()

    @classmethod
    def active_connections(cls) -> int:
        with cls._connections_lock:
            return cls._connections

    def get(self) -> Response:
        if self.is_shut_down():
            return Response("Service has been shut down.", status=503, mimetype="text/plain")

        if not self._acquire_connection():
            logger.warning(
                f"Rejecting metrics stream client, {self.max_concurrent_connections} already connected"
            )
            return Response(
                f"MaxConcurrentConnections reached: {self.max_concurrent_connections}",
                status=503,
                mimetype="text/plain",
            )

        delay = _parse_delay(request.args.get("delay"))
        logger.debug(f"Metrics stream client connected (delay={delay}ms)")

        response = Response(
            self.event_stream(delay / 1000.0),
            status=200,
            headers=STREAM_HEADERS,
            content_type="text/event-stream;charset=UTF-8",
        )
        response.call_on_close(self._release_connection)
        return response

    def event_stream(self, delay_seconds: float) -> Iterator[str]:
        while not self._shutdown.is_set():
            snapshots = self.registry.snapshots()
            if snapshots:
                for snapshot in snapshots:
                    yield f"data: {json.dumps(snapshot)}\n\n"
            else:
                yield "ping: \n\n"

            if self._shutdown.wait(delay_seconds):
                break

    def _acquire_connection(self) -> bool:
        cls = type(self)
        with cls._connections_lock:
            if cls._connections >= self.max_concurrent_connections:
                return False
            cls._connections += 1
            return True

    @classmethod
    def _release_connection(cls) -> None:
        with cls._connections_lock:
            cls._connections = max(0, cls._connections - 1)
        logger.debug("Metrics stream client disconnected")


def _parse_delay(raw: str | None) -> int:
    if raw is None:
        return DEFAULT_DELAY_MS
    try:
        delay = int(raw)
    except ValueError:
        return DEFAULT_DELAY_MS
    return delay if delay > 0 else DEFAULT_DELAY_MS
