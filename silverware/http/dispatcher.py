"""WSGI dispatcher routing requests to servlet deployments by path prefix."""

import threading
from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from _typeshed.wsgi import StartResponse, WSGIApplication, WSGIEnvironment


class DeploymentDispatcher:
    """Sends each request to the deployment mounted at the longest matching prefix.

    Unlike werkzeug's DispatcherMiddleware the environ is passed through
    unchanged, so a deployment's URL rules carry their full path and a
    request for the bare mount path (``/hystrix.stream``) needs no trailing
    slash redirect. Deployments can be added while requests are served.
    """

    def __init__(self, root_app: "WSGIApplication"):
        self.root_app = root_app
        self._mounts: dict[str, "WSGIApplication"] = {}
        self._lock = threading.Lock()

    def mount(self, prefix: str, app: "WSGIApplication") -> bool:
        """Mount app at prefix; returns False if the prefix is taken."""
        with self._lock:
            if prefix in self._mounts:
                return False
            self._mounts[prefix] = app
            return True

    def prefixes(self) -> list[str]:
        with self._lock:
            return sorted(self._mounts)

    def resolve(self, path: str) -> "WSGIApplication":
        with self._lock:
            mounts = sorted(self._mounts.items(), key=lambda item: len(item[0]), reverse=True)

        for prefix, app in mounts:
            if path == prefix or path.startswith(prefix + "/"):
                return app
        return self.root_app

    def __call__(
        self, environ: "WSGIEnvironment", start_response: "StartResponse"
    ) -> Iterable[bytes]:
        app = self.resolve(environ.get("PATH_INFO", "") or "/")
        return app(environ, start_response)
