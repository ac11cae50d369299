"""HTTP server provider and servlet descriptors."""

from silverware.http.server import HttpServerProvider
from silverware.http.servlet import ServletDescriptor

__all__ = [
    "HttpServerProvider",
    "ServletDescriptor",
]
