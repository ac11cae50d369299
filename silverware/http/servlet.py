"""Servlet descriptors for the HTTP server provider."""

from dataclasses import dataclass, field
from typing import Any

from flask.views import View


@dataclass(frozen=True)
class ServletDescriptor:
    """Describes one view to mount inside a servlet deployment.

    Attributes:
        name: Endpoint name, unique within the deployment
        servlet_class: Flask view class, instantiated with ``properties``
        mapping: URL rule relative to the deployment's context path
        properties: Init parameters passed to the view class
    """

    name: str
    servlet_class: type[View]
    mapping: str = "/"
    properties: dict[str, Any] = field(default_factory=dict)
