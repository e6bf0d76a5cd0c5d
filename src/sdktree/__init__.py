from importlib.metadata import version

from .client import create_client
from .errors import (
    MiddlewareError,
    MissingParameterError,
    SdkTreeError,
    TemplateSyntaxError,
    TransportError,
)
from .middleware import Middleware
from .node import RouteNode
from .request import RequestFactory
from .template import PathTemplate, compile_template, join_paths, resolve
from .transport import HTTPXTransport, Transport
from .types import RequestDescriptor, ResponseEnvelope, SentRequest, Verb

__all__ = [
    "HTTPXTransport",
    "Middleware",
    "MiddlewareError",
    "MissingParameterError",
    "PathTemplate",
    "RequestDescriptor",
    "RequestFactory",
    "ResponseEnvelope",
    "RouteNode",
    "SdkTreeError",
    "SentRequest",
    "TemplateSyntaxError",
    "Transport",
    "TransportError",
    "Verb",
    "__version__",
    "compile_template",
    "create_client",
    "join_paths",
    "resolve",
]

__version__ = version("sdktree")
