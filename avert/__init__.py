"""Request sanitization for FastAPI: cleanses query, path params and body before handlers run."""

__version__ = "1.0.0"

from avert.config.options import DISABLED, AvertOptions, SpecialCharPolicy, load_options, resolve_options
from avert.middleware.interceptor import RequestInterceptor
from avert.routing import AvertRoute, register, route_options
from avert.runner import PARAMS, PAYLOAD, QUERY, avert

__all__ = [
    "DISABLED",
    "PARAMS",
    "PAYLOAD",
    "QUERY",
    "AvertOptions",
    "AvertRoute",
    "RequestInterceptor",
    "SpecialCharPolicy",
    "avert",
    "load_options",
    "register",
    "resolve_options",
    "route_options",
]
