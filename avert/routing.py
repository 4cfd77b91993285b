"""FastAPI binding: route class firing the hook pipeline, per-route options, registration."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

import structlog
from fastapi import FastAPI
from fastapi.routing import APIRoute
from starlette.requests import Request
from starlette.responses import Response

from avert.config.loader import AvertSettings, get_settings
from avert.config.options import DISABLED, AvertOptions, RouteConfig, is_disabled, load_options
from avert.middleware.interceptor import RequestInterceptor
from avert.middleware.pipeline import MiddlewarePipeline, RequestContext

logger = structlog.get_logger()

# Endpoint attribute holding the route's avert configuration
ROUTE_OPTIONS_ATTR = "__avert_options__"


def _explicit_options(config: AvertOptions | Mapping[str, Any] | None) -> dict[str, Any]:
    if config is None:
        return {}
    if isinstance(config, AvertOptions):
        return {name: getattr(config, name) for name in config.model_fields_set}
    return dict(config)


def route_options(config: RouteConfig = None, /, **overrides: Any) -> Callable:
    """Attach avert configuration to an endpoint.

    ``@route_options(DISABLED)`` turns avert off for the route;
    ``@route_options(remove_whitespace=True)`` (or a mapping using the camelCase
    names) overrides the global options for it. Overrides are validated here,
    so a bad key fails at import time.
    """
    if is_disabled(config):
        if overrides:
            raise TypeError("route_options(DISABLED) takes no overrides")
        value: AvertOptions | str = DISABLED
    elif isinstance(config, (str, bool)):
        raise ValueError(f"Unknown route configuration {config!r}")
    else:
        value = load_options({**_explicit_options(config), **overrides})

    def decorator(endpoint: Callable) -> Callable:
        setattr(endpoint, ROUTE_OPTIONS_ATTR, value)
        return endpoint

    return decorator


class AvertRoute(APIRoute):
    """APIRoute that runs the app's post-auth hooks before the endpoint.

    Hooks see the routed request (path params resolved, auth middleware done)
    and may replace it or short-circuit with a response.
    """

    def get_route_handler(self) -> Callable:
        original_route_handler = super().get_route_handler()
        endpoint = self.endpoint
        route_path = self.path

        async def avert_route_handler(request: Request) -> Response:
            hooks: MiddlewarePipeline | None = getattr(request.app.state, "post_auth_hooks", None)
            if hooks is not None:
                context = RequestContext(
                    route_path=route_path,
                    route_config=getattr(endpoint, ROUTE_OPTIONS_ATTR, None),
                )
                with structlog.contextvars.bound_contextvars(
                    request_id=context.request_id, route=route_path
                ):
                    request, response = await hooks.process_request(request, context)
                if response is not None:
                    return response
            return await original_route_handler(request)

        return avert_route_handler


def register(
    app: FastAPI,
    options: AvertOptions | Mapping[str, Any] | None = None,
    *,
    settings: AvertSettings | None = None,
) -> RequestInterceptor:
    """Install avert on a FastAPI application.

    Options are validated before anything is installed; an unknown key or a
    wrong value type raises ``pydantic.ValidationError``. When ``options`` is
    None the global options come from the configured options file.

    Routes declared after this call use ``AvertRoute``; routers built
    separately need ``APIRouter(route_class=AvertRoute)``.
    """
    if options is None:
        options = (settings or get_settings()).global_options()
    validated = load_options(options)

    hooks: MiddlewarePipeline | None = getattr(app.state, "post_auth_hooks", None)
    if hooks is None:
        hooks = MiddlewarePipeline()
        app.state.post_auth_hooks = hooks

    interceptor = RequestInterceptor(validated)
    hooks.add(interceptor)
    app.router.route_class = AvertRoute

    for route in app.routes:
        if isinstance(route, APIRoute) and not isinstance(route, AvertRoute):
            logger.warning("avert_route_not_intercepted", path=route.path)

    logger.info("avert_registered", options=validated.flags())
    return interceptor
