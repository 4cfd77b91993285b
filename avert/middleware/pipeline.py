"""Ordered post-routing request hook chain."""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

import structlog
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger()


@dataclass
class RequestContext:
    """Per-request context passed through the hook pipeline."""

    request_id: str = ""
    route_path: str = ""
    # The matched route's avert block: AvertOptions, DISABLED/False, or None
    route_config: Any = None
    extra: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.request_id:
            self.request_id = uuid4().hex[:8]


class Middleware(abc.ABC):
    """Base class for hooks in the pipeline."""

    @property
    def name(self) -> str:
        return self.__class__.__name__

    @abc.abstractmethod
    async def process_request(self, request: Request, context: RequestContext) -> Request | Response | None:
        """Process a routed request before its handler runs.

        Return None to continue with the same request, a Request to continue
        with that request instead, or a Response to short-circuit.
        """
        ...


class MiddlewarePipeline:
    """Ordered list of hooks, run once per request after routing and auth."""

    def __init__(self) -> None:
        self._middleware: list[Middleware] = []

    def add(self, middleware: Middleware) -> None:
        """Add a hook to the end of the pipeline."""
        self._middleware.append(middleware)
        logger.info("hook_registered", name=middleware.name, position=len(self._middleware))

    def get_middleware(self, cls: type[Middleware]) -> Middleware | None:
        """Return the first registered hook of the given type."""
        for mw in self._middleware:
            if isinstance(mw, cls):
                return mw
        return None

    async def process_request(
        self, request: Request, context: RequestContext
    ) -> tuple[Request, Response | None]:
        """Run request through all hooks in order.

        Returns the (possibly replaced) request and a Response if any hook
        short-circuits. A hook that raises is logged and answered with a 500.
        """
        for mw in self._middleware:
            try:
                result = await mw.process_request(request, context)
            except Exception:
                logger.exception("hook_request_error", middleware=mw.name, request_id=context.request_id)
                return request, Response(content="Internal server error", status_code=500)
            if isinstance(result, Response):
                logger.info("hook_short_circuit", middleware=mw.name, request_id=context.request_id)
                return request, result
            if isinstance(result, Request):
                request = result
        return request, None
