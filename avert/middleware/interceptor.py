"""Avert request interceptor: cleanses query, path params and body before the handler runs."""

from __future__ import annotations

import copy
import json
from collections.abc import Iterable
from typing import Any
from urllib.parse import parse_qsl, urlencode

import structlog
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import Message, Receive

from avert.config.options import AvertOptions, is_disabled, resolve_options
from avert.middleware.pipeline import Middleware, RequestContext
from avert.runner import PARAMS, PAYLOAD, QUERY, avert

logger = structlog.get_logger()

_JSON = "json"
_FORM = "form"


def _media_type(request: Request) -> str:
    content_type = request.headers.get("content-type", "")
    return content_type.split(";", 1)[0].strip().lower()


def _to_field_group(items: Iterable[tuple[str, str]]) -> dict[str, Any]:
    """Group key/value pairs; a repeated key maps to the list of its values."""
    fields: dict[str, Any] = {}
    for key, value in items:
        if key not in fields:
            fields[key] = value
        elif isinstance(fields[key], list):
            fields[key].append(value)
        else:
            fields[key] = [fields[key], value]
    return fields


def _decode_body(body: bytes, media_type: str) -> tuple[dict[str, Any] | None, str | None]:
    """Parse a buffered body into a field group.

    Returns (fields, encoding). Bodies that are empty, not JSON objects or
    url-encoded forms, or not decodable come back as (None, None).
    """
    if not body:
        return None, None

    if media_type == "application/json" or media_type.endswith("+json"):
        try:
            data = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.debug("avert_body_not_decodable", media_type=media_type)
            return None, None
        if not isinstance(data, dict):
            return None, None
        return data, _JSON

    if media_type == "application/x-www-form-urlencoded":
        try:
            pairs = parse_qsl(body.decode("utf-8"), keep_blank_values=True)
        except UnicodeDecodeError:
            logger.debug("avert_body_not_decodable", media_type=media_type)
            return None, None
        return _to_field_group(pairs), _FORM

    return None, None


def _encode_body(fields: dict[str, Any], encoding: str) -> bytes:
    if encoding == _JSON:
        return json.dumps(fields).encode("utf-8")
    return urlencode(fields, doseq=True).encode("ascii")


def _replay_receive(body: bytes, receive: Receive) -> Receive:
    """Serve the (rewritten) body once, then defer to the original channel."""
    sent = False

    async def replay() -> Message:
        nonlocal sent
        if not sent:
            sent = True
            return {"type": "http.request", "body": body, "more_body": False}
        return await receive()

    return replay


class RequestInterceptor(Middleware):
    """Cleanse every routed request with the avert pipeline.

    - Routes configured with DISABLED (or False) pass through untouched
    - Requests with no query, no path params and no body pass through untouched
    - Otherwise options are resolved for the route, and query, params and body
      are each run through ``avert`` and written back into a new Request
    """

    def __init__(self, options: AvertOptions) -> None:
        self._options = options

    @property
    def options(self) -> AvertOptions:
        return self._options

    async def process_request(self, request: Request, context: RequestContext) -> Request | Response | None:
        if is_disabled(context.route_config):
            logger.debug("avert_skipped", reason="route_disabled", path=context.route_path)
            return None

        query = _to_field_group(request.query_params.multi_items())
        params = dict(request.path_params)
        raw_body = await request.body()
        payload, encoding = _decode_body(raw_body, _media_type(request))

        if payload is None and not params and not query:
            logger.debug("avert_skipped", reason="nothing_to_cleanse", path=context.route_path)
            return None

        options = resolve_options(self._options, context.route_config)
        context.extra["avert_options"] = options

        query_before = copy.deepcopy(query)
        payload_before = copy.deepcopy(payload)
        counts_before = {"query": len(query), "params": len(params), "payload": len(payload or {})}

        query = avert(query, options, *QUERY)
        params = avert(params, options, *PARAMS)
        payload = avert(payload, options, *PAYLOAD)

        logger.debug(
            "avert_applied",
            path=context.route_path,
            before=counts_before,
            after={"query": len(query), "params": len(params), "payload": len(payload or {})},
        )

        scope = dict(request.scope)
        scope["path_params"] = params
        if query != query_before:
            scope["query_string"] = urlencode(query, doseq=True).encode("ascii")

        body = raw_body
        if payload is not None and payload != payload_before:
            body = _encode_body(payload, encoding)
            scope["headers"] = [
                (key, value) for key, value in request.scope["headers"] if key.lower() != b"content-length"
            ]
            scope["headers"].append((b"content-length", str(len(body)).encode("ascii")))

        return Request(scope, _replay_receive(body, request.receive))
