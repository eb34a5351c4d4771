"""ASGI handler: translates ASGI scope/messages to modserve types.

Builds a Request from the scope, runs it through the middleware chain
around route dispatch, maps errors to responses and sends the result.
"""

import inspect
import logging
from collections.abc import Callable, Mapping
from typing import Any

from modserve._internal.asgi import Receive, Scope, Send
from modserve.errors import HTTPError, NotFound
from modserve.http.request import Request
from modserve.http.response import Response
from modserve.middleware.protocol import Next
from modserve.server.sender import send_response

logger = logging.getLogger("modserve.server")

type Route = tuple[frozenset[str], Callable[..., Any]]


async def handle_request(
    scope: Scope,
    receive: Receive,  # noqa: ARG001
    send: Send,
    *,
    routes: Mapping[str, Route],
    middleware: tuple[Callable[..., Any], ...],
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope)

    async def dispatch(req: Request) -> Response:
        route = routes.get(req.path)
        if route is None:
            raise NotFound
        methods, handler = route
        if req.method not in methods and not (req.method == "HEAD" and "GET" in methods):
            allow = ", ".join(sorted(methods))
            raise HTTPError(status=405, detail="Method Not Allowed", headers=(("Allow", allow),))
        result = handler(req) if _wants_request(handler) else handler()
        if inspect.isawaitable(result):
            result = await result
        return to_response(result)

    handler: Next = dispatch
    for mw in reversed(middleware):

        async def make_next(req: Request, _mw: Any = mw, _next: Next = handler) -> Response:
            return await _mw(req, _next)

        handler = make_next

    try:
        response = await handler(request)
    except HTTPError as exc:
        logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)
        response = Response(body=exc.detail or f"Error {exc.status}", status=exc.status)
        for name, value in exc.headers:
            response = response.with_header(name, value)
    except Exception:
        logger.exception("500 %s %s", request.method, request.path)
        response = Response(body="Internal Server Error", status=500)

    await send_response(response, send, method=request.method)


def to_response(result: Any) -> Response:
    """Coerce a route handler's return value into a Response.

    Accepts a Response, a ``str``/``bytes`` body, or a ``(body, status)``
    tuple.
    """
    if isinstance(result, Response):
        return result
    if isinstance(result, tuple):
        body, status = result
        return Response(body=body, status=status)
    if isinstance(result, str | bytes):
        return Response(body=result)
    msg = f"Cannot convert {type(result).__name__} to a Response"
    raise TypeError(msg)


def _wants_request(handler: Callable[..., Any]) -> bool:
    return bool(inspect.signature(handler).parameters)
