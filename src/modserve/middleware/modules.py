"""Module folder middleware for the built-in ASGI host.

Wraps an ``ImportRewritingStaticRouter``: every router mount becomes a
URL prefix this middleware answers. Paths under no mount, and anything
other than GET/HEAD, fall through to the next handler.
"""

from __future__ import annotations

import mimetypes
from pathlib import Path
from typing import Any

import anyio

from modserve.host import FolderHandler
from modserve.http.request import Request
from modserve.http.response import Response
from modserve.middleware.protocol import Next
from modserve.router import ImportRewritingStaticRouter


class ModuleFiles:
    """Middleware that serves module folders with bare imports rewritten.

    Usage::

        app.add_middleware(ModuleFiles(
            root_folder="/srv/app",
            use_cache=True,
            folders=[{"url": "/app", "folder": "modules/app"}],
        ))

    Mounts are tried in registration order. When one resolves to
    "next" (file missing), the remaining mounts whose prefix matches
    get their turn before the request reaches the app's routes.

    File-system work runs in a worker thread so the event loop is
    never blocked on disk.
    """

    __slots__ = ("_mounts", "router")

    def __init__(self, router: ImportRewritingStaticRouter | None = None, **options: Any) -> None:
        self.router = router or ImportRewritingStaticRouter(**options)
        self._mounts: list[tuple[str, FolderHandler]] = []
        self.router.init(self)

    def mount(self, prefix: str, handler: FolderHandler) -> None:
        """Host protocol: register *handler* under *prefix*."""
        # Normalize prefix: ensure leading slash, strip trailing.
        # Root prefix "/" normalizes to "".
        stripped = "/" + prefix.strip("/")
        self._mounts.append((stripped if stripped != "/" else "", handler))

    @property
    def prefixes(self) -> tuple[str, ...]:
        return tuple(prefix for prefix, _ in self._mounts)

    async def __call__(self, request: Request, next: Next) -> Response:
        """Serve a module file or fall through."""
        if request.method not in ("GET", "HEAD"):
            return await next(request)
        return await self._dispatch(request, next, 0)

    async def _dispatch(self, request: Request, next: Next, start: int) -> Response:
        path = request.path
        for index in range(start, len(self._mounts)):
            prefix, handler = self._mounts[index]
            if prefix and not path.startswith(prefix + "/") and path != prefix:
                continue
            resolution = await anyio.to_thread.run_sync(handler, path[len(prefix) :])
            return await resolution.apply(_Responder(self, request, next, index + 1))
        return await next(request)


class _Responder:
    """Responder for one request; ``next()`` resumes at the following mount."""

    __slots__ = ("_middleware", "_next", "_request", "_resume")

    def __init__(self, middleware: ModuleFiles, request: Request, next: Next, resume: int) -> None:
        self._middleware = middleware
        self._request = request
        self._next = next
        self._resume = resume

    async def send_file(self, path: Path) -> Response:
        content_type, _ = mimetypes.guess_type(path.name)
        body = await anyio.Path(path).read_bytes()
        return Response(body=body, content_type=content_type or "application/octet-stream")

    async def write_body(self, body: bytes, content_type: str) -> Response:
        return Response(body=body, content_type=content_type)

    async def next(self) -> Response:
        return await self._middleware._dispatch(self._request, self._next, self._resume)
