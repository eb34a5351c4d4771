"""Built-in ASGI host application.

Mutable during setup (route registration, middleware). Frozen when
``__call__()`` is first invoked.
"""

import threading
from collections.abc import Callable
from typing import Any

from modserve._internal.asgi import Receive, Scope, Send
from modserve.middleware.protocol import Middleware
from modserve.server.handler import Route, handle_request


class App:
    """A small ASGI application: exact-path routes behind a middleware chain.

    Usage::

        app = App()
        app.add_middleware(ModuleFiles(root_folder="/srv/app"))

        @app.route("/")
        def index():
            return "home"

    Thread safety:
        Setup is single-threaded. The freeze transition uses a Lock +
        double-check so exactly one worker compiles the app, even when
        several call ``__call__()`` concurrently on first request.
    """

    __slots__ = (
        "_freeze_lock",
        "_frozen",
        "_middleware",
        "_middleware_list",
        "_pending_routes",
        "_routes",
    )

    def __init__(self) -> None:
        self._pending_routes: dict[str, Route] = {}
        self._middleware_list: list[Middleware] = []
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()
        self._routes: dict[str, Route] = {}
        self._middleware: tuple[Middleware, ...] = ()

    # -- Setup --

    def route(
        self,
        path: str,
        *,
        methods: list[str] | None = None,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Register a handler for an exact *path*.

        The handler may take no arguments or the ``Request``, may be sync
        or async, and may return a Response, ``str``/``bytes`` or a
        ``(body, status)`` tuple.
        """

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self._check_not_frozen()
            allowed = frozenset(m.upper() for m in (methods or ["GET"]))
            self._pending_routes[path] = (allowed, func)
            return func

        return decorator

    def add_middleware(self, middleware: Middleware) -> None:
        """Add a middleware to the pipeline. First added runs outermost."""
        self._check_not_frozen()
        self._middleware_list.append(middleware)

    # -- ASGI --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        self._ensure_frozen()
        await handle_request(
            scope,
            receive,
            send,
            routes=self._routes,
            middleware=self._middleware,
        )

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                self._ensure_frozen()
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _ensure_frozen(self) -> None:
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._routes = dict(self._pending_routes)
            self._middleware = tuple(self._middleware_list)
            self._frozen = True

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = "Cannot modify the app after it has started serving requests."
            raise RuntimeError(msg)
