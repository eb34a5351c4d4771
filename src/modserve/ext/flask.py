"""Flask binding for the import-rewriting static router.

Requires ``pip install modserve[flask]``.

Mounts that share a URL prefix share one Blueprint. Its view tries the
handlers in registration order; a handler that has nothing to serve
hands over to the next one. Flask has no next-handler chain beyond
that, so after the last handler "delegate" means ``abort(404)``: the
request ends in Flask's own not-found handling, including any
``errorhandler(404)`` the app set up.

Usage::

    app = Flask(__name__)
    FlaskModules(app, root_folder="/srv/app", use_cache=True)
"""

from pathlib import Path
from typing import Any

from flask import Blueprint, Flask, Response, abort, send_file

from modserve.host import FolderHandler
from modserve.router import ImportRewritingStaticRouter


class FlaskModules:
    """Flask extension serving module folders with bare imports rewritten.

    Supports the usual two-step setup::

        modules = FlaskModules(use_cache=True)
        modules.init_app(app)

    Several instances may be registered on the same app.
    """

    __slots__ = ("_app", "_handlers", "blueprints", "router")

    def __init__(
        self,
        app: Flask | None = None,
        router: ImportRewritingStaticRouter | None = None,
        **options: Any,
    ) -> None:
        self.router = router or ImportRewritingStaticRouter(**options)
        self.blueprints: list[Blueprint] = []
        self._handlers: dict[str, list[FolderHandler]] = {}
        self._app: Flask | None = None
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        self._app = app
        self.router.init(self)

    def mount(self, prefix: str, handler: FolderHandler) -> None:
        """Host protocol: register *handler* under *prefix*.

        The first mount on a prefix creates its Blueprint; later ones
        join the handler chain behind it.
        """
        if self._app is None:
            raise RuntimeError("init_app() has not been called")

        url_prefix = "/" + prefix.strip("/")
        if url_prefix in self._handlers:
            self._handlers[url_prefix].append(handler)
            return

        handlers = self._handlers[url_prefix] = [handler]
        blueprint = Blueprint(
            f"modserve_{id(self):x}_{len(self.blueprints)}",
            __name__,
            url_prefix=url_prefix,
        )

        def serve(path: str = "") -> Any:
            return _dispatch(handlers, path, 0)

        blueprint.add_url_rule("/", "index", serve)
        blueprint.add_url_rule("/<path:path>", "file", serve)
        self._app.register_blueprint(blueprint)
        self.blueprints.append(blueprint)


def _dispatch(handlers: list[FolderHandler], path: str, start: int) -> Any:
    if start >= len(handlers):
        abort(404)
    return handlers[start](path).apply(_FlaskResponder(handlers, path, start + 1))


class _FlaskResponder:
    """Responder for one request; ``next()`` resumes at the following handler."""

    __slots__ = ("_handlers", "_path", "_resume")

    def __init__(self, handlers: list[FolderHandler], path: str, resume: int) -> None:
        self._handlers = handlers
        self._path = path
        self._resume = resume

    def send_file(self, path: Path) -> Response:
        return send_file(path)

    def write_body(self, body: bytes, content_type: str) -> Response:
        return Response(body, content_type=content_type)

    def next(self) -> Any:
        return _dispatch(self._handlers, self._path, self._resume)
