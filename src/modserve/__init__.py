"""Modserve: serve front-end module folders with bare imports rewritten.

Browsers cannot follow ``import {html} from 'lit-html'``. Modserve serves
a package's dependency folders and rewrites such specifiers into absolute
URL paths under configurable mount points.

Built-in ASGI host::

    from modserve import App, ModuleFiles

    app = App()
    app.add_middleware(ModuleFiles(root_folder="/srv/app", use_cache=True))

Flask (``pip install modserve[flask]``)::

    from modserve.ext.flask import FlaskModules
    FlaskModules(flask_app, root_folder="/srv/app")
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "ContentCache",
    "FolderMount",
    "HTTPError",
    "ImportRewriter",
    "ImportRewritingStaticRouter",
    "ModserveError",
    "ModuleFiles",
    "NotFound",
    "ProxyMapping",
    "Request",
    "Resolution",
    "Response",
    "RouterConfig",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import modserve`` fast and free of the ASGI host when only
    the router is used.
    """
    if name == "App":
        from modserve.app import App

        return App

    if name in ("RouterConfig", "FolderMount"):
        from modserve import config as _config

        return getattr(_config, name)

    if name in ("ImportRewritingStaticRouter", "Resolution"):
        from modserve import router as _router

        return getattr(_router, name)

    if name in ("ImportRewriter", "ProxyMapping"):
        from modserve import rewrite as _rewrite

        return getattr(_rewrite, name)

    if name == "ContentCache":
        from modserve.cache import ContentCache

        return ContentCache

    if name == "ModuleFiles":
        from modserve.middleware.modules import ModuleFiles

        return ModuleFiles

    if name == "Request":
        from modserve.http.request import Request

        return Request

    if name == "Response":
        from modserve.http.response import Response

        return Response

    if name in ("ModserveError", "HTTPError", "NotFound"):
        from modserve import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
