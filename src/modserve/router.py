"""Import-rewriting static router.

Serves front-end module folders (JavaScript and CSS) out of a package
root. Non-module files are sent as-is; ``.js`` and ``.css`` files go
through the import rewriter (and the optional content cache) so the
browser can resolve bare specifiers.

The router is framework-free. It decides *what* to answer with a
``Resolution``; a binding turns that into its framework's response via
the ``Responder`` protocol::

    router = ImportRewritingStaticRouter(root_folder="/srv/app", use_cache=True)
    router.init(host)  # host.mount(prefix, handler) per folder
"""

import functools
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

from modserve.cache import ContentCache
from modserve.config import DEFAULT_MOUNT, DEFAULT_SOURCES, PACKAGES, RouterConfig
from modserve.files import FileSystem, LocalFileSystem
from modserve.host import FolderHandler, Host, Responder
from modserve.rewrite import ImportRewriter, ProxyMapping, build_proxy_table

logger = logging.getLogger("modserve.router")

REWRITE_SUFFIXES: tuple[str, ...] = (".css", ".js")


@dataclass(frozen=True, slots=True)
class Resolution:
    """What the router decided to do with one request.

    ``next``  -- nothing to serve here, delegate
    ``file``  -- send ``path`` unmodified
    ``body``  -- send ``body`` with ``content_type``
    """

    kind: Literal["next", "file", "body"]
    path: Path | None = None
    body: bytes = b""
    content_type: str = ""

    def __post_init__(self) -> None:
        if self.kind == "file" and self.path is None:
            raise ValueError("A file resolution needs a path")

    def apply[R](self, responder: Responder[R]) -> R:
        """Dispatch to the matching responder capability."""
        if self.kind == "file" and self.path is not None:
            return responder.send_file(self.path)
        if self.kind == "body":
            return responder.write_body(self.body, self.content_type)
        return responder.next()


NEXT = Resolution("next")


class ImportRewritingStaticRouter:
    """Serve module folders with bare import specifiers rewritten.

    Mounts, in order: each configured extra folder, then the well-known
    front-end packages. Every mount gets its own per-folder handler; the
    content cache is shared by all of them and owned by this instance.
    """

    __slots__ = ("_fs", "_mounts", "_rewriter", "cache", "config")

    def __init__(
        self,
        config: RouterConfig | None = None,
        *,
        fs: FileSystem | None = None,
        **options: Any,
    ) -> None:
        self.config: RouterConfig = config or RouterConfig.from_options(**options)
        self.cache: ContentCache = ContentCache()
        self._fs: FileSystem = fs or LocalFileSystem()
        self._rewriter = ImportRewriter(build_proxy_table(self.config), self.config.reg_exp)
        self._mounts = self._build_mounts()

    @property
    def root_folder(self) -> Path:
        return self.config.root_folder

    @property
    def proxies(self) -> tuple[ProxyMapping, ...]:
        return self._rewriter.proxies

    @property
    def mounts(self) -> tuple[tuple[str, str], ...]:
        """``(public_prefix, folder)`` pairs in registration order."""
        return self._mounts

    def _build_mounts(self) -> tuple[tuple[str, str], ...]:
        mounts = [(entry.url, entry.folder) for entry in self.config.folders]
        for name in PACKAGES:
            prefix = self.config.mount.get(name) or DEFAULT_MOUNT[name]
            folder = self.config.sources.get(name) or DEFAULT_SOURCES[name]
            mounts.append((prefix, folder))
        return tuple(mounts)

    # -- Setup --

    def init(self, host: Host) -> None:
        """Register one per-folder handler per mount on *host*."""
        for prefix, folder in self._mounts:
            logger.info("Mounting %s -> %s", prefix, self.root_folder / folder.lstrip("/"))
            host.mount(prefix, self.handler(folder))

    def handler(self, folder: str) -> FolderHandler:
        """Per-folder handler: maps a mount-relative path to a Resolution."""
        return functools.partial(self.resolve, folder)

    # -- Per request --

    def resolve(self, folder: str, path: str) -> Resolution:
        """Decide how to answer a request for *path* under *folder*.

        *path* is relative to the mount prefix and may carry a query
        string. Missing files always resolve to ``NEXT``.
        """
        relative = path.split("?", 1)[0].lstrip("/")
        base = Path(os.path.normpath(self.root_folder / folder.lstrip("/")))
        file = Path(os.path.normpath(base / relative)) if relative else base

        if not file.is_relative_to(base):
            logger.debug("Refusing %r: outside %s", path, base)
            return NEXT

        if not self._fs.exists(file):
            return NEXT

        if self._fs.is_dir(file):
            # A directory ``foo`` is served by its ``foo/foo.js``.
            file = file / f"{file.name}.js"
            if not self._fs.exists(file):
                logger.debug("No index module in %s", file.parent)
                return NEXT
        elif not file.name.endswith(REWRITE_SUFFIXES):
            return Resolution("file", path=file)

        content_type = "text/css" if file.name.endswith(".css") else "application/javascript"
        return Resolution("body", body=self.content(file).encode("utf-8"), content_type=content_type)

    def content(self, file: Path) -> str:
        """Rewritten text of *file*, through the cache when enabled."""
        if not self.config.use_cache:
            return self._load(file)
        return self.cache.get_or_load(file, functools.partial(self._load, file))

    def _load(self, file: Path) -> str:
        logger.debug("Reading %s", file)
        text = self._fs.read_bytes(file).decode("utf-8", errors="replace")
        return self._rewriter.rewrite(text)
