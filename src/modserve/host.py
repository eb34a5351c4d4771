"""Capability interface a host web framework must provide.

The router never imports a framework. A binding adapts its framework
to these two protocols:

    Host       -- registers a per-folder handler under a URL prefix
    Responder  -- per-request: send a file, write a body, or delegate

``R`` is whatever the framework's handler returns (a response object,
an awaitable, ...). The router passes it through untouched.
"""

from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from modserve.router import Resolution

# A per-folder handler takes the path relative to its mount prefix
# (query string allowed) and returns the router's decision.
type FolderHandler = Callable[[str], Resolution]


class Responder[R](Protocol):
    """Per-request response capabilities."""

    def send_file(self, path: Path) -> R:
        """Send *path* unmodified as the full response."""
        ...

    def write_body(self, body: bytes, content_type: str) -> R:
        """Send *body* with the given Content-Type and complete the response."""
        ...

    def next(self) -> R:
        """Hand the request to the next handler in the host's chain."""
        ...


class Host(Protocol):
    """Mount point registration."""

    def mount(self, prefix: str, handler: FolderHandler) -> None: ...
