"""Modserve exception hierarchy.

Shared by the host pipeline and the bindings so every module raises
and catches the same types.
"""

from dataclasses import dataclass


class ModserveError(Exception):
    """Base for all modserve-specific errors."""


@dataclass(frozen=True, slots=True)
class HTTPError(ModserveError):
    """An error that maps directly to an HTTP status code.

    Raised by the host app when no route matches, or by handlers. The
    ASGI handler catches these and turns them into plain responses.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404: nothing in the pipeline produced a response for the path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)
