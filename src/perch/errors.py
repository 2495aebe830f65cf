"""Perch exception hierarchy.

Shared across the resource tree, the resolvers, and the module loader so
every module raises and catches the same types.

Route misses and unresolvable paths are *not* errors: ``Resource.route``
returns ``None`` and the resolver returns a ``NOT_FOUND`` path info.
"""

from dataclasses import dataclass


class PerchError(Exception):
    """Base for all perch-specific errors."""


class ConfigurationError(PerchError):
    """Raised when resolver configuration is invalid.

    Raised at construction time, before any request is served.
    """


@dataclass(frozen=True, slots=True)
class HTTPError(PerchError):
    """An error that maps directly to an HTTP status code.

    Raised by handlers. ``Resource.handle`` catches these and turns them
    into a response with the matching status.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """404 — nothing in the tree or on disk answers the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class InvalidPathKind(PerchError):
    """A path info carries a kind the renderer cannot dispatch.

    Indicates a resolver/renderer contract mismatch. Always fatal for the
    request; never converted into a 404.
    """

    def __init__(self, kind: object, path: str) -> None:
        self.kind = kind
        self.path = path
        super().__init__(f"Invalid path info kind {kind!r} for {path!r}")


class ModuleLoadError(PerchError):
    """A dynamic module failed to load.

    The original exception is chained as ``__cause__``. A module that
    fails to load is never registered or mounted.
    """

    def __init__(self, path: str, detail: str) -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"Failed to load module {path!r}: {detail}")


class RemountCycleError(PerchError):
    """A resource was remounted under itself or one of its descendants."""

    def __init__(self, segment: str, parent_path: str) -> None:
        super().__init__(
            f"Cannot mount {segment!r} under {parent_path!r}: "
            "the target parent is the resource itself or one of its descendants."
        )
