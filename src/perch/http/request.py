"""Request abstraction consumed by the resource tree.

Frozen metadata plus one mutable piece: the routing cursor. The tree
rewrites the cursor as the request descends; everything else about the
request is received data that doesn't change.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from perch.http.query import QueryParams
from perch.routing.matcher import MatchResult, PathMatcher
from perch.routing.state import RoutingState


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable request with a mutable relative-path cursor.

    Usage::

        request = Request.build("/foo/bar?q=42")
        request.path            # "/foo/bar"
        request.query["q"]      # "42"
        request.relative_path   # "/foo/bar" until routing rewrites it
    """

    method: str
    path: str
    query: QueryParams = field(default_factory=QueryParams)
    headers: tuple[tuple[str, str], ...] = ()

    # Private: routing cursor (the field reference is frozen, its state is not)
    _routing: RoutingState = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_routing", RoutingState(self.path))

    # -- Relative-path contract --

    @property
    def routing(self) -> RoutingState:
        return self._routing

    @property
    def relative_path(self) -> str:
        """The unconsumed remainder of the path."""
        return self._routing.relative_path

    def match_resource_path(self, matcher: PathMatcher) -> MatchResult:
        """Match *matcher* against the cursor, advancing it on success.

        A failed match leaves the cursor untouched.
        """
        result = matcher.match(self._routing.relative_path)
        if result.matched and result.remainder is not None:
            self._routing.advance(result.remainder)
        return result

    def rebase_relative_path(self, prefix: str, base: str = "") -> str:
        """Replace *prefix* at the start of the cursor with *base*."""
        return self._routing.rebase(prefix, base)

    def header(self, name: str, default: str | None = None) -> str | None:
        """Return the first header named *name* (case-insensitive)."""
        lowered = name.lower()
        for key, value in self.headers:
            if key.lower() == lowered:
                return value
        return default

    # -- Factories --

    @classmethod
    def build(
        cls,
        target: str,
        *,
        method: str = "GET",
        headers: dict[str, str] | None = None,
    ) -> Request:
        """Create a Request from a request target (``/path?query``)."""
        path, _, query_string = target.partition("?")
        return cls(
            method=method.upper(),
            path=path or "/",
            query=QueryParams(query_string),
            headers=tuple((headers or {}).items()),
        )

    @classmethod
    def from_asgi(cls, scope: dict[str, Any]) -> Request:
        """Create a Request from an ASGI HTTP scope."""
        raw_headers = scope.get("headers", ())
        headers = tuple(
            (name.decode("latin-1"), value.decode("latin-1")) for name, value in raw_headers
        )
        return cls(
            method=scope.get("method", "GET"),
            path=scope.get("path", "/") or "/",
            query=QueryParams(scope.get("query_string", b"")),
            headers=headers,
        )
