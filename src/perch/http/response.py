"""Response value returned by ``Resource.render``.

Each transformation returns a new Response. Immutable by convention,
built incrementally by design.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from perch.errors import HTTPError


@dataclass(frozen=True, slots=True)
class Response:
    """A response built through immutable transformations."""

    body: str | bytes = ""
    status: int = 200
    content_type: str = "text/html; charset=utf-8"
    headers: tuple[tuple[str, str], ...] = ()

    # -- Chainable transformations --

    def with_status(self, status: int) -> Response:
        """Return a new Response with a different status code."""
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> Response:
        """Return a new Response with an additional header."""
        return replace(self, headers=(*self.headers, (name, value)))

    def with_content_type(self, content_type: str) -> Response:
        """Return a new Response with a different content type."""
        return replace(self, content_type=content_type)

    # -- Body helpers --

    @property
    def body_bytes(self) -> bytes:
        """Body as bytes."""
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return self.body

    @property
    def text(self) -> str:
        """Body as string."""
        if isinstance(self.body, bytes):
            return self.body.decode("utf-8")
        return self.body

    def header(self, name: str) -> str | None:
        """Return the first header named *name* (case-insensitive)."""
        lowered = name.lower()
        for key, value in self.headers:
            if key.lower() == lowered:
                return value
        return None

    # -- Factories --

    @classmethod
    def not_found(cls, detail: str = "Not Found") -> Response:
        return cls(body=detail, status=404, content_type="text/plain; charset=utf-8")

    @classmethod
    def from_error(cls, error: HTTPError) -> Response:
        """Build the response for an ``HTTPError`` raised by a handler."""
        return cls(
            body=error.detail,
            status=error.status,
            content_type="text/plain; charset=utf-8",
            headers=error.headers,
        )


def coerce_response(value: Any) -> Response:
    """Turn a handler's return value into a ``Response``.

    - ``Response``: returned as-is
    - ``str`` / ``bytes``: 200 with that body
    - ``(body, status)``: body with the given status
    - ``None``: 204 with an empty body
    """
    if isinstance(value, Response):
        return value
    if value is None:
        return Response(status=204)
    if isinstance(value, str | bytes):
        return Response(body=value)
    if isinstance(value, tuple) and len(value) == 2:
        body, status = value
        return coerce_response(body).with_status(status)
    msg = f"Cannot convert {type(value).__name__} to a Response."
    raise TypeError(msg)
