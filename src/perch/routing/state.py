"""Relative-path tracking for a request travelling down the resource tree.

Every successful descent rewrites the cursor to the unconsumed remainder
of the path. The rewrites are recorded so the original path can always
be rebuilt from them.
"""

from __future__ import annotations


class RoutingState:
    """Mutable relative-path cursor for one request.

    Usage::

        state = RoutingState("/foo/bar/extra")
        state.advance("/bar/extra")   # matched "/foo"
        state.advance("/extra")       # matched "/bar"
        state.relative_path           # "/extra"
        state.reconstruct()           # "/foo/bar/extra"
    """

    __slots__ = ("_history", "_original_path", "_relative_path")

    def __init__(self, original_path: str) -> None:
        self._original_path = original_path
        self._relative_path = original_path
        self._history: list[tuple[str, str]] = []

    def __repr__(self) -> str:
        return f"RoutingState({self._original_path!r}, relative_path={self._relative_path!r})"

    @property
    def original_path(self) -> str:
        return self._original_path

    @property
    def relative_path(self) -> str:
        return self._relative_path

    @property
    def history(self) -> tuple[tuple[str, str], ...]:
        """``(consumed, new_base)`` pairs, oldest first."""
        return tuple(self._history)

    def advance(self, remainder: str) -> str:
        """Move the cursor to *remainder* after a segment was matched."""
        remainder = remainder or "/"
        current = self._relative_path
        if remainder == "/":
            consumed = current if current != "/" else ""
        else:
            consumed = current[: len(current) - len(remainder)]
        self._history.append((consumed, ""))
        self._relative_path = remainder
        return remainder

    def rebase(self, prefix: str, base: str = "") -> str:
        """Replace a known leading *prefix* of the cursor with *base*.

        Used when a resource is grafted into the tree at request time and
        routing must continue as if it had been addressed directly::

            state = RoutingState("/api/users/42")
            state.rebase("/api")   # "/users/42"
            state.rebase("/users", "/people")   # "/people/42"

        A cursor that does not start with *prefix* is left unchanged.
        """
        prefix = prefix.rstrip("/")
        current = self._relative_path
        if prefix and not (current == prefix or current.startswith(prefix + "/")):
            return current
        rest = current[len(prefix) :]
        rebased = (base.rstrip("/") + rest if base else rest) or "/"
        self._history.append((prefix, base))
        self._relative_path = rebased
        return rebased

    def reconstruct(self) -> str:
        """Replay the recorded rewrites backwards to rebuild the original path."""
        path = self._relative_path
        for consumed, base in reversed(self._history):
            if base:
                path = path[len(base.rstrip("/")) :] or "/"
            if path == "/":
                path = consumed or "/"
            else:
                path = consumed + path
        return path
