"""Resource tree nodes and segment routing.

A ``Resource`` owns a path segment, an insertion-ordered map of children
keyed by segment, and a render contract. Routing descends the tree:

1. The resource's own segment must prefix the request's relative path
   (the root ``/`` always matches). No match: ``None``.
2. Nothing left after the segment: this resource, cursor ``/``.
3. Otherwise look for a child: first by the whole remainder (children
   mounted several levels deep), then by the remainder's first segment.
4. No child: this resource handles the remainder itself.
"""

from __future__ import annotations

import logging
import posixpath
import re
from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING, Any, TypeAlias

from perch._internal.invoke import invoke
from perch.errors import ConfigurationError, HTTPError, RemountCycleError
from perch.http.response import Response, coerce_response
from perch.routing.matcher import MatchKind, PathMatcher, normalize_segment

if TYPE_CHECKING:
    from perch.http.request import Request

logger = logging.getLogger("perch.routing")

_FIRST_SEGMENT_RE = re.compile(r"^(/[^/]+)/")

Handler: TypeAlias = "Callable[[Request], Any]"


class Resource:
    """A node in the resource tree.

    Usage::

        root = Resource()
        docs = Resource("/docs", parent=root)
        api = Resource("/api", parent=root, handler=lambda request: "ok")

        request = Request.build("/docs/intro")
        root.route(request)      # docs
        request.relative_path    # "/intro"
    """

    __slots__ = ("_absolute_path", "_handler", "_matcher", "_parent", "children")

    def __init__(
        self,
        segment: str = "/",
        parent: Resource | None = None,
        *,
        handler: Handler | None = None,
    ) -> None:
        self._matcher = PathMatcher(segment)
        self._parent = parent
        self._handler = handler
        self._absolute_path: str | None = None
        self.children: dict[str, Resource] = {}

        if parent is not None:
            parent.add_child(self)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.absolute_path!r}>"

    # -- Identity --

    @property
    def segment(self) -> str:
        return self._matcher.segment

    @property
    def parent(self) -> Resource | None:
        return self._parent

    @property
    def absolute_path(self) -> str:
        """Concatenation of the ancestor segments, memoized until remount."""
        if self._absolute_path is None:
            base = self._parent.absolute_path if self._parent is not None else "/"
            self._absolute_path = posixpath.join(base, self.segment.lstrip("/")).rstrip("/") or "/"
        return self._absolute_path

    def url_for(self, relative_url: str) -> str:
        """Join a URL relative to this resource onto its absolute path."""
        relative = relative_url.strip("/")
        if not relative:
            return self.absolute_path
        return posixpath.join(self.absolute_path, relative)

    # -- Tree structure --

    def add_child(self, child: Resource) -> None:
        """Register *child* under its segment.

        Raises:
            ConfigurationError: If *child* has the root segment.
        """
        if child.segment == "/":
            msg = f"Cannot mount a root resource under {self.absolute_path!r}."
            raise ConfigurationError(msg)
        self.children[child.segment] = child

    def each(self) -> Iterator[Resource]:
        """Yield this resource and all descendants, pre-order."""
        yield self
        for child in list(self.children.values()):
            yield from child.each()

    def is_ancestor_of(self, other: Resource) -> bool:
        node: Resource | None = other
        while node is not None:
            if node is self:
                return True
            node = node._parent
        return False

    def remount(self, parent: Resource, segment: str | None = None) -> None:
        """Move this resource under *parent* at *segment*.

        Detaches from the current parent, registers in the new parent's
        children, and invalidates memoized absolute paths for the whole
        subtree. Remounting to the same parent and segment is a no-op.

        Raises:
            RemountCycleError: If *parent* is this resource or one of its
                descendants.
            ConfigurationError: If the segment is the root segment.
        """
        matcher = PathMatcher(segment) if segment is not None else self._matcher
        if matcher.is_root:
            msg = f"Cannot mount a root resource under {parent.absolute_path!r}."
            raise ConfigurationError(msg)
        if self.is_ancestor_of(parent):
            raise RemountCycleError(matcher.segment, parent.absolute_path)

        if (
            parent is self._parent
            and matcher.segment == self.segment
            and parent.children.get(self.segment) is self
        ):
            return

        old_parent = self._parent
        if old_parent is not None and old_parent.children.get(self.segment) is self:
            del old_parent.children[self.segment]

        self._parent = parent
        self._matcher = matcher
        parent.add_child(self)
        self._invalidate()
        logger.debug("remounted %s under %s", self.absolute_path, parent.absolute_path)

    def _invalidate(self) -> None:
        for node in self.each():
            node._absolute_path = None

    # -- Routing --

    def route(self, request: Request) -> Resource | None:
        """Return the resource that handles *request*, or ``None``.

        Advances the request's relative-path cursor past every matched
        segment. ``None`` means this resource's own segment did not match.
        """
        result = request.match_resource_path(self._matcher)
        if result.kind is MatchKind.NO_MATCH:
            return None
        if result.kind is MatchKind.TERMINAL:
            return self
        return self.descend(request)

    def descend(self, request: Request) -> Resource | None:
        """Route the current remainder into the children of this resource.

        Assumes this resource's own segment is already consumed.
        """
        relative_path = request.relative_path
        if relative_path == "/":
            return self

        child = self.children.get(relative_path)
        if child is not None:
            return child.route(request)

        m = _FIRST_SEGMENT_RE.match(relative_path)
        if m is not None:
            child = self.children.get(m.group(1))
            if child is not None:
                return child.route(request)

        return self

    # -- Rendering --

    async def render(self, request: Request) -> Response:
        """Render this resource for *request*.

        The default renders the handler given at construction, or 404.
        """
        if self._handler is None:
            return Response.not_found()
        return coerce_response(await invoke(self._handler, request))

    async def handle(self, request: Request) -> Response:
        """Route *request* from this resource and render the match.

        Falls back to this resource when nothing matches. ``HTTPError``
        raised while rendering becomes a response with its status; any
        other exception propagates.
        """
        resource = self.route(request) or self
        logger.debug(
            "%s %s -> %s (%s)",
            request.method,
            request.path,
            resource.absolute_path,
            request.relative_path,
        )
        try:
            return await resource.render(request)
        except HTTPError as exc:
            logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)
            return Response.from_error(exc)
