"""Path info records produced by the filesystem resolvers.

A ``PathInfo`` classifies one resolver-relative path: a plain file, a
Markdown source, a dynamic Python module, or nothing at all. Records are
cached per resolver and treated as immutable, except for the up-tree
module slot, which is settled lazily and at most once.
"""

from __future__ import annotations

import datetime
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Final, TypeAlias


class PathKind(Enum):
    """Classification of a resolved path."""

    FILE = "file"
    MARKDOWN = "markdown"
    MODULE = "module"
    NOT_FOUND = "not_found"


class _UpTreeState(Enum):
    UNRESOLVED = "unresolved"
    ABSENT = "absent"


UNRESOLVED: Final = _UpTreeState.UNRESOLVED
"""Up-tree search not yet performed."""

ABSENT: Final = _UpTreeState.ABSENT
"""Up-tree search performed, no module found."""


@dataclass(frozen=True, slots=True)
class UpTreeModule:
    """Up-tree search performed and found a module."""

    info: PathInfo


UpTreeLookup: TypeAlias = "_UpTreeState | UpTreeModule"

_DATE_RE = re.compile(r"(\d{4}-\d{2}-\d{2})")


@dataclass(slots=True, eq=False)
class PathInfo:
    """Resolved classification and metadata for a relative path.

    Attributes:
        kind: What the path resolved to.
        path: Absolute filesystem path of the resolved file.
        ext: File extension including the dot (``".html"``).
        url: Pretty URL relative to the resolver root (``"/about"``).
        index: True when the file was reached through directory-index
            fallback.
        date: Date parsed from a ``YYYY-MM-DD`` file name, if any.
        up_tree: Tri-state up-tree module lookup (only meaningful for
            ``NOT_FOUND`` records).
    """

    kind: PathKind
    path: str | None = None
    ext: str | None = None
    url: str | None = None
    index: bool = False
    date: datetime.date | None = None
    up_tree: UpTreeLookup = field(default=UNRESOLVED, repr=False)

    @classmethod
    def not_found(cls) -> PathInfo:
        return cls(kind=PathKind.NOT_FOUND)

    @classmethod
    def for_file(
        cls,
        kind: PathKind,
        path: str,
        ext: str,
        url: str,
        *,
        index: bool = False,
    ) -> PathInfo:
        return cls(
            kind=kind,
            path=path,
            ext=ext,
            url=url,
            index=index,
            date=parse_date(path),
        )

    @property
    def found(self) -> bool:
        return self.kind is not PathKind.NOT_FOUND

    @property
    def up_tree_resolved(self) -> bool:
        return self.up_tree is not UNRESOLVED

    @property
    def up_tree_module(self) -> PathInfo | None:
        """The settled up-tree module, or ``None`` (absent or unresolved)."""
        match self.up_tree:
            case UpTreeModule(info=info):
                return info
            case _:
                return None

    def settle_up_tree(self, module: PathInfo | None) -> UpTreeLookup:
        """Record the result of the up-tree search.

        Transitions ``UNRESOLVED`` to ``ABSENT`` (no module) or to
        ``UpTreeModule(module)``. Both are terminal.

        Raises:
            RuntimeError: If the lookup was already settled.
        """
        if self.up_tree is not UNRESOLVED:
            msg = f"Up-tree lookup for {self!r} is already settled."
            raise RuntimeError(msg)
        self.up_tree = ABSENT if module is None else UpTreeModule(module)
        return self.up_tree


def parse_date(path: str) -> datetime.date | None:
    """Return the ``YYYY-MM-DD`` date embedded in a file name, if valid."""
    name = path.rsplit("/", 1)[-1]
    match = _DATE_RE.search(name)
    if match is None:
        return None
    try:
        return datetime.date.fromisoformat(match.group(1))
    except ValueError:
        return None


def pretty_url(relative_path: str, extensions: tuple[str, ...], index_name: str = "index") -> str:
    """Return the pretty URL for a resolver-relative file path.

    Strips a supported extension, then collapses a trailing ``index``
    component into its directory::

        pretty_url("/about.html", ("html",))        # "/about"
        pretty_url("/docs/index.md", ("md",))       # "/docs"
        pretty_url("/index.html", ("html",))        # "/"
        pretty_url("/js/app.js", ("html",))         # "/js/app.js"
    """
    path = "/" + relative_path.lstrip("/")
    stem, dot, ext = path.rpartition(".")
    if dot and ext in extensions and "/" not in ext:
        path = stem
    if path == "/" + index_name:
        return "/"
    if path.endswith("/" + index_name):
        path = path[: -len(index_name) - 1]
    return path or "/"
