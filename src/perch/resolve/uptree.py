"""Up-tree dynamic module discovery.

When a path does not resolve, one of its ancestors may be a Python
module that handles everything beneath it: ``/api/users/42`` is not a
file, but ``/api.py`` is. The search walks the ancestor chain through
the cache, one segment at a time:

- ancestor not found: keep climbing
- ancestor is a module: found
- ancestor is anything else (a file, a directory index): stop, a
  concrete file cannot host sub-resources
- root reached: stop

The outcome is settled on the original not-found entry, so repeated
requests for the same missing path never walk twice.
"""

import logging
import posixpath
from collections.abc import Iterable

from perch.resolve.cache import PathInfoCache
from perch.resolve.pathinfo import PathInfo, PathKind
from perch.resolve.resolver import normalize_relative_path

logger = logging.getLogger("perch.resolve")


def ancestors(relative_path: str) -> list[str]:
    """Return the ancestors of a path, nearest first, excluding the root.

    ::

        ancestors("/a/b/c")  # ["/a/b", "/a"]
        ancestors("/a")      # []
    """
    result: list[str] = []
    current = normalize_relative_path(relative_path)
    while True:
        current = posixpath.dirname(current)
        if current == "/":
            return result
        result.append(current)


def is_excluded(relative_path: str, excluded: Iterable[str]) -> bool:
    path = normalize_relative_path(relative_path)
    for prefix in excluded:
        prefix = normalize_relative_path(prefix)
        if path == prefix or path.startswith(prefix + "/"):
            return True
    return False


async def find_up_tree_module(
    cache: PathInfoCache,
    relative_path: str,
    *,
    excluded: Iterable[str] = (),
) -> PathInfo | None:
    """Find the module that handles *relative_path* from an ancestor directory.

    Args:
        cache: The resolver cache to search through.
        relative_path: A path whose own lookup is ``NOT_FOUND``.
        excluded: URL prefixes (e.g. ``/assets``) that never search.

    Returns:
        The module's ``PathInfo``, or ``None`` if no ancestor module
        handles the path.
    """
    info = await cache.get(relative_path)
    if info.found:
        return None
    if info.up_tree_resolved:
        return info.up_tree_module

    module: PathInfo | None = None
    if cache.resolver.is_routable(relative_path) and not is_excluded(relative_path, excluded):
        module = await _search(cache, relative_path)

    # Another task may have settled it while we were awaiting the cache.
    if not info.up_tree_resolved:
        info.settle_up_tree(module)
    return info.up_tree_module


async def _search(cache: PathInfoCache, relative_path: str) -> PathInfo | None:
    for ancestor in ancestors(relative_path):
        ancestor_info = await cache.get(ancestor)
        match ancestor_info.kind:
            case PathKind.NOT_FOUND:
                continue
            case PathKind.MODULE:
                logger.debug("up-tree %s -> module %s", relative_path, ancestor_info.path)
                return ancestor_info
            case _:
                logger.debug("up-tree %s -> blocked by %s", relative_path, ancestor)
                return None
    return None
