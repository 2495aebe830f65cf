"""Memoizing, request-coalescing layer over ``PathResolver``.

Each relative path is resolved at most once per cache instance. The
first caller for a key runs the filesystem probe in a worker thread;
concurrent callers for the same key wait for that result instead of
probing again (single-flight). Distinct keys resolve independently.

Cached entries are never re-validated unless the configured
``CachePolicy`` says so. The default policy keeps entries forever, so a
file changed after its first lookup is not observed.
"""

from __future__ import annotations

import logging
from typing import Protocol

import anyio
import anyio.to_thread

from perch.resolve.pathinfo import PathInfo
from perch.resolve.resolver import PathResolver, normalize_relative_path

logger = logging.getLogger("perch.resolve")


class CachePolicy(Protocol):
    """Decides whether a cached entry must be resolved again."""

    def is_stale(self, key: str, info: PathInfo) -> bool: ...


class KeepForever:
    """Never invalidate. First observation wins."""

    __slots__ = ()

    def is_stale(self, key: str, info: PathInfo) -> bool:
        return False


class _Pending:
    """An in-flight resolution other callers can wait on."""

    __slots__ = ("error", "event", "result")

    def __init__(self) -> None:
        self.event = anyio.Event()
        self.result: PathInfo | None = None
        self.error: BaseException | None = None


class PathInfoCache:
    """Write-once ``PathInfo`` cache keyed by normalised relative path.

    Usage::

        cache = PathInfoCache(PathResolver("./site"))
        info = await cache.get("/about")
        assert await cache.get("/about") is info
    """

    __slots__ = ("_entries", "_pending", "_policy", "_resolver")

    def __init__(self, resolver: PathResolver, *, policy: CachePolicy | None = None) -> None:
        self._resolver = resolver
        self._policy = policy or KeepForever()
        self._entries: dict[str, PathInfo] = {}
        self._pending: dict[str, _Pending] = {}

    @property
    def resolver(self) -> PathResolver:
        return self._resolver

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and normalize_relative_path(key) in self._entries

    def peek(self, relative_path: str) -> PathInfo | None:
        """Return the cached entry without resolving."""
        return self._entries.get(normalize_relative_path(relative_path))

    async def get(self, relative_path: str) -> PathInfo:
        """Return the ``PathInfo`` for *relative_path*, resolving it once.

        Unroutable paths (``..``, private, layouts) are checked on the raw
        path, before normalisation could fold them into a routable key.
        They get a fresh, uncached ``NOT_FOUND``.
        """
        if not self._resolver.is_routable(relative_path):
            logger.debug("cache %s -> not routable", relative_path)
            return PathInfo.not_found()

        key = normalize_relative_path(relative_path)

        info = self._entries.get(key)
        if info is not None:
            if not self._policy.is_stale(key, info):
                return info
            logger.debug("cache stale %s", key)
            del self._entries[key]

        pending = self._pending.get(key)
        if pending is not None:
            await pending.event.wait()
            if pending.result is not None:
                return pending.result
            if isinstance(pending.error, Exception):
                raise pending.error
            # The resolving task was cancelled; resolve again.
            return await self.get(relative_path)

        pending = _Pending()
        self._pending[key] = pending
        try:
            info = await anyio.to_thread.run_sync(self._resolver.resolve, key)
        except BaseException as exc:
            pending.error = exc
            raise
        else:
            pending.result = info
            self._entries[key] = info
            return info
        finally:
            del self._pending[key]
            pending.event.set()

    def discard(self, relative_path: str) -> None:
        """Drop one entry so the next lookup resolves again."""
        self._entries.pop(normalize_relative_path(relative_path), None)

    def clear(self) -> None:
        """Drop every entry."""
        self._entries.clear()
