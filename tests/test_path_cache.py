"""Tests for perch.resolve.cache — memoizing, coalescing path info cache."""

import threading
import time
from pathlib import Path

import anyio
import pytest

from perch.resolve.cache import KeepForever, PathInfoCache
from perch.resolve.pathinfo import PathInfo, PathKind
from perch.resolve.resolver import PathResolver


class CountingResolver(PathResolver):
    """Resolver that records every probe and can be slowed down."""

    def __init__(self, directory: Path, delay: float = 0.0) -> None:
        super().__init__(directory)
        self.calls: list[str] = []
        self.delay = delay
        self.lock = threading.Lock()

    def resolve(self, relative_path: str) -> PathInfo:
        with self.lock:
            self.calls.append(relative_path)
        if self.delay:
            time.sleep(self.delay)
        return super().resolve(relative_path)


class FailingResolver(PathResolver):
    def resolve(self, relative_path: str) -> PathInfo:
        raise RuntimeError("probe failed")


class AlwaysStale:
    def is_stale(self, key: str, info: PathInfo) -> bool:
        return True


class TestMemoization:
    async def test_same_object_identity(self, site_dir: Path) -> None:
        cache = PathInfoCache(PathResolver(site_dir))
        first = await cache.get("/foo")
        second = await cache.get("/foo")
        assert first is second

    async def test_equivalent_keys_share_entry(self, site_dir: Path) -> None:
        resolver = CountingResolver(site_dir)
        cache = PathInfoCache(resolver)
        a = await cache.get("/bar")
        b = await cache.get("/bar/")
        c = await cache.get("bar")
        assert a is b is c
        assert resolver.calls == ["/bar"]

    async def test_stale_by_design(self, site_dir: Path) -> None:
        cache = PathInfoCache(PathResolver(site_dir))
        first = await cache.get("/foo")
        (site_dir / "foo.html").unlink()
        second = await cache.get("/foo")
        assert second is first
        assert second.kind is PathKind.FILE

    async def test_not_found_is_cached(self, site_dir: Path) -> None:
        resolver = CountingResolver(site_dir)
        cache = PathInfoCache(resolver)
        assert (await cache.get("/missing")).kind is PathKind.NOT_FOUND
        (site_dir / "missing.html").write_text("late")
        assert (await cache.get("/missing")).kind is PathKind.NOT_FOUND
        assert resolver.calls == ["/missing"]

    async def test_peek_and_contains(self, site_dir: Path) -> None:
        cache = PathInfoCache(PathResolver(site_dir))
        assert cache.peek("/foo") is None
        assert "/foo" not in cache
        info = await cache.get("/foo")
        assert cache.peek("/foo") is info
        assert "/foo" in cache
        assert len(cache) == 1

    @pytest.mark.parametrize("path", ["/bar/../foo", "/_layouts/default", "/js/../../foo"])
    async def test_unroutable_paths_are_not_found(self, site_dir: Path, path: str) -> None:
        resolver = CountingResolver(site_dir)
        cache = PathInfoCache(resolver)
        info = await cache.get(path)
        assert info.kind is PathKind.NOT_FOUND
        assert resolver.calls == []
        assert len(cache) == 0

    async def test_unroutable_path_does_not_poison_its_normal_form(self, site_dir: Path) -> None:
        cache = PathInfoCache(PathResolver(site_dir))
        assert (await cache.get("/bar/../foo")).kind is PathKind.NOT_FOUND
        assert (await cache.get("/foo")).kind is PathKind.FILE


class TestInvalidation:
    def test_default_policy_keeps_forever(self, site_dir: Path) -> None:
        assert KeepForever().is_stale("/x", PathInfo.not_found()) is False

    async def test_discard(self, site_dir: Path) -> None:
        cache = PathInfoCache(PathResolver(site_dir))
        first = await cache.get("/foo")
        cache.discard("/foo")
        second = await cache.get("/foo")
        assert second is not first
        assert second.path == first.path

    async def test_clear(self, site_dir: Path) -> None:
        cache = PathInfoCache(PathResolver(site_dir))
        await cache.get("/foo")
        await cache.get("/bar")
        cache.clear()
        assert len(cache) == 0

    async def test_custom_policy(self, site_dir: Path) -> None:
        resolver = CountingResolver(site_dir)
        cache = PathInfoCache(resolver, policy=AlwaysStale())
        await cache.get("/foo")
        (site_dir / "foo.html").unlink()
        info = await cache.get("/foo")
        assert info.kind is PathKind.NOT_FOUND
        assert resolver.calls == ["/foo", "/foo"]


class TestSingleFlight:
    async def test_concurrent_lookups_share_one_probe(self, site_dir: Path) -> None:
        resolver = CountingResolver(site_dir, delay=0.05)
        cache = PathInfoCache(resolver)
        results: list[PathInfo] = []

        async def lookup() -> None:
            results.append(await cache.get("/foo"))

        async with anyio.create_task_group() as tg:
            for _ in range(5):
                tg.start_soon(lookup)

        assert resolver.calls == ["/foo"]
        assert len(results) == 5
        assert all(info is results[0] for info in results)

    async def test_distinct_keys_resolve_independently(self, site_dir: Path) -> None:
        resolver = CountingResolver(site_dir, delay=0.02)
        cache = PathInfoCache(resolver)

        async with anyio.create_task_group() as tg:
            for path in ("/foo", "/bar", "/missing"):
                tg.start_soon(cache.get, path)

        assert sorted(resolver.calls) == ["/bar", "/foo", "/missing"]

    async def test_failure_is_shared_and_not_cached(self, site_dir: Path) -> None:
        cache = PathInfoCache(FailingResolver(site_dir))
        with pytest.raises(RuntimeError, match="probe failed"):
            await cache.get("/foo")
        assert cache.peek("/foo") is None
        with pytest.raises(RuntimeError, match="probe failed"):
            await cache.get("/foo")
