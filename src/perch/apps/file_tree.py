"""A resource that maps to a static file hierarchy.

Resolves the request's relative path against a directory and serves what
it finds. Subclasses add kinds (see ``App``); every kind is dispatched
through one exhaustive ``match`` so an unexpected kind is a loud failure,
not a silent 404.
"""

from __future__ import annotations

import logging
import mimetypes
import os
from typing import TYPE_CHECKING

import anyio
import anyio.to_thread

from perch.config import ResolverConfig
from perch.errors import InvalidPathKind
from perch.http.response import Response
from perch.resolve.cache import CachePolicy, PathInfoCache
from perch.resolve.pathinfo import PathInfo, PathKind
from perch.resolve.resolver import PathResolver
from perch.routing.resource import Handler, Resource

if TYPE_CHECKING:
    from perch.http.request import Request
    from perch.resolve.fs import FileSystem

logger = logging.getLogger("perch.apps")


class FileTree(Resource):
    """Serve files from *directory* under this resource's path.

    Usage::

        tree = FileTree("/static", directory="./public")
        response = await tree.handle(Request.build("/static/about"))
        # serves ./public/about.html

    *handler*, if given, renders paths that resolve to nothing instead
    of the default 404.
    """

    __slots__ = ("_cache", "_config")

    def __init__(
        self,
        segment: str = "/",
        parent: Resource | None = None,
        *,
        directory: str | os.PathLike[str],
        config: ResolverConfig | None = None,
        handler: Handler | None = None,
        fs: FileSystem | None = None,
        policy: CachePolicy | None = None,
    ) -> None:
        super().__init__(segment, parent, handler=handler)
        self._config = config or self.default_config()
        resolver = PathResolver(directory, config=self._config, fs=fs)
        self._cache = PathInfoCache(resolver, policy=policy)

    @classmethod
    def default_config(cls) -> ResolverConfig:
        return ResolverConfig.for_file_tree()

    @property
    def directory(self) -> str:
        return self._cache.resolver.directory

    @property
    def config(self) -> ResolverConfig:
        return self._config

    @property
    def cache(self) -> PathInfoCache:
        return self._cache

    async def resolve(self, relative_path: str) -> PathInfo:
        """Return the (cached) path info for a path relative to this tree."""
        return await self._cache.get(relative_path)

    def canonical_url(self, info: PathInfo) -> str | None:
        """Absolute URL of a resolved file, or ``None`` if nothing was found."""
        if info.url is None:
            return None
        return self.url_for(info.url)

    # -- Rendering --

    async def render(self, request: Request) -> Response:
        info = await self.resolve(request.relative_path)
        return await self.render_path_info(request, info)

    async def render_path_info(self, request: Request, info: PathInfo) -> Response:
        match info.kind:
            case PathKind.NOT_FOUND:
                return await self.render_not_found(request)
            case PathKind.FILE:
                return await self.render_file(request, info)
            case _:
                raise InvalidPathKind(info.kind, request.path)

    async def render_not_found(self, request: Request) -> Response:
        if self._handler is not None:
            return await super().render(request)
        return Response.not_found()

    async def render_file(self, request: Request, info: PathInfo) -> Response:
        path = self.file_path(request, info)
        body = await self.read_file(path)
        content_type, _ = mimetypes.guess_type(path)
        if content_type is None:
            content_type = "application/octet-stream"
        elif content_type.startswith("text/"):
            content_type += "; charset=utf-8"
        return Response(body=body, content_type=content_type).with_header(
            "Content-Length", str(len(body))
        )

    def file_path(self, request: Request, info: PathInfo) -> str:
        """The file behind a found path info.

        Raises:
            InvalidPathKind: If *info* carries no file path.
        """
        if info.path is None:
            raise InvalidPathKind(info.kind, request.path)
        return info.path

    async def read_file(self, path: str) -> bytes:
        return await anyio.to_thread.run_sync(self._cache.resolver.fs.read_bytes, path)
