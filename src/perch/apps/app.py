"""Application tree: HTML, Python modules, and Markdown under one directory.

``App`` extends ``FileTree`` with two more kinds:

- ``.py`` files are dynamic modules. They are loaded on first request,
  grafted into the tree, and handle every path beneath their URL. A
  missing path is matched against its ancestors so ``/api/users/42``
  reaches ``api.py``.
- ``.md`` files are Markdown sources, passed to the ``markdown_renderer``
  hook (or served as ``text/markdown`` without one).

Paths under the assets directory are plain files only and never search
for modules.
"""

from __future__ import annotations

import logging
import os
import posixpath
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeAlias

import anyio.to_thread

from perch._internal.invoke import invoke
from perch.apps.file_tree import FileTree
from perch.apps.mount import mount_and_dispatch
from perch.config import ResolverConfig
from perch.errors import InvalidPathKind
from perch.http.response import Response, coerce_response
from perch.loader import ModuleRegistry
from perch.resolve.pathinfo import PathInfo, PathKind
from perch.resolve.resolver import normalize_relative_path
from perch.resolve.uptree import find_up_tree_module

if TYPE_CHECKING:
    from perch.http.request import Request
    from perch.resolve.cache import CachePolicy
    from perch.resolve.fs import FileSystem
    from perch.routing.resource import Handler, Resource

logger = logging.getLogger("perch.apps")

MarkdownRenderer: TypeAlias = "Callable[[str, PathInfo, Request], Any]"

_PAGE_EXTENSIONS = frozenset({".html", ".md"})


class App(FileTree):
    """A ``FileTree`` that also serves Markdown and dynamic modules.

    Usage::

        app = App(directory="./site")
        response = await app.handle(Request.build("/api/users/42"))
        # ./site/api.py handles "/users/42"
    """

    __slots__ = ("_markdown_renderer", "_modules")

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
        markdown_renderer: MarkdownRenderer | None = None,
    ) -> None:
        super().__init__(
            segment,
            parent,
            directory=directory,
            config=config,
            handler=handler,
            fs=fs,
            policy=policy,
        )
        self._markdown_renderer = markdown_renderer
        self._modules = ModuleRegistry()

    @classmethod
    def default_config(cls) -> ResolverConfig:
        return ResolverConfig.for_app()

    @property
    def modules(self) -> ModuleRegistry:
        return self._modules

    # -- Rendering --

    async def render_path_info(self, request: Request, info: PathInfo) -> Response:
        match info.kind:
            case PathKind.NOT_FOUND:
                module_info = await self.find_up_tree_module(request.relative_path)
                if module_info is None:
                    return await self.render_not_found(request)
                return await self.render_module(request, module_info)
            case PathKind.FILE:
                return await self.render_file(request, info)
            case PathKind.MARKDOWN:
                return await self.render_markdown(request, info)
            case PathKind.MODULE:
                return await self.render_module(request, info)
            case _:
                raise InvalidPathKind(info.kind, request.path)

    async def find_up_tree_module(self, relative_path: str) -> PathInfo | None:
        """Find the ancestor module that handles *relative_path*, if any."""
        return await find_up_tree_module(
            self.cache,
            relative_path,
            excluded=(self.config.assets_prefix,),
        )

    async def render_module(self, request: Request, info: PathInfo) -> Response:
        module = self._modules.get(self.file_path(request, info))
        return await mount_and_dispatch(self, info, module, request)

    async def render_markdown(self, request: Request, info: PathInfo) -> Response:
        source = (await self.read_file(self.file_path(request, info))).decode("utf-8")
        if self._markdown_renderer is None:
            return Response(body=source, content_type="text/markdown; charset=utf-8")
        return coerce_response(await invoke(self._markdown_renderer, source, info, request))

    # -- Listing --

    async def page_list(self, directory: str = "/") -> list[PathInfo]:
        """Return the HTML and Markdown pages in *directory*, sorted by file path.

        *directory* is relative to this app's root. Private entries
        (``_layouts``, ``_drafts``) are skipped.
        """
        directory = normalize_relative_path(directory)
        resolver = self.cache.resolver
        names = await self._listdir(resolver.full_path(directory))
        prefix = self.config.private_prefix

        pages: list[PathInfo] = []
        for name in names:
            if prefix and name.startswith(prefix):
                continue
            if os.path.splitext(name)[1] not in _PAGE_EXTENSIONS:
                continue
            info = await self.resolve(posixpath.join(directory, name))
            if info.found:
                pages.append(info)
        pages.sort(key=lambda info: info.path or "")
        return pages

    async def _listdir(self, full_path: str) -> list[str]:
        return await anyio.to_thread.run_sync(self.cache.resolver.fs.listdir, full_path)
