"""Path info resolution against a directory.

Maps a resolver-relative URL path to a ``PathInfo``:

1. The path names a regular file: classify it by extension.
2. The path names a directory: look for ``<dir>/index.<ext>`` (one
   level only, never a nested directory walk).
3. Nothing at the path: probe ``<path>.<ext>`` for each configured
   extension, in priority order. First hit wins.
4. Otherwise: ``NOT_FOUND``.

Resolution is a pure function of the filesystem at call time. Caching is
layered on top by ``PathInfoCache``.
"""

import logging
import os
import posixpath

from perch.config import ResolverConfig
from perch.resolve.fs import FileSystem, LocalFileSystem, is_dir, is_file
from perch.resolve.pathinfo import PathInfo, pretty_url

logger = logging.getLogger("perch.resolve")


def normalize_relative_path(path: str) -> str:
    """Normalise a URL path to ``/a/b`` form (root is ``/``)."""
    path = "/" + path.strip("/")
    return posixpath.normpath(path) if path != "/" else "/"


class PathResolver:
    """Resolve URL paths to files under a root directory.

    Usage::

        resolver = PathResolver("./site", config=ResolverConfig.for_app())
        info = resolver.resolve("/about")
        info.kind  # PathKind.FILE
        info.path  # "/abs/site/about.html"
        info.url   # "/about"
    """

    __slots__ = ("_config", "_directory", "_extensions", "_fs")

    def __init__(
        self,
        directory: str | os.PathLike[str],
        *,
        config: ResolverConfig | None = None,
        fs: FileSystem | None = None,
    ) -> None:
        self._directory = os.path.abspath(os.fspath(directory))
        self._config = config or ResolverConfig.for_file_tree()
        self._extensions = self._config.ordered_extensions()
        self._fs = fs or LocalFileSystem()

    @property
    def directory(self) -> str:
        return self._directory

    @property
    def config(self) -> ResolverConfig:
        return self._config

    @property
    def fs(self) -> FileSystem:
        return self._fs

    def resolve(self, relative_path: str) -> PathInfo:
        """Resolve *relative_path* against the root directory."""
        if not self.is_routable(relative_path):
            logger.debug("resolve %s -> not routable", relative_path)
            return PathInfo.not_found()

        relative_path = normalize_relative_path(relative_path)
        full_path = self.full_path(relative_path)
        info = self._path_info(full_path)
        if info is None and relative_path != "/":
            info = self._search_with_extensions(full_path)
        if info is None:
            info = PathInfo.not_found()
        logger.debug("resolve %s -> %s %s", relative_path, info.kind.value, info.path or "")
        return info

    def full_path(self, relative_path: str) -> str:
        """Join a resolver-relative path onto the root directory."""
        relative = relative_path.strip("/")
        if not relative:
            return self._directory
        return os.path.join(self._directory, *relative.split("/"))

    def relative_file_path(self, full_path: str) -> str:
        """Inverse of :meth:`full_path` for files inside the root."""
        relative = os.path.relpath(full_path, self._directory)
        if relative == os.curdir:
            return "/"
        return "/" + relative.replace(os.sep, "/")

    def is_routable(self, relative_path: str) -> bool:
        """False for paths that must never resolve, before normalisation.

        Rejects ``..`` components, components starting with the private
        prefix, and anything under the layouts directory.
        """
        parts = [part for part in relative_path.split("/") if part]
        layouts = self._config.layouts_dir.strip("/").split("/")
        if layouts != [""] and parts[: len(layouts)] == layouts:
            return False
        prefix = self._config.private_prefix
        for part in parts:
            if part == "..":
                return False
            if prefix and part.startswith(prefix):
                return False
        return True

    # ------------------------------------------------------------------
    # Probing
    # ------------------------------------------------------------------

    def _path_info(self, full_path: str) -> PathInfo | None:
        result = self._fs.stat(full_path)
        if is_file(result):
            return self._file_info(full_path, index=False)
        if is_dir(result):
            return self._directory_info(full_path)
        return None

    def _directory_info(self, full_path: str) -> PathInfo | None:
        return self._search_with_extensions(
            os.path.join(full_path, self._config.index_name),
            index=True,
        )

    def _search_with_extensions(self, full_path: str, *, index: bool = False) -> PathInfo | None:
        for ext in self._extensions:
            candidate = f"{full_path}.{ext}"
            if is_file(self._fs.stat(candidate)):
                return self._file_info(candidate, index=index)
        return None

    def _file_info(self, full_path: str, *, index: bool) -> PathInfo:
        _, ext = os.path.splitext(full_path)
        url = pretty_url(
            self.relative_file_path(full_path),
            self._extensions,
            self._config.index_name,
        )
        return PathInfo.for_file(
            self._config.kind_for(ext),
            full_path,
            ext,
            url,
            index=index,
        )
