"""Perch — compose web resources into a tree.

Each resource owns a path segment and a set of children; requests
descend the tree by longest segment match, with the unconsumed remainder
threaded through to the resource that renders them. ``FileTree`` and
``App`` map a directory into the tree, and ``App`` grafts Python modules
discovered on disk into it at request time.

Basic usage::

    from perch import App, Request, Resource

    root = Resource()
    App("/docs", parent=root, directory="./docs")

    response = await root.handle(Request.build("/docs/intro"))
"""

__version__ = "0.1.0-dev"
__all__ = [
    "App",
    "ConfigurationError",
    "FileTree",
    "HTTPError",
    "InvalidPathKind",
    "ModuleLoadError",
    "NotFound",
    "PathInfo",
    "PathInfoCache",
    "PathKind",
    "PathResolver",
    "PerchError",
    "RemountCycleError",
    "Request",
    "Resource",
    "ResolverConfig",
    "Response",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import perch`` fast while providing a clean top-level API.
    """
    if name == "Resource":
        from perch.routing.resource import Resource

        return Resource

    if name == "FileTree":
        from perch.apps.file_tree import FileTree

        return FileTree

    if name == "App":
        from perch.apps.app import App

        return App

    if name == "Request":
        from perch.http.request import Request

        return Request

    if name == "Response":
        from perch.http.response import Response

        return Response

    if name == "ResolverConfig":
        from perch.config import ResolverConfig

        return ResolverConfig

    if name in ("PathInfo", "PathKind"):
        from perch.resolve import pathinfo as _pathinfo

        return getattr(_pathinfo, name)

    if name == "PathResolver":
        from perch.resolve.resolver import PathResolver

        return PathResolver

    if name == "PathInfoCache":
        from perch.resolve.cache import PathInfoCache

        return PathInfoCache

    if name in (
        "ConfigurationError",
        "HTTPError",
        "InvalidPathKind",
        "ModuleLoadError",
        "NotFound",
        "PerchError",
        "RemountCycleError",
    ):
        from perch import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
