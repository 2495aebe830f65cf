"""Dynamic module loading.

A ``.py`` file served by an ``App`` is executed as a module and must
expose one of:

- ``resource``: a ``Resource``, or a zero-argument callable returning one.
  The resource is grafted into the tree and routes its own sub-paths.
- ``render``: a function taking the request (sync or async). The module
  is a leaf that renders whatever path reached it.

Loaded modules are trusted code. A module that raises while executing, or
exposes neither name, is never cached or mounted.
"""

from __future__ import annotations

import hashlib
import importlib.util
import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, TypeAlias

from perch.errors import ModuleLoadError
from perch.routing.resource import Resource

logger = logging.getLogger("perch.apps")


@dataclass(frozen=True, slots=True)
class ResourceModule:
    """A module exposing a resource subtree."""

    path: str
    resource: Resource


@dataclass(frozen=True, slots=True)
class RenderModule:
    """A module exposing a single render function."""

    path: str
    render: Callable[..., Any]


LoadedModule: TypeAlias = "ResourceModule | RenderModule"


def _module_name(path: str) -> str:
    digest = hashlib.sha1(path.encode("utf-8"), usedforsecurity=False).hexdigest()[:12]
    return f"_perch_module_{Path(path).stem}_{digest}"


def load_module(path: str) -> LoadedModule:
    """Execute the module at *path* and classify what it exposes.

    Raises:
        ModuleLoadError: If the module cannot be executed or exposes
            neither ``resource`` nor ``render``.
    """
    spec = importlib.util.spec_from_file_location(_module_name(path), path)
    if spec is None or spec.loader is None:
        raise ModuleLoadError(path, "not an importable Python file")

    module = importlib.util.module_from_spec(spec)
    # Blocking: reads and executes the file on the event loop thread.
    # Runs once per file, with no await before ModuleRegistry stores it.
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        raise ModuleLoadError(path, f"{type(exc).__name__}: {exc}") from exc

    resource = getattr(module, "resource", None)
    if resource is not None:
        if not isinstance(resource, Resource) and callable(resource):
            try:
                resource = resource()
            except Exception as exc:
                detail = f"resource() raised {type(exc).__name__}: {exc}"
                raise ModuleLoadError(path, detail) from exc
        if not isinstance(resource, Resource):
            raise ModuleLoadError(
                path, f"'resource' must be a Resource, got {type(resource).__name__}"
            )
        return ResourceModule(path=path, resource=resource)

    render = getattr(module, "render", None)
    if render is not None and callable(render):
        return RenderModule(path=path, render=render)

    raise ModuleLoadError(path, "module defines neither 'resource' nor 'render'")


class ModuleRegistry:
    """Loaded modules, keyed by absolute file path.

    Only successfully loaded modules are stored; a failed load is retried
    on the next request.
    """

    __slots__ = ("_modules",)

    def __init__(self) -> None:
        self._modules: dict[str, LoadedModule] = {}

    def __len__(self) -> int:
        return len(self._modules)

    def __contains__(self, path: object) -> bool:
        return path in self._modules

    def get(self, path: str) -> LoadedModule:
        module = self._modules.get(path)
        if module is None:
            module = load_module(path)
            self._modules[path] = module
            logger.debug("loaded module %s (%s)", path, type(module).__name__)
        return module
