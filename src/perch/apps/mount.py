"""Grafting dynamic modules into the resource tree at request time.

When an ``App`` resolves a path to a module (directly, or through the
up-tree search), the module takes over the request:

1. A resource module is remounted under the app at the module's URL.
   Remounting is idempotent, so every request for the module's subtree
   goes through the same swap. A root index module (URL ``/``) is
   never mounted; it renders on its own each time the root is requested.
2. The request cursor is rebased: the module's URL is stripped so the
   module sees paths relative to its own mount point.
3. The module routes and renders the rebased request. Resource modules
   descend their own children; render modules are called directly.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from perch._internal.invoke import invoke
from perch.errors import InvalidPathKind
from perch.http.response import Response, coerce_response
from perch.loader import LoadedModule, RenderModule, ResourceModule

if TYPE_CHECKING:
    from perch.http.request import Request
    from perch.resolve.pathinfo import PathInfo
    from perch.routing.resource import Resource

logger = logging.getLogger("perch.apps")


async def mount_and_dispatch(
    host: Resource,
    info: PathInfo,
    module: LoadedModule,
    request: Request,
) -> Response:
    """Mount *module* under *host* and let it handle *request*.

    Args:
        host: The resource whose resolver found the module.
        info: The module's path info; ``info.url`` is relative to *host*.
        module: The loaded module.
        request: The request, with its cursor relative to *host*.
    """
    url = info.url or "/"
    match module:
        case ResourceModule(resource=resource):
            # Root index module: same path as the host, never a child.
            if url != "/":
                resource.remount(host, url)
                request.rebase_relative_path(url)
            target = resource.descend(request) or resource
            logger.debug(
                "%s dispatched to module %s at %s (%s)",
                request.path,
                module.path,
                target.absolute_path,
                request.relative_path,
            )
            return await target.render(request)
        case RenderModule(render=render):
            request.rebase_relative_path(url)
            logger.debug(
                "%s rendered by module %s (%s)", request.path, module.path, request.relative_path
            )
            return coerce_response(await invoke(render, request))
        case _:
            raise InvalidPathKind(type(module).__name__, info.path or url)
