"""Static export of a resource tree.

Renders every resource in a tree (pre-order) through the normal routing
path and writes each successful body to ``<base>/<absolute path>/index.html``.
Resources that answer with anything other than 200 are skipped.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

import anyio

from perch.http.request import Request

if TYPE_CHECKING:
    from perch.routing.resource import Resource

logger = logging.getLogger("perch.export")


async def render_tree_to_static_files(
    root: Resource,
    base_path: str | os.PathLike[str],
    *,
    index_name: str = "index.html",
) -> list[str]:
    """Write the rendered tree under *base_path*.

    Returns:
        The file paths written, in tree order.
    """
    top = root
    while top.parent is not None:
        top = top.parent

    base = anyio.Path(base_path)
    written: list[str] = []
    for resource in root.each():
        request = Request.build(resource.absolute_path)
        response = await top.handle(request)
        if response.status != 200:
            logger.debug("skip %s (%d)", resource.absolute_path, response.status)
            continue

        target = base.joinpath(*resource.absolute_path.strip("/").split("/"), index_name)
        await target.parent.mkdir(parents=True, exist_ok=True)
        await target.write_bytes(response.body_bytes)
        written.append(str(target))
        logger.debug("wrote %s", target)
    return written
