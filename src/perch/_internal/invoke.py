"""Invoke helpers — call sync or async handlers uniformly.

Resource handlers and module render functions can be ``def`` or
``async def``. This module provides a single helper so the sync/async
check lives in exactly one place.

Usage::

    from perch._internal.invoke import invoke

    result = await invoke(handler, request)
"""

import inspect
from typing import Any


async def invoke(handler: Any, *args: Any, **kwargs: Any) -> Any:
    """Call a handler and await the result if it's a coroutine."""
    result = handler(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
