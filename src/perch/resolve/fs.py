"""Filesystem access layer used by the resolvers.

The resolvers never touch ``os`` directly; they go through a
``FileSystem`` so tests (and embedders with virtual trees) can supply
their own. Probe failures of any kind are reported as absence.
"""

import os
import stat as stat_module
from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class FileSystem(Protocol):
    """What the resolvers need from a filesystem."""

    def stat(self, path: str) -> os.stat_result | None:
        """Return the stat result, or ``None`` if the path cannot be probed."""
        ...

    def listdir(self, path: str) -> list[str]:
        """Return the entry names of a directory (empty if unreadable)."""
        ...

    def read_bytes(self, path: str) -> bytes:
        """Read a whole file."""
        ...


class LocalFileSystem:
    """``FileSystem`` backed by the local disk."""

    __slots__ = ()

    def stat(self, path: str) -> os.stat_result | None:
        # Permission errors and files vanishing between probes look the
        # same as absence to the router.
        try:
            return os.stat(path)
        except (OSError, ValueError):
            return None

    def listdir(self, path: str) -> list[str]:
        try:
            return sorted(os.listdir(path))
        except OSError:
            return []

    def read_bytes(self, path: str) -> bytes:
        return Path(path).read_bytes()


def is_file(result: os.stat_result | None) -> bool:
    return result is not None and stat_module.S_ISREG(result.st_mode)


def is_dir(result: os.stat_result | None) -> bool:
    return result is not None and stat_module.S_ISDIR(result.st_mode)
