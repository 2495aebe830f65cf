"""Resolver configuration.

ResolverConfig is a frozen dataclass — immutable after creation, validated
once at construction, no string-key dict lookups at request time.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from perch.errors import ConfigurationError
from perch.resolve.pathinfo import PathKind

_DEFAULT_KINDS: Mapping[str, PathKind] = MappingProxyType(
    {"md": PathKind.MARKDOWN, "py": PathKind.MODULE}
)


@dataclass(frozen=True, slots=True)
class ResolverConfig:
    """Filesystem resolver configuration. Immutable after creation.

    ``extensions`` maps an extension (without the dot) to its probe
    priority; lower numbers are probed first::

        config = ResolverConfig(extensions={"html": 0, "py": 1, "md": 2})
        config.ordered_extensions()  # ("html", "py", "md")
    """

    # Extension search: {ext: priority}
    extensions: Mapping[str, int] = field(default_factory=lambda: {"html": 0})

    # Specialised kinds by extension; anything unlisted is a plain file
    kinds: Mapping[str, PathKind] = field(default_factory=dict)

    # Directory-index fallback
    index_name: str = "index"

    # Layout templates live here; never routable
    layouts_dir: str = "_layouts"

    # Static sub-tree excluded from up-tree module search
    assets_dir: str = "assets"

    # Path components starting with this prefix resolve to not-found
    private_prefix: str = "_"

    def __post_init__(self) -> None:
        if not self.extensions:
            raise ConfigurationError("ResolverConfig.extensions must not be empty.")
        for ext in self.extensions:
            if not ext or "." in ext or "/" in ext:
                raise ConfigurationError(
                    f"Invalid extension {ext!r}: use a bare name like 'html', not '.html'."
                )
        priorities = list(self.extensions.values())
        if len(set(priorities)) != len(priorities):
            raise ConfigurationError(
                f"Extension priorities must be unique, got {dict(self.extensions)!r}."
            )
        if not self.index_name or "/" in self.index_name:
            raise ConfigurationError(f"Invalid index name {self.index_name!r}.")

    @classmethod
    def for_file_tree(cls) -> ResolverConfig:
        """Plain static file tree: only ``.html`` is implied."""
        return cls(extensions={"html": 0})

    @classmethod
    def for_app(cls) -> ResolverConfig:
        """Application tree: HTML, then Python modules, then Markdown."""
        return cls(extensions={"html": 0, "py": 1, "md": 2}, kinds=dict(_DEFAULT_KINDS))

    def ordered_extensions(self) -> tuple[str, ...]:
        """Extensions in probe order."""
        return tuple(sorted(self.extensions, key=self.extensions.__getitem__))

    def kind_for(self, ext: str) -> PathKind:
        """Return the path kind for a file extension (with or without dot)."""
        return self.kinds.get(ext.lstrip("."), PathKind.FILE)

    @property
    def assets_prefix(self) -> str:
        """URL prefix of the assets sub-tree (``/assets``)."""
        return "/" + self.assets_dir.strip("/")
