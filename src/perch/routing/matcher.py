"""Per-segment prefix matching.

A resource's segment compiles into ``^<segment>(/.*)?$``. Matching a
relative path yields one of three outcomes: no match, a terminal match
(nothing left to consume), or a partial match carrying the remainder for
further descent. The root segment ``/`` matches everything and consumes
nothing.
"""

import re
from dataclasses import dataclass
from enum import Enum


def normalize_segment(segment: str) -> str:
    """Normalise a path segment to slash-prefixed form without trailing slash.

    ::

        normalize_segment("foo")     # "/foo"
        normalize_segment("/foo/")   # "/foo"
        normalize_segment("a/b")     # "/a/b"
        normalize_segment("")        # "/"
    """
    stripped = segment.strip("/")
    return "/" + stripped if stripped else "/"


class MatchKind(Enum):
    NO_MATCH = "no_match"
    TERMINAL = "terminal"
    PARTIAL = "partial"


@dataclass(frozen=True, slots=True)
class MatchResult:
    """Outcome of matching a segment against a relative path.

    ``remainder`` is the rebased relative path: ``"/"`` for terminal
    matches, the unconsumed tail for partial ones, ``None`` on no match.
    """

    kind: MatchKind
    remainder: str | None = None

    @property
    def matched(self) -> bool:
        return self.kind is not MatchKind.NO_MATCH


NO_MATCH = MatchResult(MatchKind.NO_MATCH)


class PathMatcher:
    """Compiled prefix rule for one segment.

    Usage::

        matcher = PathMatcher("/foo")
        matcher.match("/foo")          # TERMINAL, "/"
        matcher.match("/foo/bar")      # PARTIAL, "/bar"
        matcher.match("/foobar")       # NO_MATCH
    """

    __slots__ = ("_regex", "_segment")

    def __init__(self, segment: str) -> None:
        self._segment = normalize_segment(segment)
        if self._segment == "/":
            self._regex: re.Pattern[str] | None = None
        else:
            self._regex = re.compile(rf"^{re.escape(self._segment)}(/.*)?$")

    def __repr__(self) -> str:
        return f"PathMatcher({self._segment!r})"

    @property
    def segment(self) -> str:
        return self._segment

    @property
    def is_root(self) -> bool:
        return self._regex is None

    def match(self, relative_path: str) -> MatchResult:
        if self._regex is None:
            return _classify(relative_path)
        m = self._regex.match(relative_path)
        if m is None:
            return NO_MATCH
        return _classify(m.group(1))


def _classify(remainder: str | None) -> MatchResult:
    if not remainder or remainder == "/":
        return MatchResult(MatchKind.TERMINAL, "/")
    return MatchResult(MatchKind.PARTIAL, remainder)
