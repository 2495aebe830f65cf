"""Query string carried on a ``Request``.

The tree never reads it; resources and module render functions do. Keys
map to their first value. Repeated keys stay available, in order, through
``pairs``.
"""

from collections.abc import Iterator, Mapping
from urllib.parse import parse_qsl


class QueryParams(Mapping[str, str]):
    """Decoded query string as a read-only ``Mapping[str, str]``.

    Usage::

        query = QueryParams("tag=a&tag=b&page=2")
        query["tag"]   # "a"
        query.pairs    # (("tag", "a"), ("tag", "b"), ("page", "2"))
    """

    __slots__ = ("_first", "pairs")

    def __init__(self, query_string: str | bytes = "") -> None:
        if isinstance(query_string, bytes):
            query_string = query_string.decode("latin-1")
        self.pairs: tuple[tuple[str, str], ...] = tuple(
            parse_qsl(query_string, keep_blank_values=True)
        )
        self._first: dict[str, str] = {}
        for key, value in self.pairs:
            self._first.setdefault(key, value)

    def __getitem__(self, key: str) -> str:
        return self._first[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._first)

    def __len__(self) -> int:
        return len(self._first)
