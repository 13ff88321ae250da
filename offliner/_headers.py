from __future__ import annotations

from typing import Any, Iterable, Iterator, List, Mapping, MutableMapping, Optional, Tuple, Union

HeadersInput = Union[Mapping[str, Union[str, List[str]]], Iterable[Tuple[str, str]], None]


class Headers(MutableMapping[str, str]):
    """
    Case-insensitive header mapping that keeps repeated values.

    Reading a key joins repeated values with ", ", assigning a key replaces
    all values, and `add` appends one more value.
    """

    def __init__(self, headers: HeadersInput = None) -> None:
        self._headers: dict[str, list[str]] = {}
        if headers is None:
            return
        items = headers.items() if isinstance(headers, Mapping) else headers
        for key, value in items:
            if isinstance(value, str):
                self.add(key, value)
            else:
                for item in value:
                    self.add(key, item)

    def add(self, key: str, value: str) -> None:
        self._headers.setdefault(key.lower(), []).append(value)

    def get_list(self, key: str) -> Optional[List[str]]:
        return self._headers.get(key.lower(), None)

    def multi_items(self) -> List[Tuple[str, str]]:
        return [(key, value) for key, values in self._headers.items() for value in values]

    def copy(self) -> "Headers":
        return Headers(self.multi_items())

    def __getitem__(self, key: str) -> str:
        return ", ".join(self._headers[key.lower()])

    def __setitem__(self, key: str, value: str) -> None:
        self._headers[key.lower()] = [value]

    def __delitem__(self, key: str) -> None:
        del self._headers[key.lower()]

    def __iter__(self) -> Iterator[str]:
        return iter(self._headers)

    def __len__(self) -> int:
        return len(self._headers)

    def __repr__(self) -> str:
        return f"Headers({self.multi_items()!r})"

    def __eq__(self, other_headers: Any) -> bool:
        return isinstance(other_headers, Headers) and self._headers == other_headers._headers


def parse_accept(value: str) -> List[str]:
    """
    Return the media ranges of an Accept header, without parameters.

    Example:
        >>> parse_accept("text/html,application/xhtml+xml;q=0.9,*/*;q=0.8")
        ['text/html', 'application/xhtml+xml', '*/*']
    """
    media_ranges = []
    for part in value.split(","):
        media_range = part.split(";", 1)[0].strip().lower()
        if media_range:
            media_ranges.append(media_range)
    return media_ranges


def accepts(headers: Headers, media_type: str) -> bool:
    """
    Check whether the Accept header explicitly names `media_type`.

    `media_type` may be a full type ("text/html") or a top-level type
    followed by a wildcard ("image/*"). Bare "*/*" never counts.
    """
    accept = headers.get("Accept")
    if not accept:
        return False
    wanted = media_type.lower()
    for media_range in parse_accept(accept):
        if wanted.endswith("/*"):
            if media_range.startswith(wanted[:-1]):
                return True
        elif media_range == wanted:
            return True
    return False
