# apfed/headers.py
"""
Inbound header multi-map.

Received headers are modelled as lower-cased names mapped to the ordered
list of values seen for that name. Callers that only care about one value
use first().
"""

from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

HeaderValue = Union[str, Iterable[str]]


def _as_text(value) -> str:
    if isinstance(value, bytes):
        return value.decode("latin-1")
    return value if isinstance(value, str) else str(value)


class HeaderMap(Mapping[str, List[str]]):
    """
    Case-insensitive header name -> list of values.

    Accepts a mapping whose values are either a single value or a
    sequence of values (bytes are decoded as latin-1, anything else goes
    through str()), or an iterable of (name, value) pairs such as
    http.client.HTTPMessage.items().
    """

    def __init__(self, headers: Union[Mapping[str, HeaderValue], Iterable[Tuple[str, str]], None] = None):
        self._values: Dict[str, List[str]] = {}
        if headers is None:
            return
        items = headers.items() if isinstance(headers, Mapping) else headers
        for name, value in items:
            self.add(name, value)

    def add(self, name: str, value: HeaderValue) -> None:
        values = self._values.setdefault(name.lower(), [])
        if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
            values.append(_as_text(value))
        else:
            values.extend(_as_text(v) for v in value)

    def first(self, name: str) -> Optional[str]:
        """Return the first value for name, or None if absent."""
        values = self._values.get(name.lower())
        if not values:
            return None
        return values[0]

    def __getitem__(self, name: str) -> List[str]:
        return self._values[name.lower()]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"HeaderMap({self._values!r})"

    @classmethod
    def coerce(cls, headers) -> "HeaderMap":
        if isinstance(headers, HeaderMap):
            return headers
        return cls(headers)
