"""
URL builder with ordered, multi-valued query parameters.

Example:
    ```python
    url = GenericUrl("https://www.google.com/m8/feeds/contacts/default/full")
    url.set("max-results", 25)
    url.append_raw_path("/batch")
    str(url)
    # https://www.google.com/m8/feeds/contacts/default/full/batch?max-results=25
    ```
"""

from typing import Any, Dict, List, Optional
from urllib.parse import parse_qsl, quote, quote_plus, unquote, urlsplit

# Characters left unescaped in each URL component
_PATH_SAFE = "-_.!~*'()@:$&=+,;"
_QUERY_SAFE = "-_.!~*'()@:$,;/?:"
_FRAGMENT_SAFE = "=&-_.!~*'()@:$,;/?:"


def to_path_parts(encoded_path: Optional[str]) -> Optional[List[str]]:
    """
    Split an encoded path into decoded parts.

    '/m8/feeds' becomes ['', 'm8', 'feeds']; an empty path gives None.
    """
    if not encoded_path:
        return None
    return [unquote(part) for part in encoded_path.split("/")]


class GenericUrl:
    """
    A URL split into scheme, host, port, path parts, query and fragment.

    Query parameters keep their insertion order; a parameter may have
    several values. URLs compare equal when they build to the same string.
    """

    def __init__(self, encoded_url: Optional[str] = None):
        """
        Args:
            encoded_url: absolute URL to parse

        Raises:
            ValueError: the URL is not absolute or is malformed
        """
        self.scheme: Optional[str] = None
        self.host: Optional[str] = None
        self.port: Optional[int] = None
        self.path_parts: Optional[List[str]] = None
        self.fragment: Optional[str] = None
        self._query: Dict[str, List[str]] = {}
        if encoded_url is not None:
            self._parse(encoded_url)

    def _parse(self, encoded_url: str):
        parts = urlsplit(encoded_url)
        if not parts.scheme or not parts.netloc:
            raise ValueError(f"Not an absolute URL: '{encoded_url}'")
        self.scheme = parts.scheme.lower()
        self.host = parts.hostname
        self.port = parts.port
        self.path_parts = to_path_parts(parts.path)
        self.fragment = unquote(parts.fragment) if parts.fragment else None
        for name, value in parse_qsl(parts.query, keep_blank_values=True):
            self.add(name, value)

    # Query parameters

    def get(self, name: str, default: Any = None) -> Optional[str]:
        """First value of a query parameter."""
        values = self._query.get(name)
        return values[0] if values else default

    def get_all(self, name: str) -> List[str]:
        return list(self._query.get(name, []))

    def set(self, name: str, value: Any) -> "GenericUrl":
        """
        Replace a query parameter.

        A list or tuple sets several values; None removes the parameter.
        """
        if value is None:
            self.remove(name)
        elif isinstance(value, (list, tuple)):
            self._query[name] = [str(v) for v in value]
        else:
            self._query[name] = [str(value)]
        return self

    def add(self, name: str, value: Any) -> "GenericUrl":
        """Append a value to a query parameter."""
        self._query.setdefault(name, []).append(str(value))
        return self

    def remove(self, name: str):
        self._query.pop(name, None)

    @property
    def query(self) -> Dict[str, List[str]]:
        return {name: list(values) for name, values in self._query.items()}

    def __contains__(self, name: str) -> bool:
        return name in self._query

    # Path

    @property
    def raw_path(self) -> Optional[str]:
        if self.path_parts is None:
            return None
        return "/".join(quote(part, safe=_PATH_SAFE) for part in self.path_parts)

    @raw_path.setter
    def raw_path(self, encoded_path: Optional[str]):
        self.path_parts = to_path_parts(encoded_path)

    def append_raw_path(self, encoded_path: Optional[str]) -> "GenericUrl":
        """Append an encoded path; the first appended part continues the last part."""
        if not encoded_path:
            return self
        appended = to_path_parts(encoded_path)
        if not self.path_parts:
            self.path_parts = appended
        else:
            self.path_parts[-1] += appended[0]
            self.path_parts.extend(appended[1:])
        return self

    # Output

    def build(self) -> str:
        parts = [f"{self.scheme}://{self.host}"]
        if self.port is not None:
            parts.append(f":{self.port}")
        raw_path = self.raw_path
        if raw_path:
            parts.append(raw_path)
        params = [
            f"{quote_plus(name, safe=_QUERY_SAFE)}={quote_plus(value, safe=_QUERY_SAFE)}"
            for name, values in self._query.items()
            for value in values
        ]
        if params:
            parts.append("?" + "&".join(params))
        if self.fragment is not None:
            parts.append("#" + quote(self.fragment, safe=_FRAGMENT_SAFE))
        return "".join(parts)

    def copy(self) -> "GenericUrl":
        result = GenericUrl()
        result.scheme = self.scheme
        result.host = self.host
        result.port = self.port
        result.path_parts = list(self.path_parts) if self.path_parts is not None else None
        result.fragment = self.fragment
        result._query = self.query
        return result

    def __str__(self):
        return self.build()

    def __repr__(self):
        return f"GenericUrl({self.build()!r})"

    def __eq__(self, other):
        if not isinstance(other, GenericUrl):
            return NotImplemented
        return self.build() == other.build()

    def __hash__(self):
        return hash(self.build())
