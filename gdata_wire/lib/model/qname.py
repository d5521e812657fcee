"""
XML names and namespaces.

A QName identifies an element or attribute on the wire. Two names are the
same name when their namespace URI and local name match; the alias is only
used when the name is written out.
"""

from typing import Optional


class XmlNamespace:
    """An XML namespace: an alias (prefix) bound to a URI.

    Namespaces compare equal when their URIs match, regardless of alias.
    """

    __slots__ = ("_alias", "_uri")

    def __init__(self, alias: Optional[str], uri: str):
        if uri is None:
            raise ValueError("Namespace URI must not be None")
        self._alias = alias
        self._uri = uri

    @property
    def alias(self) -> Optional[str]:
        return self._alias

    @property
    def uri(self) -> str:
        return self._uri

    def __eq__(self, other):
        if not isinstance(other, XmlNamespace):
            return NotImplemented
        return self._uri == other._uri

    def __hash__(self):
        return hash(self._uri)

    def __repr__(self):
        return f"XmlNamespace({self._alias!r}, {self._uri!r})"


XML_NAMESPACE_URI = "http://www.w3.org/XML/1998/namespace"
XML_NAMESPACE = XmlNamespace("xml", XML_NAMESPACE_URI)


class QName:
    """Qualified name: optional namespace plus local name. Immutable."""

    __slots__ = ("_ns", "_local_name")

    def __init__(self, ns: Optional[XmlNamespace], local_name: str):
        if not local_name:
            raise ValueError("Local name must not be empty")
        self._ns = ns
        self._local_name = local_name

    @classmethod
    def from_clark(cls, name: str, alias: Optional[str] = None) -> "QName":
        """Build a QName from lxml-style '{uri}local' notation."""
        if name.startswith("{"):
            uri, local_name = name[1:].split("}", 1)
            return cls(XmlNamespace(alias, uri) if uri else None, local_name)
        return cls(None, name)

    @property
    def ns(self) -> Optional[XmlNamespace]:
        return self._ns

    @property
    def local_name(self) -> str:
        return self._local_name

    @property
    def uri(self) -> Optional[str]:
        return self._ns.uri if self._ns is not None else None

    @property
    def alias(self) -> Optional[str]:
        return self._ns.alias if self._ns is not None else None

    @property
    def clark(self) -> str:
        """The name in '{uri}local' notation, as used by lxml."""
        if self._ns is None or not self._ns.uri:
            return self._local_name
        return f"{{{self._ns.uri}}}{self._local_name}"

    @property
    def qualified_name(self) -> str:
        """The name as written on the wire, 'alias:local' or 'local'."""
        alias = self.alias
        return f"{alias}:{self._local_name}" if alias else self._local_name

    def _identity(self):
        return (self.uri or None, self._local_name)

    def __eq__(self, other):
        if not isinstance(other, QName):
            return NotImplemented
        return self._identity() == other._identity()

    def __hash__(self):
        return hash(self._identity())

    def __repr__(self):
        return f"QName({self.clark!r})"

    def __str__(self):
        return self.qualified_name
