"""
Streaming XML writer.

Writes start tags, text and end tags directly to an output stream, escaping
with xml.sax.saxutils and tracking namespace declarations per element scope.
Used both for generated documents and for capturing foreign XML fragments
(blobs) during parsing.

Example:
    ```python
    out = io.StringIO()
    xw = XmlWriter(out)
    xw.set_default_namespace(XmlNamespace("atom", ATOM_URI))
    xw.start_element(XmlNamespace("atom", ATOM_URI), "entry", [], [])
    xw.characters("a < b")
    xw.end_element()
    xw.end_document()
    # <entry xmlns="http://www.w3.org/2005/Atom">a &lt; b</entry>
    ```
"""

import io
import logging
import xml.sax.saxutils as saxutils
from typing import Iterable, List, Optional, Tuple

from ..model.qname import XML_NAMESPACE_URI, XmlNamespace

logger = logging.getLogger(__name__)

# Attribute to write: (namespace or None, local name, value)
WriterAttribute = Tuple[Optional[XmlNamespace], str, str]


def escape_text(text: str) -> str:
    return saxutils.escape(text)


def escape_attribute(value: str) -> str:
    return saxutils.quoteattr(value, {"\n": "&#10;", "\r": "&#13;", "\t": "&#9;"})


class _Scope:
    """One open element: its written name and the prefixes it declared."""

    __slots__ = ("qname", "declared", "mixed", "has_children")

    def __init__(self, qname: str, declared: dict, mixed: bool = False):
        self.qname = qname
        self.declared = declared
        # text or raw markup in this element; no indentation inside it
        self.mixed = mixed
        self.has_children = False


class XmlWriter:
    """
    Incremental XML writer.

    Text written to a binary stream is encoded with the configured encoding;
    characters the encoding cannot represent become character references.

    With pretty_print, element-only content is indented by two spaces per
    level. Elements holding text or raw markup are written as is, including
    everything below them.
    """

    INDENT = "  "

    def __init__(self, output=None, encoding: str = "utf-8", write_header: bool = False,
                 pretty_print: bool = False):
        """
        Args:
            output: text or binary stream; defaults to an in-memory text buffer
            encoding: encoding for binary output and the XML declaration
            write_header: write an XML declaration before the first element
            pretty_print: indent element-only content
        """
        self.output = output if output is not None else io.StringIO()
        self.encoding = encoding
        self._binary = not isinstance(self.output, io.TextIOBase)
        self._write_header = write_header
        self.pretty_print = pretty_print
        self._started = False
        self._tag_open = False
        self._scopes: List[_Scope] = []
        self._default_namespace: Optional[XmlNamespace] = None
        self._generated = 0

    def _write(self, text: str):
        if self._binary:
            self.output.write(text.encode(self.encoding, "xmlcharrefreplace"))
        else:
            self.output.write(text)

    def _start_document(self):
        if not self._started:
            self._started = True
            if self._write_header:
                self._write(f"<?xml version='1.0' encoding='{self.encoding.upper()}'?>")
                if self.pretty_print:
                    self._write("\n")

    def _close_start_tag(self):
        if self._tag_open:
            self._write(">")
            self._tag_open = False

    def _indent(self, depth: int):
        self._write("\n" + self.INDENT * depth)

    def _mark_content(self):
        if self._scopes:
            self._scopes[-1].mixed = True

    # Namespace scope

    def lookup_prefix(self, uri: str) -> Optional[str]:
        """Innermost non-default prefix bound to uri, or None."""
        if uri == XML_NAMESPACE_URI:
            return "xml"
        shadowed = set()
        for scope in reversed(self._scopes):
            for prefix, bound_uri in scope.declared.items():
                if prefix in shadowed:
                    continue
                if prefix and bound_uri == uri:
                    return prefix
            shadowed.update(scope.declared)
        return None

    def lookup_uri(self, prefix: str) -> Optional[str]:
        """URI bound to prefix ('' for the default namespace) in the current scope."""
        for scope in reversed(self._scopes):
            if prefix in scope.declared:
                return scope.declared[prefix]
        return None

    def is_declared(self, prefix: str) -> bool:
        return self.lookup_uri(prefix) is not None

    def set_default_namespace(self, ns: Optional[XmlNamespace]):
        """Declare ns as the default namespace of the next start tag."""
        self._default_namespace = ns

    @property
    def default_namespace(self) -> Optional[XmlNamespace]:
        """Default namespace waiting to be declared on the next start tag."""
        return self._default_namespace

    def _new_prefix(self, declared: dict, preferred: Optional[str]) -> str:
        if preferred and preferred not in declared and preferred != "xml":
            return preferred
        while True:
            self._generated += 1
            prefix = f"ns{self._generated}"
            if prefix not in declared and not self.is_declared(prefix):
                return prefix

    # Writing

    def write_start_tag(self, qname: str, attributes: Iterable[Tuple[str, str]] = (),
                        declarations: Iterable[Tuple[str, str]] = (), mixed: bool = False):
        """
        Write a start tag with already resolved names.

        Args:
            qname: element name as written ('alias:local' or 'local')
            attributes: (qname, value) pairs
            declarations: (alias, uri) pairs to declare; alias '' is the default namespace
            mixed: the element will hold text or raw markup
        """
        self._start_document()
        self._close_start_tag()
        parent = self._scopes[-1] if self._scopes else None
        if parent is not None:
            parent.has_children = True
            mixed = mixed or parent.mixed
            if self.pretty_print and not parent.mixed:
                self._indent(len(self._scopes))
        declared = {}
        parts = [f"<{qname}"]
        for alias, uri in declarations:
            if alias in declared:
                continue
            declared[alias] = uri
            name = f"xmlns:{alias}" if alias else "xmlns"
            parts.append(f" {name}={escape_attribute(uri)}")
        for name, value in attributes:
            parts.append(f" {name}={escape_attribute(value)}")
        self._write("".join(parts))
        self._tag_open = True
        self._scopes.append(_Scope(qname, declared, mixed))

    def start_element(self, ns: Optional[XmlNamespace], local_name: str,
                      attributes: Optional[List[WriterAttribute]] = None,
                      namespaces: Optional[Iterable[XmlNamespace]] = None, mixed: bool = False):
        """
        Write a start tag, choosing prefixes from the namespaces in scope.

        Args:
            ns: element namespace, or None for no namespace
            local_name: element local name
            attributes: (namespace, local name, value) triples
            namespaces: namespaces to declare on this element
            mixed: the element will hold text or raw markup
        """
        declarations = {}
        if self._default_namespace is not None:
            declarations[""] = self._default_namespace.uri
            self._default_namespace = None
        for namespace in namespaces or ():
            if namespace.uri == XML_NAMESPACE_URI:
                continue
            if namespace.alias is None:
                if "" not in declarations:
                    declarations[""] = namespace.uri
                continue
            if namespace.alias not in declarations:
                declarations[namespace.alias] = namespace.uri

        def in_scope(prefix):
            if prefix in declarations:
                return declarations[prefix]
            return self.lookup_uri(prefix)

        def prefix_for(namespace: XmlNamespace, allow_default: bool) -> str:
            uri = namespace.uri
            if uri == XML_NAMESPACE_URI:
                return "xml"
            if allow_default and in_scope("") == uri:
                return ""
            if namespace.alias and in_scope(namespace.alias) == uri:
                return namespace.alias
            for prefix, bound in declarations.items():
                if prefix and bound == uri:
                    return prefix
            prefix = self.lookup_prefix(uri)
            if prefix is not None and in_scope(prefix) == uri:
                return prefix
            prefix = self._new_prefix(declarations, namespace.alias)
            declarations[prefix] = uri
            return prefix

        if ns is None or not ns.uri:
            prefix = ""
            if in_scope(""):
                # unqualified element inside a default namespace
                declarations[""] = ""
        else:
            prefix = prefix_for(ns, True)
        qname = f"{prefix}:{local_name}" if prefix else local_name

        attrs = []
        for attr_ns, attr_local, value in attributes or ():
            if attr_ns is None or not attr_ns.uri:
                attrs.append((attr_local, value))
            else:
                attrs.append((f"{prefix_for(attr_ns, False)}:{attr_local}", value))

        self.write_start_tag(qname, attrs, declarations.items(), mixed)

    def end_element(self):
        scope = self._scopes.pop()
        if self._tag_open:
            self._write("/>")
            self._tag_open = False
        else:
            if self.pretty_print and scope.has_children and not scope.mixed:
                self._indent(len(self._scopes))
            self._write(f"</{scope.qname}>")

    def characters(self, text: str):
        if not text:
            return
        self._start_document()
        self._close_start_tag()
        self._mark_content()
        self._write(escape_text(text))

    def write_unescaped(self, text: str):
        """Write markup or whitespace as is."""
        if not text:
            return
        self._start_document()
        self._close_start_tag()
        self._mark_content()
        self._write(text)

    @property
    def depth(self) -> int:
        return len(self._scopes)

    def end_document(self):
        """Close any open elements and flush the output."""
        while self._scopes:
            self.end_element()
        flush = getattr(self.output, "flush", None)
        if flush is not None:
            flush()

    def getvalue(self) -> str:
        """Content written so far (in-memory text output only)."""
        return self.output.getvalue()
