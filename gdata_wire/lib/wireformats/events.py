"""
XML event sources.

An event source reads an XML document and drives a handler with SAX-style
callbacks:

    set_document_locator(locator)
    start_prefix_mapping(alias, uri)
    start_element(uri, local_name, qname, attrs)
    characters(text)
    ignorable_whitespace(text)
    end_element(uri, local_name, qname)
    end_prefix_mapping(alias)

Namespace URIs and aliases are '' when absent. The XmlParser is such a
handler; tests can drive it directly with the same calls.

Two sources are provided: LxmlEventSource (default) reads through lxml and
reports line numbers, ExpatEventSource reads through the stdlib expat binding
and reports line and column numbers.
"""

import io
import logging
import os
from abc import ABC, abstractmethod
from typing import Iterator, List, NamedTuple, Optional
from xml.parsers import expat

from lxml import etree

from ..errors import ErrorCode, ParseException
from ..model.qname import XML_NAMESPACE_URI

logger = logging.getLogger(__name__)


class SaxAttribute(NamedTuple):
    """One attribute of a start tag, in document order."""
    uri: str
    local_name: str
    qname: str
    value: str


class Attributes:
    """The attributes of a start tag, in document order."""

    def __init__(self, items: Optional[List[SaxAttribute]] = None):
        self._items = list(items or [])

    def __len__(self):
        return len(self._items)

    def __iter__(self) -> Iterator[SaxAttribute]:
        return iter(self._items)

    def __getitem__(self, index: int) -> SaxAttribute:
        return self._items[index]

    def get_value(self, uri: str, local_name: str, default: Optional[str] = None) -> Optional[str]:
        for item in self._items:
            if item.uri == (uri or "") and item.local_name == local_name:
                return item.value
        return default

    def __repr__(self):
        return f"Attributes({self._items!r})"


class Locator:
    """Current position in the document being parsed."""

    def __init__(self, line_number: Optional[int] = None, column_number: Optional[int] = None):
        self.line_number = line_number
        self.column_number = column_number

    def describe(self) -> str:
        """Location as 'Line L, Column C' (column omitted if unknown)."""
        if self.column_number is None:
            return f"Line {self.line_number}"
        return f"Line {self.line_number}, Column {self.column_number}"


class XmlEventSource(ABC):
    """Reads XML and reports it to a handler as SAX-style events."""

    @abstractmethod
    def parse(self, handler) -> None:
        """
        Parse the whole document, calling handler for each event.

        Raises:
            ParseException: the document is not well-formed XML
            OSError: reading the underlying stream failed
        """
        pass


def _open_binary(source):
    """Normalize bytes, text, paths and file objects to a readable binary source."""
    if isinstance(source, (bytes, bytearray)):
        return io.BytesIO(bytes(source))
    if isinstance(source, os.PathLike):
        return os.fspath(source)
    return source


class LxmlEventSource(XmlEventSource):
    """
    Event source backed by lxml's iterparse.

    Text content is reported once it is complete: the text before a child
    element when the child starts, the text after the last child when the
    element ends. Comments and processing instructions are dropped. Entities
    declared in the internal subset are expanded; external DTDs and entities
    are never loaded, and a reference to an external entity is rejected.
    """

    def __init__(self, source):
        """
        Args:
            source: bytes, a binary file object, or a filesystem path
        """
        self._source = source

    @classmethod
    def from_string(cls, text: str) -> "LxmlEventSource":
        return cls(text.encode("utf-8"))

    def parse(self, handler) -> None:
        locator = Locator()
        handler.set_document_locator(locator)

        pending_ns = []
        declared_stack = []
        context = etree.iterparse(
            _open_binary(self._source),
            events=("start", "end", "start-ns"),
            remove_comments=True,
            remove_pis=True,
            resolve_entities="internal",
            load_dtd=False,
            no_network=True,
        )
        try:
            for event, item in context:
                if event == "start-ns":
                    prefix, uri = item
                    pending_ns.append((prefix or "", uri))

                elif event == "start":
                    locator.line_number = item.sourceline
                    text = self._text_before(item)
                    if text:
                        handler.characters(text)

                    declared_stack.append([prefix for prefix, _ in pending_ns])
                    for prefix, uri in pending_ns:
                        handler.start_prefix_mapping(prefix, uri)
                    pending_ns = []

                    uri, local_name, qname = self._names(item)
                    handler.start_element(uri, local_name, qname, self._attributes(item))

                elif event == "end":
                    self._check_entities(item)
                    text = item[-1].tail if len(item) else item.text
                    if text:
                        handler.characters(text)
                    uri, local_name, qname = self._names(item)
                    handler.end_element(uri, local_name, qname)
                    for prefix in reversed(declared_stack.pop()):
                        handler.end_prefix_mapping(prefix)
                    # Children have been fully reported; keep only this element's tail.
                    del item[:]

        except etree.XMLSyntaxError as e:
            line, column = (max(n, 1) for n in e.position)
            logger.debug(f"XML syntax error at line {line}, column {column}: {e}")
            raise ParseException(ErrorCode.INVALID_XML, str(e)).with_location(
                f"[Line {line}, Column {column}] ") from e

    @staticmethod
    def _check_entities(elem):
        for child in elem:
            if isinstance(child, etree._Entity):
                raise ParseException(ErrorCode.INVALID_XML,
                                     f"Unresolved entity reference {child.text}").with_location(
                    f"[Line {elem.sourceline}] ")

    @staticmethod
    def _text_before(elem) -> Optional[str]:
        previous = elem.getprevious()
        if previous is not None:
            return previous.tail
        parent = elem.getparent()
        return parent.text if parent is not None else None

    @staticmethod
    def _names(elem):
        qn = etree.QName(elem)
        local_name = qn.localname
        prefix = elem.prefix
        qname = f"{prefix}:{local_name}" if prefix else local_name
        return qn.namespace or "", local_name, qname

    @staticmethod
    def _attributes(elem) -> Attributes:
        items = []
        for key, value in elem.attrib.items():
            qn = etree.QName(key)
            uri = qn.namespace or ""
            prefix = None
            if uri == XML_NAMESPACE_URI:
                prefix = "xml"
            elif uri:
                for alias, ns_uri in elem.nsmap.items():
                    if alias and ns_uri == uri:
                        prefix = alias
                        break
            qname = f"{prefix}:{qn.localname}" if prefix else qn.localname
            items.append(SaxAttribute(uri, qn.localname, qname, value))
        return Attributes(items)


class _ExpatLocator(Locator):
    """Locator reading the live position of an expat parser."""

    def __init__(self, parser):
        super().__init__()
        self._parser = parser

    @property
    def line_number(self):
        return self._parser.CurrentLineNumber

    @line_number.setter
    def line_number(self, value):
        pass

    @property
    def column_number(self):
        return self._parser.CurrentColumnNumber + 1

    @column_number.setter
    def column_number(self, value):
        pass


class ExpatEventSource(XmlEventSource):
    """Event source backed by the stdlib expat binding."""

    def __init__(self, source):
        """
        Args:
            source: bytes, a binary file object, or a filesystem path
        """
        self._source = source

    @classmethod
    def from_string(cls, text: str) -> "ExpatEventSource":
        return cls(text.encode("utf-8"))

    @staticmethod
    def _split(name: str):
        """Split an expat 'uri local [prefix]' triplet into (uri, local, qname)."""
        parts = name.split(" ")
        if len(parts) == 1:
            return "", parts[0], parts[0]
        if len(parts) == 3:
            return parts[0], parts[1], f"{parts[2]}:{parts[1]}"
        return parts[0], parts[1], parts[1]

    def parse(self, handler) -> None:
        parser = expat.ParserCreate(namespace_separator=" ")
        parser.namespace_prefixes = True
        parser.ordered_attributes = True
        parser.buffer_text = True
        parser.SetParamEntityParsing(expat.XML_PARAM_ENTITY_PARSING_NEVER)
        # external entities are never loaded; returning 0 makes expat fail
        parser.ExternalEntityRefHandler = lambda context, base, system_id, public_id: 0
        handler.set_document_locator(_ExpatLocator(parser))

        def start_element(name, attrs):
            uri, local_name, qname = self._split(name)
            items = []
            for i in range(0, len(attrs), 2):
                a_uri, a_local, a_qname = self._split(attrs[i])
                if a_uri == XML_NAMESPACE_URI:
                    a_qname = f"xml:{a_local}"
                items.append(SaxAttribute(a_uri, a_local, a_qname, attrs[i + 1]))
            handler.start_element(uri, local_name, qname, Attributes(items))

        def end_element(name):
            handler.end_element(*self._split(name))

        parser.StartElementHandler = start_element
        parser.EndElementHandler = end_element
        parser.CharacterDataHandler = handler.characters
        parser.StartNamespaceDeclHandler = (
            lambda prefix, uri: handler.start_prefix_mapping(prefix or "", uri or ""))
        parser.EndNamespaceDeclHandler = lambda prefix: handler.end_prefix_mapping(prefix or "")

        source = _open_binary(self._source)
        try:
            if isinstance(source, (str, bytes)):
                with open(source, "rb") as f:
                    parser.ParseFile(f)
            else:
                parser.ParseFile(source)
        except expat.ExpatError as e:
            logger.debug(f"XML syntax error at line {e.lineno}, column {e.offset}: {e}")
            raise ParseException(ErrorCode.INVALID_XML, expat.ErrorString(e.code)).with_location(
                f"[Line {e.lineno}, Column {e.offset + 1}] ") from e


EVENT_SOURCES = {
    "lxml": LxmlEventSource,
    "expat": ExpatEventSource,
}


def create_event_source(source, kind: Optional[str] = None) -> XmlEventSource:
    """
    Create an event source of the configured kind.

    Args:
        source: bytes, a binary file object, or a filesystem path
        kind: 'lxml' or 'expat'; defaults to the XML_EVENT_SOURCE setting
    """
    if kind is None:
        from ...config import get_settings
        kind = get_settings().xml_event_source
    try:
        return EVENT_SOURCES[kind](source)
    except KeyError:
        raise ValueError(f"Unknown XML event source '{kind}'")
