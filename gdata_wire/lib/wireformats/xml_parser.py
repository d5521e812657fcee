"""
Streaming XML parser.

XmlParser receives SAX-style events from an XmlEventSource and builds an
element tree rooted at a caller supplied element. Each recognized element is
processed by an ElementHandler kept on an explicit stack; elements no handler
recognizes are written verbatim into the XmlBlob of the closest handler that
accepts foreign XML.

Example:
    ```python
    props = StreamProperties(root_metadata=entry_metadata)
    parser = XmlParser(props, LxmlEventSource(response.content))
    entry = parser.parse(entry_metadata.create_element())
    ```

Parse failures raised while handling an event are reported as ParseException
prefixed with the document position: "[Line L, Column C, element q] ".
"""

import logging
from typing import Dict, List, Optional

from ..errors import ErrorCode, ParseException
from ..model.element import Element
from ..model.metadata import ElementMetadata
from ..model.qname import XML_NAMESPACE_URI, QName, XmlNamespace
from ..utils.uri_utils import resolve_base
from .element_handler import ElementHandler, XmlHandler
from .events import Attributes, Locator, XmlEventSource
from .stream_properties import StreamProperties

logger = logging.getLogger(__name__)


class NamespaceDecl:
    """A namespace declaration in scope, flagged if made inside foreign XML."""

    __slots__ = ("ns", "in_blob")

    def __init__(self, ns: XmlNamespace):
        self.ns = ns
        self.in_blob = False


class XmlParser:
    """Builds an element tree from SAX-style XML events."""

    def __init__(self, props: StreamProperties, event_source: XmlEventSource):
        if props is None:
            raise ValueError("stream properties must not be None")
        if event_source is None:
            raise ValueError("event source must not be None")
        self.props = props
        self.event_source = event_source
        self.root_handler: Optional[ElementHandler] = None
        self.root_namespace: str = ""
        self.root_element_name: Optional[str] = None
        self.locator: Optional[Locator] = None
        self.namespace_map: Dict[str, List[NamespaceDecl]] = {}
        self.element_namespaces: List[XmlNamespace] = []
        self._handlers: List[ElementHandler] = []
        self._unrecognized_elements = 0

    @property
    def current_handler(self) -> Optional[ElementHandler]:
        return self._handlers[-1] if self._handlers else None

    def parse(self, element: Element) -> Element:
        """
        Parse the document into element.

        Args:
            element: root element to populate

        Returns:
            The populated and validated root element

        Raises:
            ParseException: the document is not well-formed or does not match the metadata
            ContentValidationException: the parsed tree fails metadata validation
            OSError: reading the document failed
        """
        metadata = self.props.root_metadata
        self.root_handler = self.create_root_handler(element, metadata)
        name = metadata.name if metadata is not None else element.element_id
        self.root_namespace = name.uri or ""
        self.root_element_name = name.local_name

        try:
            self.event_source.parse(self)
        except ParseException as e:
            if e.matches(ErrorCode.INVALID_XML):
                logger.debug(f"Malformed XML: {e}")
                raise
            self.throw_parse_exception(e)
        except OSError as e:
            logger.warning(f"I/O error while parsing XML: {e}")
            raise

        return element.resolve(metadata)

    def create_root_handler(self, element: Element,
                            metadata: Optional[ElementMetadata]) -> ElementHandler:
        return XmlHandler(element, metadata)

    def throw_parse_exception(self, e: ParseException):
        """Re-raise e with the current document position, if known."""
        if self.locator is None:
            logger.debug(f"Parse error: {e}")
            raise e

        location = f"[{self.locator.describe()}"
        if self.current_handler is not None:
            location += f", element {self.current_handler.qname}"
        location += "] "

        logger.debug(f"{location}{e}")
        raise e.with_location(location) from e

    # Event callbacks

    def set_document_locator(self, locator: Locator):
        self.locator = locator

    def start_prefix_mapping(self, alias: str, uri: str):
        ns = XmlNamespace(alias or "", uri or "")
        self.namespace_map.setdefault(ns.alias, []).append(NamespaceDecl(ns))
        self.element_namespaces.append(ns)

    def end_prefix_mapping(self, alias: str):
        self.namespace_map[alias or ""].pop()

    def start_element(self, uri: str, local_name: str, qname: str, attrs: Attributes):
        logger.debug(f"Start element {qname}")
        uri = uri or ""

        parent_handler = self.current_handler
        handler = None

        if parent_handler is None:
            if uri == self.root_namespace and local_name == self.root_element_name:
                handler = self.root_handler
            else:
                raise ParseException(
                    "Invalid root element, expected (namespace uri:local name) of "
                    f"({self.root_namespace}:{self.root_element_name}), "
                    f"found ({uri}:{local_name})",
                    error_code=ErrorCode.INVALID_ROOT_ELEMENT)
        elif self._unrecognized_elements == 0:
            handler = parent_handler.get_child_handler(
                self._create_qname(qname, uri, local_name), attrs, list(self.element_namespaces))

        if handler is not None and self._unrecognized_elements == 0:
            self._handlers.append(handler)
            handler.qname = qname

            # Propagate xml:lang and xml:base.
            if parent_handler is not None:
                handler.xml_lang = parent_handler.xml_lang
                handler.xml_base = parent_handler.xml_base

            self._process_attributes(handler, attrs)

            handler.ok_to_initialize_xml_blob = False
            if handler.xml_blob is not None:
                if handler.xml_lang is not None:
                    handler.xml_blob.lang = handler.xml_lang
                if handler.xml_base is not None:
                    handler.xml_blob.base = handler.xml_base
        else:
            self._start_blob_element(parent_handler, qname, attrs)

        self.element_namespaces = []

    def _process_attributes(self, handler: ElementHandler, attrs: Attributes):
        # First pass: xml:lang and xml:base.
        for attr in attrs:
            if attr.uri != XML_NAMESPACE_URI:
                continue
            if attr.local_name == "lang":
                handler.xml_lang = attr.value
                logger.debug(f"xml:lang={attr.value}")
            elif attr.local_name == "base":
                try:
                    handler.xml_base = resolve_base(handler.xml_base, attr.value)
                except ValueError as e:
                    raise ParseException(ErrorCode.INVALID_URI, str(e))
                logger.debug(f"xml:base={handler.xml_base}")

        # Second pass: every attribute, in document order.
        for attr in attrs:
            logger.debug(f"Attribute {attr.local_name}='{attr.value}'")
            try:
                handler.process_attribute(
                    self._create_qname(attr.qname, attr.uri, attr.local_name), attr.value)
            except ValueError as e:
                raise ParseException(f"Invalid integer format. {e}",
                                     error_code=ErrorCode.INVALID_ATTRIBUTE_VALUE)

    def _start_blob_element(self, handler: Optional[ElementHandler], qname: str,
                            attrs: Attributes):
        self._unrecognized_elements += 1

        # Declarations made on this element are inside the blob.
        for ns in self.element_namespaces:
            decls = self.namespace_map.get(ns.alias)
            if decls:
                decls[-1].in_blob = True

        if handler is None or handler.inner_xml is None:
            return

        declarations = [(ns.alias, ns.uri) for ns in self.element_namespaces]
        self._ensure_blob_namespace(handler, qname, declarations)

        attr_list = []
        for attr in attrs:
            if ":" in attr.qname:
                self._ensure_blob_namespace(handler, attr.qname, declarations)
            attr_list.append((attr.qname, attr.value))
            if handler.full_text_index:
                handler.full_text.append(attr.value)
                handler.full_text.append(" ")

        handler.inner_xml.write_start_tag(qname, attr_list, declarations)

    def _ensure_blob_namespace(self, handler: ElementHandler, qname: str, declarations: list):
        """Record and declare a namespace used in the blob but declared outside it."""
        alias = qname.split(":", 1)[0] if ":" in qname else ""
        if alias == "xml":
            return

        decls = self.namespace_map.get(alias)
        decl = decls[-1] if decls else None
        if decl is None:
            if alias:
                raise ParseException(ErrorCode.UNDECLARED_PREFIX,
                                     f"Namespace alias '{alias}' is not declared.")
            return
        if decl.in_blob or not decl.ns.uri:
            return

        if alias not in handler.blob_namespaces:
            handler.blob_namespaces.add(alias)
            handler.xml_blob.namespaces.append(XmlNamespace(alias, decl.ns.uri))

        already = any(a == alias for a, _ in declarations)
        if not already and handler.inner_xml.lookup_uri(alias) != decl.ns.uri:
            declarations.append((alias, decl.ns.uri))

    def end_element(self, uri: str, local_name: str, qname: str):
        logger.debug(f"End element {qname}")

        if self._unrecognized_elements > 0:
            self._unrecognized_elements -= 1
            handler = self.current_handler
            if handler is not None and handler.inner_xml is not None:
                handler.inner_xml.end_element()
            return

        handler = self.current_handler
        if handler is None:
            return

        if handler.xml_blob is not None:
            blob = handler.inner_xml.getvalue()
            if blob:
                handler.xml_blob.blob = blob
                if handler.full_text_index:
                    handler.xml_blob.full_text = "".join(handler.full_text)

        if handler.buffer is not None:
            handler.value = "".join(handler.buffer)
            handler.buffer = None

        try:
            handler.process_end_element()
        except ValueError as e:
            raise ParseException(f"Invalid text value. {e}",
                                 error_code=ErrorCode.INVALID_ATTRIBUTE_VALUE)

        self._handlers.pop()

    def characters(self, text: str):
        handler = self.current_handler
        if handler is None:
            return

        if self._unrecognized_elements == 0:
            if handler.buffer is None:
                handler.buffer = []
            handler.buffer.append(text)

        if handler.inner_xml is not None and (handler.mixed_content or self._unrecognized_elements > 0):
            if handler.full_text_index:
                handler.full_text.append(text)
                handler.full_text.append("\n")
            handler.inner_xml.characters(text)

    def ignorable_whitespace(self, text: str):
        handler = self.current_handler
        if handler is not None and handler.inner_xml is not None and (
                handler.mixed_content or self._unrecognized_elements > 0):
            handler.inner_xml.write_unescaped(text)

    @staticmethod
    def _create_qname(qname: str, uri: str, local_name: str) -> QName:
        ns = None
        if uri:
            parts = qname.split(":")
            ns = XmlNamespace(parts[0] if len(parts) == 2 else None, uri)
        return QName(ns, local_name)
