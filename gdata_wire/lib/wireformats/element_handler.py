"""
Element handlers: the per-element state of the XML parser.

The parser keeps one handler per open recognized element on its stack. A
handler decides which child elements it accepts, consumes attributes and
text, and optionally captures foreign XML it does not recognize into an
XmlBlob.

ElementHandler implements the generic protocol; XmlHandler binds it to the
element model and its metadata.
"""

import logging
from typing import List, Optional

from ..errors import ErrorCode, ParseException
from ..model import converters
from ..model.blob import XmlBlob
from ..model.element import Element
from ..model.keys import AttributeKey, ElementKey
from ..model.metadata import Cardinality, ElementMetadata
from ..model.qname import QName, XmlNamespace
from ..utils.uri_utils import resolve_base
from .events import Attributes
from .xml_writer import XmlWriter

logger = logging.getLogger(__name__)


class ElementHandler:
    """
    Base class for element handlers.

    Blob capture is configured when the handler is constructed, or with
    initialize_xml_blob() until the parser has processed the element's
    attributes.

    Attributes:
        qname -- element name as written in the document (diagnostics only)
        value -- character data of the element, None if there was none
        xml_lang -- in-scope xml:lang
        xml_base -- in-scope absolute xml:base
        xml_blob -- blob receiving unrecognized XML, or None
        mixed_content -- text runs are captured into the blob as well
        full_text_index -- collect text and attribute values for indexing
        inner_xml -- writer accumulating the blob's XML
        full_text -- fragments of the full text index
        blob_namespaces -- aliases already recorded in xml_blob.namespaces
    """

    def __init__(self, xml_blob: Optional[XmlBlob] = None, mixed_content: bool = False,
                 full_text_index: bool = False):
        self.qname: Optional[str] = None
        self.value: Optional[str] = None
        self.buffer: Optional[List[str]] = None
        self.xml_lang: Optional[str] = None
        self.xml_base: Optional[str] = None
        self.xml_blob: Optional[XmlBlob] = None
        self.mixed_content = False
        self.full_text_index = False
        self.inner_xml: Optional[XmlWriter] = None
        self.full_text: Optional[List[str]] = None
        self.blob_namespaces: set = set()
        self.ok_to_initialize_xml_blob = True
        if xml_blob is not None:
            self.initialize_xml_blob(xml_blob, mixed_content, full_text_index)

    def initialize_xml_blob(self, xml_blob: XmlBlob, mixed_content: bool = False,
                            full_text_index: bool = False):
        """
        Capture unrecognized XML below this element into xml_blob.

        Raises:
            RuntimeError: the element's attributes have already been processed
        """
        if not self.ok_to_initialize_xml_blob:
            raise RuntimeError(
                "XML blob must be initialized before the element's attributes are processed")
        self.xml_blob = xml_blob
        self.mixed_content = mixed_content
        self.full_text_index = full_text_index
        self.inner_xml = XmlWriter()
        if full_text_index:
            self.full_text = []

    def get_child_handler(self, qname: QName, attrs: Attributes,
                          namespaces: List[XmlNamespace]) -> Optional["ElementHandler"]:
        """
        Return the handler for a child element.

        Returns:
            A handler, or None to capture the child as foreign XML

        Raises:
            ParseException: the child is not recognized and foreign XML is not accepted
        """
        if self.xml_blob is None:
            raise ParseException(ErrorCode.UNRECOGNIZED_ELEMENT,
                                 f"Unrecognized element '{qname.local_name}'.")
        logger.debug(f"No child handler for {qname.local_name}. Treating as arbitrary foreign XML.")
        return None

    def process_attribute(self, qname: QName, value: str):
        pass

    def process_end_element(self):
        """Called at the end tag, once value holds the element's text."""
        if self.value is not None and self.value.strip() and not self.mixed_content:
            raise ParseException(ErrorCode.TEXT_NOT_ALLOWED)

    def get_absolute_uri(self, value: str) -> str:
        """Resolve a URI attribute value against the in-scope xml:base."""
        try:
            return resolve_base(self.xml_base, value)
        except ValueError as e:
            raise ParseException(ErrorCode.INVALID_URI, str(e))

    def get_boolean_attribute(self, attrs: Attributes, name: str) -> Optional[bool]:
        value = attrs.get_value("", name)
        try:
            return self.parse_boolean_value(value)
        except ParseException:
            raise ParseException(ErrorCode.INVALID_ATTRIBUTE_VALUE,
                                 f"Invalid value for {name} attribute: {value}")

    def parse_boolean_value(self, value: Optional[str]) -> Optional[bool]:
        if value is None:
            return None
        if value.lower() == "false" or value == "0":
            return False
        if value.lower() == "true" or value == "1":
            return True
        raise ParseException(ErrorCode.INVALID_BOOLEAN_ATTRIBUTE,
                             f"Invalid value for boolean attribute: {value}")


class XmlHandler(ElementHandler):
    """
    Handler that reads an element into the element model.

    Child elements are looked up in the element's metadata. Undeclared
    children are read as generic elements, captured as foreign XML when the
    metadata requests blob capture, or rejected when the metadata is strict.
    """

    def __init__(self, element: Element, metadata: Optional[ElementMetadata] = None,
                 set_parent: Optional[Element] = None):
        """
        Args:
            element: element receiving the parsed content
            metadata: metadata of the element, or None for a generic element
            set_parent: parent to add element to once it is complete
                (SET cardinality), None if it was added on creation
        """
        blob_capture = metadata.blob_capture if metadata is not None else None
        if blob_capture is not None:
            super().__init__(XmlBlob(), blob_capture.mixed_content,
                             blob_capture.full_text_index)
        else:
            super().__init__()
        self.element = element
        self.metadata = metadata
        self._set_parent = set_parent

    def get_child_handler(self, qname, attrs, namespaces):
        child_key = self.metadata.find_element(qname) if self.metadata is not None else None

        if child_key is None:
            if self.xml_blob is not None:
                return super().get_child_handler(qname, attrs, namespaces)
            if self.metadata is not None and self.metadata.strict:
                raise ParseException(ErrorCode.UNRECOGNIZED_ELEMENT,
                                     f"Unrecognized element '{qname.local_name}'.")
            logger.debug(f"Undeclared element {qname.clark}, reading as generic element")
            child = Element(ElementKey(qname))
            self.element.add_element(child)
            return XmlHandler(child, None)

        child_meta = self.metadata.bind_element(child_key)
        if child_meta is None:
            child = Element(child_key)
            self.element.add_element(child)
            return XmlHandler(child, None)

        if child_meta.cardinality is Cardinality.SINGLE and self.element.has_element(child_key):
            raise ParseException(ErrorCode.DUPLICATE_ELEMENT,
                                 f"Duplicate element '{qname.local_name}'.")

        child = child_meta.create_element()
        if child_meta.cardinality is Cardinality.SET:
            return XmlHandler(child, child_meta, set_parent=self.element)
        self.element.add_element(child)
        return XmlHandler(child, child_meta)

    def process_attribute(self, qname, value):
        key = self.metadata.find_attribute(qname) if self.metadata is not None else None
        if key is None:
            key = AttributeKey(qname)
        if self.element.has_attribute(key):
            raise ParseException(ErrorCode.DUPLICATE_ATTRIBUTE,
                                 f"Duplicate attribute '{qname.qualified_name}'.")
        self.element.set_attribute_value(key, converters.get_value(value, key.datatype))

    def process_end_element(self):
        metadata = self.metadata

        if self.mixed_content:
            # text stays in the blob together with the markup around it
            pass
        elif metadata is not None and not metadata.accepts_text:
            super().process_end_element()
        elif self.value is not None and self.value.strip():
            text = self.value.strip()
            self.element.text_value = metadata.parse_value(text) if metadata is not None else text

        if self.xml_blob is not None and not self.xml_blob.is_empty():
            self.element.xml_blob = self.xml_blob

        if metadata is not None:
            self._check_required(metadata)

        if self._set_parent is not None:
            if self.element not in self._set_parent.get_elements(self.element.element_id):
                self._set_parent.add_element(self.element)

    def _check_required(self, metadata: ElementMetadata):
        for attribute_meta in metadata.attributes:
            if attribute_meta.required and not self.element.has_attribute(attribute_meta.key):
                raise ParseException(ErrorCode.MISSING_ATTRIBUTE,
                                     f"Missing attribute '{attribute_meta.name.qualified_name}'.")
        for child_key in metadata.elements:
            child_meta = metadata.bind_element(child_key)
            if child_meta is not None and child_meta.required and not self.element.has_element(child_key):
                raise ParseException(ErrorCode.MISSING_ELEMENT,
                                     f"Missing element '{child_meta.name.qualified_name}'.")
        if metadata.content_required and self.element.text_value is None and self.element.xml_blob is None:
            raise ParseException(ErrorCode.MISSING_TEXT_CONTENT,
                                 f"Missing text content in '{self.qname}'.")
