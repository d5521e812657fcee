"""
Streaming XML generator.

XmlGenerator walks an element tree depth-first and writes it as XML. Element
and attribute names come from the metadata when it is bound, otherwise from
the element's own keys. All namespaces used anywhere in the tree are declared
once, on the root element.

Output of a single element is delegated to an ElementGenerator; element types
can provide their own through XmlWireFormatProperties.element_generator.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

from ..model import converters
from ..model.element import Element, ElementVisitor
from ..model.metadata import ElementMetadata
from ..model.qname import XML_NAMESPACE_URI, QName, XmlNamespace
from .stream_properties import StreamProperties
from .xml_writer import XmlWriter

logger = logging.getLogger(__name__)

# Marker: use the root metadata's default namespace, else the root element's namespace
USE_ROOT_ELEMENT_NAMESPACE = XmlNamespace("__USE_ROOT_ELEMENT_NAMESPACE__",
                                          "__USE_ROOT_ELEMENT_NAMESPACE__")


class _NamespaceCollector:
    """Collects the namespaces of a tree, one alias per URI, aliases unique."""

    def __init__(self):
        self.namespaces: Dict[str, XmlNamespace] = {}
        self.attribute_uris = set()
        self._aliases = set()
        self._generated = 0

    def add(self, ns: Optional[XmlNamespace], attribute: bool = False):
        if ns is None or not ns.uri or ns.uri == XML_NAMESPACE_URI:
            return
        if attribute:
            self.attribute_uris.add(ns.uri)
        if ns.uri in self.namespaces:
            return
        alias = ns.alias
        if not alias:
            alias = self._next_alias("ns")
        elif alias in self._aliases:
            logger.debug(f"Alias {alias} is already bound, renaming for {ns.uri}")
            alias = self._next_alias(alias)
        self._aliases.add(alias)
        self.namespaces[ns.uri] = XmlNamespace(alias, ns.uri)

    def _next_alias(self, base: str) -> str:
        while True:
            self._generated += 1
            alias = f"{base}{self._generated}"
            if alias not in self._aliases:
                return alias

    def collect(self, element: Element, metadata: Optional[ElementMetadata]):
        if metadata is not None and not metadata.is_selected(element):
            return
        name = metadata.name if metadata is not None else element.element_id
        self.add(name.ns)
        for attribute in element.attribute_iterator(metadata):
            attribute_meta = metadata.bind_attribute(attribute.key) if metadata is not None else None
            attribute_name = attribute_meta.name if attribute_meta is not None else attribute.key.id
            self.add(attribute_name.ns, attribute=True)
        if element.xml_blob is not None:
            for ns in element.xml_blob.namespaces:
                if ns.alias:
                    self.add(ns)
        for child, child_meta in element.element_iterator(metadata):
            self.collect(child, child_meta)


def calculate_namespaces(element: Element, metadata: Optional[ElementMetadata] = None,
                         default_namespace: Optional[XmlNamespace] = None) -> Dict[str, XmlNamespace]:
    """
    Compute the namespace declarations for the root of a tree.

    The first alias seen for a URI wins. An alias already taken by another
    URI is numbered. The default namespace is omitted unless an attribute
    needs a prefix for it.

    Returns:
        Mapping of namespace URI to the namespace to declare, in first-seen order
    """
    collector = _NamespaceCollector()
    if default_namespace is not None:
        # the default namespace keeps its own alias if a prefix is needed
        collector.add(default_namespace)
    collector.collect(element, metadata)
    namespaces = collector.namespaces
    if default_namespace is not None and default_namespace.uri not in collector.attribute_uris:
        namespaces.pop(default_namespace.uri, None)
    return namespaces


class ElementGenerator(ABC):
    """Writes a single element."""

    @abstractmethod
    def start_element(self, xw: XmlWriter, parent: Optional[Element], e: Element,
                      metadata: Optional[ElementMetadata]) -> bool:
        """
        Write the start of the element.

        Returns:
            True to continue with children, text and end tag; False if a
            complete element has been written
        """
        pass

    @abstractmethod
    def text_content(self, xw: XmlWriter, e: Element, metadata: Optional[ElementMetadata]):
        pass

    @abstractmethod
    def end_element(self, xw: XmlWriter, e: Element, metadata: Optional[ElementMetadata]):
        pass


class XmlElementGenerator(ElementGenerator):
    """Default element generator."""

    def start_element(self, xw, parent, e, metadata):
        namespaces = self.get_namespaces(xw, parent, e, metadata)
        attrs = self.get_attributes(e, metadata)
        name = self.get_name(e, metadata)
        xw.start_element(name.ns, name.local_name, attrs, namespaces,
                         mixed=self.has_content(e, metadata))
        return True

    def has_content(self, e: Element, metadata: Optional[ElementMetadata]) -> bool:
        """True if text_content will write text or captured markup."""
        if e.xml_blob is not None and not e.xml_blob.is_empty():
            return True
        value = e.text_value if metadata is None else metadata.generate_value(e, metadata)
        return bool(converters.to_wire(value))

    def get_name(self, e: Element, metadata: Optional[ElementMetadata]) -> QName:
        return e.element_id if metadata is None else metadata.name

    def get_namespaces(self, xw: XmlWriter, parent: Optional[Element], e: Element,
                       metadata: Optional[ElementMetadata]) -> Optional[Iterable[XmlNamespace]]:
        if parent is None:
            return calculate_namespaces(e, metadata, xw.default_namespace).values()
        return None

    def get_attributes(self, e: Element, metadata: Optional[ElementMetadata]) -> List[tuple]:
        attrs = []
        for attribute in e.attribute_iterator(metadata):
            attribute_meta = metadata.bind_attribute(attribute.key) if metadata is not None else None
            name = attribute_meta.name if attribute_meta is not None else attribute.key.id
            attrs.append((name.ns, name.local_name, converters.to_wire(attribute.value)))
        return attrs

    def text_content(self, xw, e, metadata):
        value = e.text_value if metadata is None else metadata.generate_value(e, metadata)
        text = converters.to_wire(value)
        if text:
            xw.characters(text)
        if e.xml_blob is not None and not e.xml_blob.is_empty():
            xw.write_unescaped(e.xml_blob.blob)

    def end_element(self, xw, e, metadata):
        xw.end_element()


DEFAULT_GENERATOR = XmlElementGenerator()


class XmlGenerator(ElementVisitor):
    """Writes element trees as XML."""

    def __init__(self, props: StreamProperties, output=None,
                 default_namespace: Optional[XmlNamespace] = USE_ROOT_ELEMENT_NAMESPACE):
        """
        Args:
            props: stream properties with the root metadata and output settings
            output: binary or text stream; defaults to an in-memory text buffer
            default_namespace: namespace to declare as default on the root,
                USE_ROOT_ELEMENT_NAMESPACE, or None for no default namespace
        """
        self.root_metadata = props.root_metadata
        self.xw = XmlWriter(output, props.encoding, props.write_header, props.pretty_print)
        self.default_namespace = default_namespace
        self._started: List[bool] = []

    def generate(self, element: Element, metadata: Optional[ElementMetadata] = None):
        """
        Write element and its subtree.

        Args:
            element: root of the tree to write
            metadata: metadata of element; defaults to the root metadata

        Raises:
            ValueError: metadata does not describe element
            OSError: writing to the output failed
        """
        if metadata is None:
            metadata = self.root_metadata
        if metadata is not None and metadata.key != element.key:
            raise ValueError(f"Element key ({element.key}) does not match "
                             f"metadata key ({metadata.key})")
        element.visit(self, metadata)
        self.xw.end_document()

    def getvalue(self) -> str:
        """Generated XML (in-memory text output only)."""
        return self.xw.getvalue()

    def _get_element_generator(self, metadata: Optional[ElementMetadata]) -> ElementGenerator:
        if metadata is not None and metadata.properties is not None:
            generator = metadata.properties.element_generator
            if generator is not None:
                return generator
        return DEFAULT_GENERATOR

    def _set_root_namespace(self, metadata: Optional[ElementMetadata], e: Element):
        root_ns = self.default_namespace
        if root_ns is USE_ROOT_ELEMENT_NAMESPACE:
            root_ns = metadata.default_namespace if metadata is not None else e.element_id.ns
        if root_ns is not None:
            self.xw.set_default_namespace(root_ns)

    def visit(self, parent, e, metadata):
        if parent is None:
            self._set_root_namespace(metadata, e)
        started = False
        if metadata is None or metadata.is_selected(e):
            started = self._get_element_generator(metadata).start_element(
                self.xw, parent, e, metadata)
        self._started.append(started)
        return started

    def visit_complete(self, parent, e, metadata):
        if not self._started.pop():
            return
        generator = self._get_element_generator(metadata)
        generator.text_content(self.xw, e, metadata)
        generator.end_element(self.xw, e, metadata)
