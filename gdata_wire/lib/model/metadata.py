"""
Element metadata and the metadata registry.

Metadata describes an element type: its wire name, declared attributes and
child elements (in output order), cardinality and requiredness, how its text
value is parsed and generated, and wire-format specific properties such as a
custom XML generator. The parser looks up child metadata by wire name in the
registry; the generator uses metadata to order and name output.

Example:
    ```python
    registry = MetadataRegistry()
    ENTRY = ElementKey.of("{http://www.w3.org/2005/Atom}entry")
    TITLE = ElementKey.of("{http://www.w3.org/2005/Atom}title", str)
    registry.declare(TITLE, required=True)
    entry_meta = registry.declare(ENTRY, elements=[TITLE])
    ```
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from . import converters
from .element import Attribute, Element
from .keys import AttributeKey, ElementKey
from .qname import QName, XmlNamespace


class Cardinality(Enum):
    """How often an element may occur within its parent."""
    SINGLE = "single"
    MULTIPLE = "multiple"
    SET = "set"


@dataclass(frozen=True)
class BlobCapture:
    """Foreign XML capture settings for an element type."""
    mixed_content: bool = False
    full_text_index: bool = False


class XmlWireFormatProperties:
    """XML specific properties of an element type."""

    def __init__(self, element_generator=None):
        self.element_generator = element_generator


class AttributeMetadata:
    """Metadata for a declared attribute."""

    def __init__(self, key: AttributeKey, name: Optional[QName] = None,
                 required: bool = False,
                 selector: Optional[Callable[[Element], bool]] = None):
        self.key = key
        self._name = name
        self.required = required
        self._selector = selector

    @property
    def name(self) -> QName:
        return self._name if self._name is not None else self.key.id

    def is_selected(self, element: Element) -> bool:
        return self._selector(element) if self._selector is not None else True

    def __repr__(self):
        return f"AttributeMetadata({self.name.clark!r})"


class ElementMetadata:
    """
    Metadata for an element type.

    Instances are created through MetadataRegistry.declare, which binds them
    to the registry used to resolve child element metadata.
    """

    def __init__(self, registry: "MetadataRegistry", key: ElementKey,
                 name: Optional[QName] = None,
                 attributes: Iterable = (),
                 elements: Iterable[ElementKey] = (),
                 cardinality: Cardinality = Cardinality.SINGLE,
                 required: bool = False,
                 content_required: bool = False,
                 strict: bool = False,
                 blob_capture: Optional[BlobCapture] = None,
                 properties: Optional[XmlWireFormatProperties] = None,
                 default_namespace: Optional[XmlNamespace] = None,
                 selector: Optional[Callable[[Element], bool]] = None,
                 value_generator: Optional[Callable[[Element, "ElementMetadata"], Any]] = None,
                 value_parser: Optional[Callable[[str], Any]] = None,
                 validator: Optional[Callable[[List[str], Element], None]] = None):
        self._registry = registry
        self.key = key
        self._name = name
        self._attributes: List[AttributeMetadata] = [
            a if isinstance(a, AttributeMetadata) else AttributeMetadata(a)
            for a in attributes
        ]
        self._elements: List[ElementKey] = list(elements)
        self.cardinality = cardinality
        self.required = required
        self.content_required = content_required
        self.strict = strict
        self.blob_capture = blob_capture
        self.properties = properties
        self._default_namespace = default_namespace
        self._selector = selector
        self._value_generator = value_generator
        self._value_parser = value_parser
        self._validator = validator

    @property
    def name(self) -> QName:
        return self._name if self._name is not None else self.key.id

    @property
    def default_namespace(self) -> Optional[XmlNamespace]:
        """Namespace to use as the document default when this is the root."""
        if self._default_namespace is not None:
            return self._default_namespace
        return self.name.ns

    @property
    def attributes(self) -> List[AttributeMetadata]:
        return list(self._attributes)

    @property
    def elements(self) -> List[ElementKey]:
        return list(self._elements)

    def is_selected(self, element: Element) -> bool:
        """True if the element should be included in generated output."""
        return self._selector(element) if self._selector is not None else True

    # Attributes

    def bind_attribute(self, key: AttributeKey) -> Optional[AttributeMetadata]:
        for attribute in self._attributes:
            if attribute.key.id == key.id:
                return attribute
        return None

    def find_attribute(self, name: QName) -> Optional[AttributeKey]:
        for attribute in self._attributes:
            if attribute.name == name:
                return attribute.key
        return None

    def attribute_iterator(self, element: Element) -> Iterator[Attribute]:
        """Declared attributes in declaration order, then undeclared ones."""
        declared = set()
        for attribute_meta in self._attributes:
            declared.add(attribute_meta.key.id)
            attribute = element.get_attribute(attribute_meta.key.id)
            if attribute is not None and attribute_meta.is_selected(element):
                yield attribute
        for attribute in element.attributes:
            if attribute.key.id not in declared:
                yield attribute

    # Child elements

    def bind_element(self, key: ElementKey) -> Optional["ElementMetadata"]:
        if not any(child.id == key.id for child in self._elements):
            return None
        return self._registry.bind(key)

    def find_element(self, name: QName) -> Optional[ElementKey]:
        for child_key in self._elements:
            child_meta = self._registry.bind(child_key)
            child_name = child_meta.name if child_meta is not None else child_key.id
            if child_name == name:
                return child_key
        return None

    def element_iterator(self, element: Element) -> Iterator[Tuple[Element, Optional["ElementMetadata"]]]:
        """Declared children in declaration order, then undeclared ones."""
        children = element.children
        declared = set()
        for child_key in self._elements:
            declared.add(child_key.id)
            child_meta = self._registry.bind(child_key)
            for child in children:
                if child.element_id == child_key.id:
                    yield child, child_meta
        for child in children:
            if child.element_id not in declared:
                yield child, None

    # Values

    def generate_value(self, element: Element, metadata: "ElementMetadata") -> Any:
        """Value to write as the element's text content."""
        if self._value_generator is not None:
            return self._value_generator(element, metadata)
        return element.text_value

    @property
    def accepts_text(self) -> bool:
        """True if elements of this type carry a text value."""
        return self.key.datatype is not None or self._value_parser is not None

    def parse_value(self, text: str) -> Any:
        """Convert text content read from the wire to the element's datatype."""
        if self._value_parser is not None:
            return self._value_parser(text)
        return converters.get_value(text, self.key.datatype)

    def create_element(self) -> Element:
        element_type = self.key.element_type or Element
        return element_type(self.key)

    # Validation

    def validate(self, errors: List[str], element: Element):
        """Append a message to errors for every violation in the element tree."""
        for attribute_meta in self._attributes:
            if attribute_meta.required and not element.has_attribute(attribute_meta.key):
                errors.append(f"Missing attribute '{attribute_meta.name}' on {self.name}")
        if self.content_required and element.text_value is None and element.xml_blob is None:
            errors.append(f"Missing text content on {self.name}")
        for child_key in self._elements:
            child_meta = self._registry.bind(child_key)
            if child_meta is None:
                continue
            count = len(element.get_elements(child_key))
            if child_meta.required and count == 0:
                errors.append(f"Missing element '{child_meta.name}' in {self.name}")
            if child_meta.cardinality is Cardinality.SINGLE and count > 1:
                errors.append(f"Duplicate element '{child_meta.name}' in {self.name}")
        if self._validator is not None:
            self._validator(errors, element)
        for child, child_meta in self.element_iterator(element):
            if child_meta is not None:
                child_meta.validate(errors, child)

    def __repr__(self):
        return f"ElementMetadata({self.name.clark!r})"


class MetadataRegistry:
    """Registry of element metadata, keyed by element key."""

    def __init__(self):
        self._metadata: Dict[ElementKey, ElementMetadata] = {}

    def declare(self, key: ElementKey, **kwargs) -> ElementMetadata:
        """
        Declare (or redeclare) the metadata for an element key.

        Args:
            key: element key being described
            **kwargs: ElementMetadata options (attributes, elements, cardinality, ...)

        Returns:
            The registered ElementMetadata
        """
        metadata = ElementMetadata(self, key, **kwargs)
        self._metadata[key] = metadata
        return metadata

    def bind(self, key: ElementKey) -> Optional[ElementMetadata]:
        return self._metadata.get(key)

    def find(self, name: QName) -> Optional[ElementKey]:
        for key, metadata in self._metadata.items():
            if metadata.name == name:
                return key
        return None

    def __contains__(self, key: ElementKey) -> bool:
        return key in self._metadata

    def __len__(self):
        return len(self._metadata)
