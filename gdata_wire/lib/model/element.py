"""
Generic element tree used by the XML parser and generator.

An Element holds its attributes (keyed by wire name), its child elements in
insertion order, an optional typed text value and an optional XmlBlob with
foreign XML that no metadata described. Metadata (see metadata.py) is
optional: an element without metadata is written and read using its own
name and raw values.
"""

from abc import ABC, abstractmethod
from typing import Any, Iterator, List, Optional, Tuple, Union

from ..errors import ContentValidationException
from .blob import XmlBlob
from .keys import AttributeKey, ElementKey
from .qname import QName


class Attribute:
    """A single attribute value bound to its key."""

    __slots__ = ("key", "value")

    def __init__(self, key: AttributeKey, value: Any):
        self.key = key
        self.value = value

    @property
    def name(self) -> QName:
        return self.key.id

    def __eq__(self, other):
        if not isinstance(other, Attribute):
            return NotImplemented
        return self.key.id == other.key.id and self.value == other.value

    def __repr__(self):
        return f"Attribute({self.key.id.clark!r}, {self.value!r})"


class ElementVisitor(ABC):
    """Receives callbacks during a depth-first walk of an element tree."""

    @abstractmethod
    def visit(self, parent: Optional["Element"], element: "Element", metadata) -> bool:
        """Called before the children of element. Return True to visit them."""
        pass

    @abstractmethod
    def visit_complete(self, parent: Optional["Element"], element: "Element", metadata):
        """Called after the children of element have been visited."""
        pass


def _attribute_name(key) -> QName:
    if isinstance(key, AttributeKey):
        return key.id
    if isinstance(key, QName):
        return key
    return QName.from_clark(key)


def _element_name(key) -> QName:
    if isinstance(key, ElementKey):
        return key.id
    if isinstance(key, QName):
        return key
    return QName.from_clark(key)


class Element:
    """An XML element instance."""

    def __init__(self, key: Union[ElementKey, QName, str], text_value: Any = None):
        if not isinstance(key, ElementKey):
            key = ElementKey.of(key)
        self.key = key
        self.text_value = text_value
        self.xml_blob: Optional[XmlBlob] = None
        self._attributes: dict = {}
        self._children: List["Element"] = []

    @property
    def element_id(self) -> QName:
        return self.key.id

    # Attributes

    def set_attribute_value(self, key: Union[AttributeKey, QName, str], value: Any) -> "Element":
        """Set an attribute value; a value of None removes the attribute."""
        if not isinstance(key, AttributeKey):
            key = AttributeKey(_attribute_name(key))
        if value is None:
            self._attributes.pop(key.id, None)
        else:
            self._attributes[key.id] = Attribute(key, value)
        return self

    def get_attribute_value(self, key: Union[AttributeKey, QName, str], default: Any = None) -> Any:
        attribute = self._attributes.get(_attribute_name(key))
        return attribute.value if attribute is not None else default

    def get_attribute(self, key) -> Optional[Attribute]:
        return self._attributes.get(_attribute_name(key))

    def has_attribute(self, key) -> bool:
        return _attribute_name(key) in self._attributes

    def remove_attribute(self, key):
        self._attributes.pop(_attribute_name(key), None)

    @property
    def attributes(self) -> List[Attribute]:
        return list(self._attributes.values())

    def attribute_iterator(self, metadata=None) -> Iterator[Attribute]:
        """Iterate attributes in output order, as defined by metadata if given."""
        if metadata is not None:
            return metadata.attribute_iterator(self)
        return iter(list(self._attributes.values()))

    # Child elements

    def add_element(self, child: "Element") -> "Element":
        self._children.append(child)
        return self

    def remove_element(self, child: "Element") -> bool:
        for i, existing in enumerate(self._children):
            if existing is child:
                del self._children[i]
                return True
        return False

    def get_elements(self, key) -> List["Element"]:
        name = _element_name(key)
        return [child for child in self._children if child.element_id == name]

    def get_element(self, key) -> Optional["Element"]:
        elements = self.get_elements(key)
        return elements[0] if elements else None

    def has_element(self, key) -> bool:
        return self.get_element(key) is not None

    @property
    def children(self) -> List["Element"]:
        return list(self._children)

    def element_iterator(self, metadata=None) -> Iterator[Tuple["Element", Any]]:
        """Iterate (child, child metadata) pairs in output order."""
        if metadata is not None:
            return metadata.element_iterator(self)
        return ((child, None) for child in list(self._children))

    # Lifecycle

    def resolve(self, metadata=None) -> "Element":
        """
        Validate this element tree against its metadata.

        Returns:
            This element

        Raises:
            ContentValidationException: the tree violates the metadata
        """
        if metadata is None:
            return self
        errors: List[str] = []
        metadata.validate(errors, self)
        if errors:
            raise ContentValidationException("Invalid content", "; ".join(errors), errors)
        return self

    def visit(self, visitor: ElementVisitor, metadata=None, parent: Optional["Element"] = None):
        """Walk this element and its children depth-first."""
        if visitor.visit(parent, self, metadata):
            for child, child_metadata in self.element_iterator(metadata):
                child.visit(visitor, child_metadata, self)
        visitor.visit_complete(parent, self, metadata)

    def __eq__(self, other):
        if not isinstance(other, Element):
            return NotImplemented
        return (self.element_id == other.element_id
                and self.text_value == other.text_value
                and self._attributes == other._attributes
                and self._children == other._children
                and (self.xml_blob or XmlBlob()) == (other.xml_blob or XmlBlob()))

    __hash__ = None

    def __repr__(self):
        return (f"{self.__class__.__name__}({self.element_id.clark!r}, "
                f"attributes={len(self._attributes)}, children={len(self._children)})")
