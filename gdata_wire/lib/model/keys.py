"""
Keys identifying element and attribute types in the data model.
"""

from dataclasses import dataclass
from typing import Optional

from .qname import QName


@dataclass(frozen=True)
class AttributeKey:
    """Identifies an attribute type: wire name plus value datatype."""
    id: QName
    datatype: type = str

    @classmethod
    def of(cls, name, datatype: type = str) -> "AttributeKey":
        if not isinstance(name, QName):
            name = QName.from_clark(name)
        return cls(name, datatype)


@dataclass(frozen=True)
class ElementKey:
    """Identifies an element type.

    Attributes:
        id: wire name of the element
        datatype: type of the text value, or None if the element has no text
        element_type: Element subclass to instantiate (None means Element)
    """
    id: QName
    datatype: Optional[type] = None
    element_type: Optional[type] = None

    @classmethod
    def of(cls, name, datatype: Optional[type] = None,
           element_type: Optional[type] = None) -> "ElementKey":
        if not isinstance(name, QName):
            name = QName.from_clark(name)
        return cls(name, datatype, element_type)
