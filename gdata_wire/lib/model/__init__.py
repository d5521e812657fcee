"""
Data model: names, keys, elements, blobs and metadata.
"""

from .blob import XmlBlob
from .element import Attribute, Element, ElementVisitor
from .keys import AttributeKey, ElementKey
from .metadata import (AttributeMetadata, BlobCapture, Cardinality, ElementMetadata,
                       MetadataRegistry, XmlWireFormatProperties)
from .qname import XML_NAMESPACE, XML_NAMESPACE_URI, QName, XmlNamespace

__all__ = [
    "Attribute", "AttributeKey", "AttributeMetadata", "BlobCapture", "Cardinality",
    "Element", "ElementKey", "ElementMetadata", "ElementVisitor", "MetadataRegistry",
    "QName", "XML_NAMESPACE", "XML_NAMESPACE_URI", "XmlBlob", "XmlNamespace",
    "XmlWireFormatProperties",
]
