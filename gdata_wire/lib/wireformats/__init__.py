"""
XML wire format: event sources, parser, generator and writer.
"""

from .element_handler import ElementHandler, XmlHandler
from .events import (Attributes, ExpatEventSource, Locator, LxmlEventSource, SaxAttribute,
                     XmlEventSource, create_event_source)
from .stream_properties import StreamProperties
from .xml_generator import (USE_ROOT_ELEMENT_NAMESPACE, ElementGenerator, XmlElementGenerator,
                            XmlGenerator, calculate_namespaces)
from .xml_parser import XmlParser
from .xml_writer import XmlWriter

__all__ = [
    "Attributes", "ElementGenerator", "ElementHandler", "ExpatEventSource", "Locator",
    "LxmlEventSource", "SaxAttribute", "StreamProperties", "USE_ROOT_ELEMENT_NAMESPACE",
    "XmlElementGenerator", "XmlEventSource", "XmlGenerator", "XmlHandler", "XmlParser",
    "XmlWriter", "calculate_namespaces", "create_event_source",
]
