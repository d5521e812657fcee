"""
Container for XML content the data model does not recognize.
"""

from typing import List, Optional

from .qname import XmlNamespace


class XmlBlob:
    """Captured foreign XML.

    Attributes:
        lang: inherited or declared xml:lang of the owning element
        base: absolute xml:base of the owning element
        namespaces: namespaces declared outside the blob but used inside it
        blob: raw inner XML
        full_text: flattened text for indexing, if requested
    """

    def __init__(self):
        self.lang: Optional[str] = None
        self.base: Optional[str] = None
        self.namespaces: List[XmlNamespace] = []
        self.blob: Optional[str] = None
        self.full_text: Optional[str] = None

    def is_empty(self) -> bool:
        return not self.blob

    def __eq__(self, other):
        if not isinstance(other, XmlBlob):
            return NotImplemented
        return (self.lang == other.lang and self.base == other.base
                and self.blob == other.blob and self.full_text == other.full_text)

    def __repr__(self):
        return f"XmlBlob(lang={self.lang!r}, base={self.base!r}, blob={self.blob!r})"
