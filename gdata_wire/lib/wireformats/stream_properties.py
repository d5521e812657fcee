"""
Per-stream settings shared by the XML parser and generator.
"""

from typing import Optional

from ..model.metadata import ElementMetadata


class StreamProperties:
    """
    Properties of one parse or generate session.

    Attributes:
        root_metadata -- metadata of the document's root element, or None to
            read and write elements by their own names
        encoding -- output encoding for generated documents
        write_header -- write an XML declaration when generating
        pretty_print -- indent element-only content when generating
    """

    def __init__(self, root_metadata: Optional[ElementMetadata] = None,
                 encoding: Optional[str] = None, write_header: Optional[bool] = None,
                 pretty_print: Optional[bool] = None):
        if encoding is None or write_header is None or pretty_print is None:
            from ...config import get_settings
            settings = get_settings()
            if encoding is None:
                encoding = settings.xml_encoding
            if write_header is None:
                write_header = settings.xml_write_header
            if pretty_print is None:
                pretty_print = settings.xml_pretty_print
        self.root_metadata = root_metadata
        self.encoding = encoding
        self.write_header = write_header
        self.pretty_print = pretty_print
