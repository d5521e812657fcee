"""
Minimal GData service client.

Sends Atom entries generated with XmlGenerator and parses responses with
XmlParser. Error responses are raised as ServiceException subclasses chosen
by HTTP status. Authentication and retries are left to the session passed in.
"""

import io
import logging
from typing import Dict, Optional, Union

import requests

from ...config import get_settings
from ..errors import exception_for_status
from ..model.element import Element
from ..model.metadata import ElementMetadata
from ..wireformats.events import create_event_source
from ..wireformats.stream_properties import StreamProperties
from ..wireformats.xml_generator import XmlGenerator
from ..wireformats.xml_parser import XmlParser
from .generic_url import GenericUrl

logger = logging.getLogger(__name__)

ATOM_CONTENT_TYPE = "application/atom+xml"


class GDataClient:
    """
    Client for GData entry operations.

    Example:
        ```python
        client = GDataClient()
        entry = client.get_entry(url, entry_metadata)
        entry.get_element(TITLE).text_value = "New title"
        client.update(url, entry, entry_metadata, etag=etag)
        ```
    """

    def __init__(self, session: Optional[requests.Session] = None,
                 version: Optional[str] = None, timeout: Optional[float] = None,
                 user_agent: Optional[str] = None):
        """
        Args:
            session: requests session to send requests with (a new one by default)
            version: GData protocol version header (default: GDATA_VERSION setting)
            timeout: request timeout in seconds (default: HTTP_TIMEOUT setting)
            user_agent: User-Agent header (default: USER_AGENT setting)
        """
        settings = get_settings()
        self.session = session if session is not None else requests.Session()
        self.version = version or settings.gdata_version
        self.timeout = timeout if timeout is not None else settings.http_timeout
        self.user_agent = user_agent or settings.user_agent

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {
            "GData-Version": self.version,
            "User-Agent": self.user_agent,
        }
        if extra:
            headers.update(extra)
        return headers

    def _execute(self, method: str, url: Union[str, GenericUrl],
                 headers: Optional[Dict[str, str]] = None,
                 data: Optional[bytes] = None) -> requests.Response:
        url = str(url)
        logger.debug(f"{method} {url}")
        response = self.session.request(method, url, headers=self._headers(headers),
                                        data=data, timeout=self.timeout)
        if not 200 <= response.status_code < 300:
            raise self._error(response)
        return response

    @staticmethod
    def _error(response: requests.Response):
        e = exception_for_status(response.status_code, response.reason)
        e.set_response(response.headers.get("Content-Type"), response.text)
        e.headers = dict(response.headers)
        logger.warning(f"Request failed with HTTP {response.status_code}: {response.reason}")
        return e

    def _generate(self, element: Element, metadata: Optional[ElementMetadata]) -> bytes:
        output = io.BytesIO()
        XmlGenerator(StreamProperties(metadata), output).generate(element, metadata)
        return output.getvalue()

    def _parse(self, response: requests.Response, metadata: Optional[ElementMetadata],
               element: Optional[Element] = None) -> Element:
        if element is None:
            element = metadata.create_element()
        parser = XmlParser(StreamProperties(metadata), create_event_source(response.content))
        return parser.parse(element)

    def get_entry(self, url: Union[str, GenericUrl], metadata: ElementMetadata,
                  etag: Optional[str] = None) -> Element:
        """
        Retrieve and parse an entry (or feed).

        Args:
            url: resource URL
            metadata: metadata of the expected root element
            etag: if given, only return the entry if it changed (If-None-Match)

        Raises:
            NotModifiedException: etag given and the entry did not change
            ServiceException: any other error response
            ParseException: the response is not a valid entry
        """
        headers = {"If-None-Match": etag} if etag else None
        return self._parse(self._execute("GET", url, headers), metadata)

    def insert(self, url: Union[str, GenericUrl], element: Element,
               metadata: ElementMetadata) -> Element:
        """POST a new entry; returns the entry as stored by the service."""
        response = self._execute("POST", url, {"Content-Type": ATOM_CONTENT_TYPE},
                                 self._generate(element, metadata))
        return self._parse(response, metadata)

    def update(self, url: Union[str, GenericUrl], element: Element,
               metadata: ElementMetadata, etag: Optional[str] = None) -> Element:
        """
        PUT an entry; with etag, only if it was not modified (If-Match).

        Raises:
            PreconditionFailedException: the entry changed since etag
        """
        headers = {"Content-Type": ATOM_CONTENT_TYPE}
        if etag:
            headers["If-Match"] = etag
        response = self._execute("PUT", url, headers, self._generate(element, metadata))
        return self._parse(response, metadata)

    def delete(self, url: Union[str, GenericUrl], etag: Optional[str] = None):
        """DELETE an entry; with etag, only if it was not modified (If-Match)."""
        headers = {"If-Match": etag} if etag else None
        self._execute("DELETE", url, headers)
