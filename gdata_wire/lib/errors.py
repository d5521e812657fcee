"""
Exception hierarchy for the GData wire layer and service client.

Content problems (bad XML, schema violations) are reported as
ParseException or ContentValidationException. HTTP error responses are mapped
to ServiceException subclasses by status code. I/O failures are not wrapped:
OSError and requests exceptions propagate as raised.
"""

from enum import Enum
from typing import Dict, List, Optional, Union


class ErrorCode(Enum):
    """Error kinds reported for content problems."""
    UNRECOGNIZED_ELEMENT = "Unrecognized element"
    TEXT_NOT_ALLOWED = "This element must not have any text() data"
    INVALID_BOOLEAN_ATTRIBUTE = "Invalid value for boolean attribute"
    INVALID_ATTRIBUTE_VALUE = "Invalid value for attribute"
    DUPLICATE_ATTRIBUTE = "Duplicate attribute"
    DUPLICATE_ELEMENT = "Duplicate element"
    MISSING_ATTRIBUTE = "Missing attribute"
    MISSING_ELEMENT = "Missing element"
    MISSING_TEXT_CONTENT = "Missing text content"
    INVALID_ENUM_VALUE = "Invalid enum value"
    INVALID_DATETIME = "Badly formatted datetime"
    MISSING_CONVERTER = "No converter for type"
    INVALID_ROOT_ELEMENT = "Invalid root element"
    INVALID_URI = "Invalid URI"
    UNDECLARED_PREFIX = "Undeclared namespace prefix"
    INVALID_XML = "Invalid XML"

    def __str__(self):
        return self.value


class ServiceException(Exception):
    """
    Base class for errors reported by the service or detected in its content.

    Attributes:
        error_code -- ErrorCode describing the kind of error, if known
        internal_reason -- detailed explanation for logs and debugging
        http_status -- HTTP status code of the failed response, if any
        response_content_type -- content type of the error response body
        response_body -- raw error response body
        headers -- response headers of the failed request
    """

    http_status_default: Optional[int] = None

    def __init__(self, message: Union[str, ErrorCode, None] = None,
                 internal_reason: Optional[str] = None,
                 http_status: Optional[int] = None,
                 error_code: Optional[ErrorCode] = None):
        if isinstance(message, ErrorCode):
            error_code = message
            message = message.value
        self.error_code: Optional[ErrorCode] = error_code
        if message is None:
            message = internal_reason or self.__class__.__name__
        super().__init__(message)
        self.message = message
        self.internal_reason = internal_reason
        self.http_status = http_status if http_status is not None else self.http_status_default
        self.response_content_type: Optional[str] = None
        self.response_body: Optional[str] = None
        self.headers: Dict[str, str] = {}
        self.siblings: List["ServiceException"] = []

    def set_response(self, content_type: Optional[str], body: Optional[str]):
        self.response_content_type = content_type
        self.response_body = body

    def add_sibling(self, other: "ServiceException") -> "ServiceException":
        self.siblings.append(other)
        return self

    def matches(self, error_code: ErrorCode) -> bool:
        return self.error_code is error_code

    def matches_any(self, error_code: ErrorCode) -> bool:
        """True if this exception or any sibling carries the given code."""
        return self.matches(error_code) or any(s.matches(error_code) for s in self.siblings)

    def __str__(self):
        if self.internal_reason and self.internal_reason != self.message:
            return f"{self.message}: {self.internal_reason}"
        return self.message


class ParseException(ServiceException):
    """The content could not be parsed into the data model."""

    http_status_default = 400

    def with_location(self, location: str) -> "ParseException":
        """Return a copy of this exception with a location prefix."""
        return ParseException(f"{location}{self.message}", self.internal_reason,
                              self.http_status, self.error_code)


class ContentValidationException(ServiceException):
    """A parsed or constructed element tree violates its metadata."""

    http_status_default = 400

    def __init__(self, message: Union[str, ErrorCode, None] = None,
                 internal_reason: Optional[str] = None,
                 errors: Optional[List[str]] = None):
        super().__init__(message, internal_reason)
        self.errors = list(errors or [])


class NotModifiedException(ServiceException):
    http_status_default = 304


class InvalidEntryException(ServiceException):
    http_status_default = 400


class AuthenticationException(ServiceException):
    http_status_default = 401


class ServiceForbiddenException(ServiceException):
    http_status_default = 403


class ResourceNotFoundException(ServiceException):
    http_status_default = 404


class VersionConflictException(ServiceException):
    http_status_default = 409


class PreconditionFailedException(ServiceException):
    http_status_default = 412


class ServiceUnavailableException(ServiceException):
    http_status_default = 503


_STATUS_EXCEPTIONS = {
    cls.http_status_default: cls
    for cls in (NotModifiedException, InvalidEntryException, AuthenticationException,
                ServiceForbiddenException, ResourceNotFoundException,
                VersionConflictException, PreconditionFailedException,
                ServiceUnavailableException)
}


def exception_for_status(status: int, message: Optional[str] = None) -> ServiceException:
    """
    Create the exception matching an HTTP error status.

    Args:
        status: HTTP status code of the response
        message: reason phrase or message to carry

    Returns:
        ServiceException subclass instance (ServiceException for unmapped codes)
    """
    cls = _STATUS_EXCEPTIONS.get(status, ServiceException)
    return cls(message or f"HTTP {status}", http_status=status)
