"""
URI helpers for xml:base handling.
"""

import re
from typing import Optional
from urllib.parse import urljoin, urlsplit

# Characters never allowed unescaped in a URI reference
_ILLEGAL_CHARS = re.compile(r'[\s<>"{}|\\^`\x00-\x1f\x7f]')
_BAD_ESCAPE = re.compile(r'%(?![0-9A-Fa-f]{2})')


def check_uri(value: str) -> str:
    """
    Check that value is syntactically a URI reference.

    Returns:
        The value, unchanged

    Raises:
        ValueError: the value contains illegal characters or escapes
    """
    if _ILLEGAL_CHARS.search(value):
        raise ValueError(f"Illegal character in URI: '{value}'")
    if _BAD_ESCAPE.search(value):
        raise ValueError(f"Malformed escape in URI: '{value}'")
    # raises ValueError for malformed authorities such as unbalanced IPv6 brackets
    urlsplit(value)
    return value


def is_absolute(value: str) -> bool:
    return bool(urlsplit(value).scheme)


def resolve_base(current_base: Optional[str], value: str) -> str:
    """
    Combine an inherited xml:base with a newly declared one.

    An absolute value replaces the current base; a relative value is resolved
    against it.

    Args:
        current_base: inherited absolute base URI, or None
        value: the xml:base attribute value

    Returns:
        The new absolute base URI

    Raises:
        ValueError: the value is not a valid URI, or is relative and there is
            no base to resolve it against
    """
    check_uri(value)
    if is_absolute(value):
        return value
    if current_base is None:
        raise ValueError(f"Relative xml:base '{value}' without an absolute base URI")
    return urljoin(current_base, value)
