"""
HTTP access to GData services.
"""

from .client import ATOM_CONTENT_TYPE, GDataClient
from .generic_url import GenericUrl

__all__ = ["ATOM_CONTENT_TYPE", "GDataClient", "GenericUrl"]
