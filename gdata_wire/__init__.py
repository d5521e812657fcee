"""
gdata_wire - streaming XML wire format and client for GData/Atom services.
"""

__version__ = "1.0.0"
