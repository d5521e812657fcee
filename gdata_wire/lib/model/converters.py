"""
Conversion between wire strings and typed values.

Datatypes without a registered converter are constructed from the string
(``datatype(value)``). Numeric conversion failures are raised as ValueError
so callers can report them as number format problems; all other failures are
raised as ParseException.
"""

import datetime
from enum import Enum
from typing import Any, Callable, Dict, Optional

from ..errors import ErrorCode, ParseException


def _convert_bool(value: str, datatype: type) -> bool:
    if value in ("true", "1"):
        return True
    if value in ("false", "0"):
        return False
    raise ParseException(ErrorCode.INVALID_BOOLEAN_ATTRIBUTE,
                         f"Invalid boolean value: '{value}'")


def _convert_datetime(value: str, datatype: type) -> datetime.datetime:
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.datetime.fromisoformat(text)
    except ValueError as e:
        raise ParseException(ErrorCode.INVALID_DATETIME, f"{value}: {e}")


def _convert_date(value: str, datatype: type) -> datetime.date:
    try:
        return datetime.date.fromisoformat(value.strip())
    except ValueError as e:
        raise ParseException(ErrorCode.INVALID_DATETIME, f"{value}: {e}")


def _convert_enum(value: str, datatype: type) -> Enum:
    try:
        return datatype(value)
    except ValueError:
        pass
    try:
        return datatype[value.upper()]
    except KeyError:
        raise ParseException(ErrorCode.INVALID_ENUM_VALUE,
                             f"No such enum of type {datatype.__name__} named {value}")


_CONVERTERS: Dict[type, Callable[[str, type], Any]] = {
    bool: _convert_bool,
    datetime.datetime: _convert_datetime,
    datetime.date: _convert_date,
    Enum: _convert_enum,
}


def add_converter(datatype: type, converter: Callable[[str, type], Any]):
    """
    Register a converter for a datatype.

    Args:
        datatype: the target type
        converter: callable taking (value, datatype) and returning the typed value
    """
    _CONVERTERS[datatype] = converter


def _get_converter(datatype: type) -> Optional[Callable[[str, type], Any]]:
    converter = _CONVERTERS.get(datatype)
    if converter is None and isinstance(datatype, type) and issubclass(datatype, Enum):
        converter = _CONVERTERS[Enum]
    return converter


def get_value(value: Any, datatype: Optional[type]) -> Any:
    """
    Convert a wire value to the given datatype.

    Args:
        value: string from the wire, or an already typed value
        datatype: target type; None leaves the value unchanged

    Returns:
        The typed value, or None if value is None

    Raises:
        ParseException: value cannot be converted
        ValueError: value is not a valid number for a numeric datatype
    """
    if value is None or datatype is None:
        return value
    if not isinstance(value, str):
        if isinstance(value, datatype):
            return value
        raise ParseException(f"Cannot convert value {value!r} of type "
                             f"{type(value).__name__} to {datatype.__name__}")
    if datatype is str:
        return value
    converter = _get_converter(datatype)
    if converter is not None:
        return converter(value, datatype)
    if datatype in (int, float):
        return datatype(value.strip())
    try:
        return datatype(value)
    except TypeError:
        raise ParseException(ErrorCode.MISSING_CONVERTER,
                             f"No converter for type {datatype.__name__}")


def to_wire(value: Any) -> Optional[str]:
    """
    Convert a typed value to its wire string.

    Returns:
        String form of the value, or None if value is None
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return to_wire(value.value)
    if isinstance(value, datetime.datetime):
        if value.utcoffset() == datetime.timedelta(0):
            return value.replace(tzinfo=None).isoformat() + "Z"
        return value.isoformat()
    if isinstance(value, datetime.date):
        return value.isoformat()
    return str(value)
