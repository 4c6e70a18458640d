"""
Document value kinds.

Maps a runtime Python value read from a document to a closed set of
kinds. Both schema inference and row flattening branch on these kinds
only, so the two stay in agreement about what a value is.
"""

from enum import Enum
from typing import Any


class UnsupportedValueError(Exception):
    """Raised when a document value has no column mapping."""

    def __init__(self, name: str, value: Any):
        self.name = name
        self.type_name = type(value).__name__
        super().__init__(f"{name}: unsupported value type {self.type_name}")


class ValueKind(str, Enum):
    """Enumeration of document value kinds."""
    NULL = "null"
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"
    EMPTY_OBJECT = "empty_object"
    UNSUPPORTED = "unsupported"


def classify_value(value: Any) -> ValueKind:
    """
    Detect the kind of a document value.

    A float without a fractional part counts as an integer, the same way
    a document store that only has one number type reports it.

    Args:
        value: The value to check

    Returns:
        ValueKind enum value
    """
    # bool is a subclass of int, check it first
    if value is None:
        return ValueKind.NULL
    elif isinstance(value, bool):
        return ValueKind.BOOLEAN
    elif isinstance(value, int):
        return ValueKind.INTEGER
    elif isinstance(value, float):
        return ValueKind.INTEGER if value.is_integer() else ValueKind.FLOAT
    elif isinstance(value, str):
        return ValueKind.STRING
    elif isinstance(value, (list, tuple)):
        return ValueKind.ARRAY
    elif isinstance(value, dict):
        return ValueKind.OBJECT if value else ValueKind.EMPTY_OBJECT
    else:
        return ValueKind.UNSUPPORTED
