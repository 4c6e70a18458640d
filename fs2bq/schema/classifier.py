"""
Column type classification.

Maps one document property to the warehouse column it becomes, or tells
the caller to descend into it when it is a nested object.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from fs2bq.schema.naming import DOC_ID_COLUMN, flatten_name
from fs2bq.schema.value_types import UnsupportedValueError, ValueKind, classify_value


class ScalarType(str, Enum):
    """Warehouse column types."""
    STRING = "STRING"
    INTEGER = "INTEGER"
    FLOAT = "FLOAT"
    BOOL = "BOOL"


class ColumnMode(str, Enum):
    NULLABLE = "NULLABLE"
    REQUIRED = "REQUIRED"


@dataclass(frozen=True)
class ColumnDescriptor:
    """A single warehouse column."""
    name: str
    scalar_type: ScalarType
    nullable: bool = True

    @property
    def mode(self) -> ColumnMode:
        return ColumnMode.NULLABLE if self.nullable else ColumnMode.REQUIRED

    def to_dict(self) -> Dict[str, str]:
        """Column as a BigQuery JSON schema field."""
        return {
            "name": self.name,
            "type": self.scalar_type.value,
            "mode": self.mode.value,
        }


DOC_ID_DESCRIPTOR = ColumnDescriptor(DOC_ID_COLUMN, ScalarType.STRING, nullable=False)

_KIND_TO_TYPE = {
    ValueKind.NULL: ScalarType.STRING,
    ValueKind.STRING: ScalarType.STRING,
    ValueKind.INTEGER: ScalarType.INTEGER,
    ValueKind.FLOAT: ScalarType.FLOAT,
    ValueKind.BOOLEAN: ScalarType.BOOL,
    ValueKind.ARRAY: ScalarType.STRING,
    ValueKind.EMPTY_OBJECT: ScalarType.STRING,
}


def classify_property(
    value: Any,
    name: str,
    parent: Optional[str] = None,
) -> Optional[ColumnDescriptor]:
    """
    Determine the column for a document property.

    Arrays are always a single STRING column, since rows store them
    comma-joined. Every inferred column is nullable.

    Args:
        value: Property value
        name: Property name
        parent: Flattened name of the enclosing object, if nested

    Returns:
        The column descriptor, or None when the value is a non-empty
        object whose children must be classified instead

    Raises:
        UnsupportedValueError: If the value type has no column mapping
    """
    kind = classify_value(value)
    column_name = flatten_name(name, parent)

    if kind == ValueKind.OBJECT:
        return None
    if kind == ValueKind.UNSUPPORTED:
        raise UnsupportedValueError(column_name, value)

    return ColumnDescriptor(column_name, _KIND_TO_TYPE[kind], nullable=True)


def column_from_dict(field: Dict[str, str]) -> ColumnDescriptor:
    """Build a column from a BigQuery JSON schema field."""
    mode = field.get("mode", ColumnMode.NULLABLE.value)
    return ColumnDescriptor(
        field["name"],
        ScalarType(field["type"]),
        nullable=mode != ColumnMode.REQUIRED.value,
    )
