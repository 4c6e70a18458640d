"""
Schema inference and row flattening for nested documents.

Both halves share the same value kinds and column naming, so rows built
at copy time always line up with tables created at inference time.
"""

from fs2bq.schema.value_types import (
    ValueKind,
    UnsupportedValueError,
    classify_value,
)
from fs2bq.schema.naming import DOC_ID_COLUMN, NAME_SEPARATOR, flatten_name
from fs2bq.schema.classifier import (
    ScalarType,
    ColumnMode,
    ColumnDescriptor,
    DOC_ID_DESCRIPTOR,
    classify_property,
    column_from_dict,
)
from fs2bq.schema.builder import (
    SchemaBuilder,
    TableSchema,
    ClassificationFailure,
    infer_schema,
)
from fs2bq.schema.flattener import flatten_document, serialize_array

__all__ = [  # ruff: noqa: RUF022
    # Value kinds
    "ValueKind",
    "UnsupportedValueError",
    "classify_value",
    # Naming
    "DOC_ID_COLUMN",
    "NAME_SEPARATOR",
    "flatten_name",
    # Classification
    "ScalarType",
    "ColumnMode",
    "ColumnDescriptor",
    "DOC_ID_DESCRIPTOR",
    "classify_property",
    "column_from_dict",
    # Inference
    "SchemaBuilder",
    "TableSchema",
    "ClassificationFailure",
    "infer_schema",
    # Flattening
    "flatten_document",
    "serialize_array",
]
