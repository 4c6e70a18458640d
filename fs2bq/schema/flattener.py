"""
Row flattening.

Turns one nested document into one flat row keyed by the same column
names schema inference produces.
"""

import json
import logging
from typing import Any, Dict, List, Mapping, Optional

from fs2bq.schema.naming import DOC_ID_COLUMN, flatten_name
from fs2bq.schema.value_types import ValueKind, classify_value

logger = logging.getLogger(__name__)

ARRAY_SEPARATOR = ","


def _element_to_string(element: Any) -> str:
    kind = classify_value(element)
    if kind == ValueKind.NULL:
        return "null"
    if kind == ValueKind.BOOLEAN:
        return "true" if element else "false"
    if kind == ValueKind.ARRAY:
        return serialize_array(element)
    if kind in (ValueKind.OBJECT, ValueKind.EMPTY_OBJECT):
        return json.dumps(element, separators=(",", ":"), default=str)
    return str(element)


def serialize_array(values: List[Any]) -> str:
    """
    Join array elements into a single comma-separated string.

    Commas inside elements are not escaped.

    Args:
        values: Array elements

    Returns:
        Joined string, empty for an empty array
    """
    return ARRAY_SEPARATOR.join(_element_to_string(v) for v in values)


def flatten_document(
    doc_id: str,
    data: Mapping[str, Any],
    skipped: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """
    Flatten a document into a single insertable row.

    Nested objects contribute one cell per leaf, named by their full
    path; the object itself gets no cell. Values are not checked against
    any schema, a type mismatch surfaces when the row is inserted.

    Args:
        doc_id: Document identifier, stored in the doc_ID cell
        data: Document properties
        skipped: Optional list that receives the names of unsupported
            values left out of the row

    Returns:
        Row mapping column name to cell value
    """
    row: Dict[str, Any] = {DOC_ID_COLUMN: doc_id}
    for name, value in data.items():
        if name == DOC_ID_COLUMN:
            # the identifier column always holds the document id
            logger.warning(
                f"Leaving {name} out of row: shadows the document id column",
                extra={"extra_fields": {"doc_id": doc_id, "path": name}},
            )
            continue
        _flatten_into(row, value, name, None, doc_id, skipped)
    return row


def _flatten_into(
    row: Dict[str, Any],
    value: Any,
    name: str,
    parent: Optional[str],
    doc_id: str,
    skipped: Optional[List[str]],
) -> None:
    column_name = flatten_name(name, parent)
    kind = classify_value(value)

    if kind == ValueKind.OBJECT:
        for child_name, child_value in value.items():
            _flatten_into(row, child_value, child_name, column_name, doc_id, skipped)
    elif kind == ValueKind.ARRAY:
        row[column_name] = serialize_array(value)
    elif kind == ValueKind.UNSUPPORTED:
        logger.warning(
            f"Leaving {column_name} out of row: unsupported type {type(value).__name__}",
            extra={"extra_fields": {"doc_id": doc_id, "path": column_name}},
        )
        if skipped is not None:
            skipped.append(column_name)
    else:
        # null, scalars and empty objects are stored as they are
        row[column_name] = value
