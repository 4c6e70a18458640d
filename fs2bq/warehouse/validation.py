"""
Row validation against a table schema.

Used by the warehouse backends that do not type-check cells themselves,
so they reject mismatching rows the way BigQuery's streaming insert does
with ``skip_invalid_rows``: bad rows are dropped, the rest go in.
"""

from typing import Any, Dict, List, Sequence, Tuple

from fs2bq.schema.builder import TableSchema
from fs2bq.schema.classifier import ColumnDescriptor, ScalarType


def _cell_matches(column: ColumnDescriptor, value: Any) -> bool:
    if column.scalar_type == ScalarType.STRING:
        return isinstance(value, str)
    if column.scalar_type == ScalarType.BOOL:
        return isinstance(value, bool)
    if isinstance(value, bool):
        return False
    if column.scalar_type == ScalarType.INTEGER:
        return isinstance(value, int) or (isinstance(value, float) and value.is_integer())
    return isinstance(value, (int, float))


def validate_row(schema: TableSchema, row: Dict[str, Any]) -> List[Dict[str, str]]:
    """
    Check one row against a schema.

    Args:
        schema: Table schema
        row: Flattened row

    Returns:
        List of error entries (empty when the row is valid), shaped like
        BigQuery insert errors: ``{"reason", "location", "message"}``
    """
    errors = []

    for name, value in row.items():
        column = schema.get(name)
        if column is None:
            errors.append({
                "reason": "invalid",
                "location": name,
                "message": f"no such field: {name}.",
            })
        elif value is None:
            if not column.nullable:
                errors.append({
                    "reason": "invalid",
                    "location": name,
                    "message": f"Missing required field: {name}.",
                })
        elif not _cell_matches(column, value):
            errors.append({
                "reason": "invalid",
                "location": name,
                "message": f"Cannot convert value to {column.scalar_type.value}: {value!r}",
            })

    for column in schema:
        if not column.nullable and column.name not in row:
            errors.append({
                "reason": "invalid",
                "location": column.name,
                "message": f"Missing required field: {column.name}.",
            })

    return errors


def partition_rows(
    schema: TableSchema,
    rows: Sequence[Dict[str, Any]],
) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    """
    Split a batch into insertable rows and rejected rows.

    Returns:
        (valid rows in their original order, ``{"index", "errors"}``
        entries for the rejected rows, indexed into ``rows``)
    """
    valid, failures = [], []
    for index, row in enumerate(rows):
        errors = validate_row(schema, row)
        if errors:
            failures.append({"index": index, "errors": errors})
        else:
            valid.append(row)
    return valid, failures
