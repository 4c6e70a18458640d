"""Column naming for flattened document properties."""

from typing import Optional

DOC_ID_COLUMN = "doc_ID"

# Double underscore keeps nested paths apart from snake_case field names
NAME_SEPARATOR = "__"


def flatten_name(name: str, parent: Optional[str] = None) -> str:
    """
    Build the flat column name for a property.

    Args:
        name: Property name
        parent: Flattened name of the enclosing object, if nested

    Returns:
        ``name`` for top-level properties, ``parent__name`` otherwise
    """
    return f"{parent}{NAME_SEPARATOR}{name}" if parent else name
