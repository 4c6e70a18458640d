"""
Schema inference for document collections.

Walks every document of a collection and accumulates the union of
observed property paths as an ordered list of warehouse columns.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Tuple

from fs2bq.schema.classifier import (
    DOC_ID_DESCRIPTOR,
    ColumnDescriptor,
    classify_property,
    column_from_dict,
)
from fs2bq.schema.naming import flatten_name
from fs2bq.schema.value_types import UnsupportedValueError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TableSchema:
    """Ordered, immutable set of columns a table is created with."""
    columns: Tuple[ColumnDescriptor, ...]

    @property
    def names(self) -> List[str]:
        return [column.name for column in self.columns]

    def get(self, name: str) -> Optional[ColumnDescriptor]:
        for column in self.columns:
            if column.name == name:
                return column
        return None

    def __len__(self) -> int:
        return len(self.columns)

    def __iter__(self):
        return iter(self.columns)

    def to_dict(self) -> List[Dict[str, str]]:
        """Schema as a BigQuery JSON field list."""
        return [column.to_dict() for column in self.columns]

    @classmethod
    def from_dict(cls, fields: Iterable[Dict[str, str]]) -> "TableSchema":
        return cls(tuple(column_from_dict(f) for f in fields))


@dataclass(frozen=True)
class ClassificationFailure:
    """A document property skipped during inference."""
    doc_id: str
    path: str
    type_name: str


@dataclass
class SchemaBuilder:
    """
    Builds a table schema from the documents of one collection.

    The first column is always ``doc_ID``. Each further column is
    registered the first time its path is seen; a later document with a
    different value type for the same path does not change the column.
    Nested objects are expanded at any depth. Arrays are never expanded.
    """
    collection_name: str = ""
    columns: List[ColumnDescriptor] = field(
        default_factory=lambda: [DOC_ID_DESCRIPTOR])
    documents_analyzed: int = 0
    classification_failures: List[ClassificationFailure] = field(
        default_factory=list)

    def __post_init__(self):
        self._registered: Set[str] = {column.name for column in self.columns}

    def add_document(self, doc_id: str, data: Mapping[str, Any]) -> None:
        """
        Register the columns of a single document.

        Args:
            doc_id: Document identifier, used when reporting skipped values
            data: Document properties
        """
        self.documents_analyzed += 1
        self._add_properties(doc_id, data, None)

    def add_documents(self, documents: Iterable[Tuple[str, Mapping[str, Any]]]) -> None:
        """
        Register the columns of several documents, in order.

        Args:
            documents: (doc_id, data) pairs
        """
        for doc_id, data in documents:
            self.add_document(doc_id, data)

    def _add_properties(
        self,
        doc_id: str,
        properties: Mapping[str, Any],
        parent: Optional[str],
    ) -> None:
        for name, value in properties.items():
            try:
                column = classify_property(value, name, parent)
            except UnsupportedValueError as e:
                self._record_failure(doc_id, e)
                continue

            if column is None:
                self._add_properties(doc_id, value, flatten_name(name, parent))
            elif column.name not in self._registered:
                self.columns.append(column)
                self._registered.add(column.name)

    def _record_failure(self, doc_id: str, error: UnsupportedValueError) -> None:
        logger.warning(
            f"Skipping {self.collection_name}.{error.name}: unsupported type {error.type_name}",
            extra={
                "extra_fields": {
                    "collection": self.collection_name,
                    "doc_id": doc_id,
                    "path": error.name,
                    "type": error.type_name,
                }
            },
        )
        self.classification_failures.append(
            ClassificationFailure(doc_id, error.name, error.type_name))

    def build(self) -> TableSchema:
        return TableSchema(tuple(self.columns))


def infer_schema(
    collection_name: str,
    documents: Iterable[Tuple[str, Mapping[str, Any]]],
) -> TableSchema:
    """
    Infer the table schema of a collection.

    Args:
        collection_name: Collection the documents belong to
        documents: (doc_id, data) pairs in enumeration order

    Returns:
        TableSchema starting with the doc_ID column
    """
    builder = SchemaBuilder(collection_name)
    builder.add_documents(documents)
    return builder.build()
