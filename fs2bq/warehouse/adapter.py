"""
Abstract base class for warehouse backends.

Defines the dataset and table lifecycle operations the exporter needs.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from fs2bq.schema.builder import TableSchema


class WarehouseError(Exception):
    """Exception raised for warehouse-related errors."""
    pass


class TableExistsError(WarehouseError):
    """Raised when creating a table whose name is already taken."""

    def __init__(self, dataset_id: str, table_name: str):
        self.dataset_id = dataset_id
        self.table_name = table_name
        super().__init__(f"Table {table_name} already exists.")


class InsertionError(WarehouseError):
    """
    Raised when the warehouse rejects rows.

    Valid rows of the same call are still inserted; only the rows listed
    in ``errors`` are missing from the table.

    Attributes:
        errors: Per-row error details exactly as the backend reported them
        inserted: Number of rows that were inserted despite the failures
    """

    def __init__(
        self,
        message: str,
        errors: Optional[List[Dict[str, Any]]] = None,
        inserted: int = 0,
    ):
        self.errors = errors or []
        self.inserted = inserted
        super().__init__(message)


class Warehouse(ABC):
    """
    Abstract base class for analytical warehouses.

    All implementations (BigQuery, SQL, in-memory) provide these
    operations. Errors from the backend propagate to the caller; nothing
    here retries.
    """

    @abstractmethod
    async def dataset_exists(self, dataset_id: str) -> bool:
        pass

    @abstractmethod
    async def create_dataset(self, dataset_id: str) -> None:
        pass

    @abstractmethod
    async def list_tables(self, dataset_id: str) -> List[str]:
        """
        List table names in a dataset.

        Returns:
            Table names (without dataset prefix)
        """
        pass

    @abstractmethod
    async def create_table(self, dataset_id: str, table_name: str, schema: TableSchema) -> None:
        """
        Create a table with the given schema.

        Raises:
            TableExistsError: If the table already exists
        """
        pass

    @abstractmethod
    async def insert_rows(
        self,
        dataset_id: str,
        table_name: str,
        rows: Sequence[Dict[str, Any]],
    ) -> int:
        """
        Insert flattened rows into a table.

        Returns:
            Number of rows inserted

        Raises:
            InsertionError: If the warehouse rejects any row; the valid
                rows are inserted and counted in its ``inserted``
        """
        pass

    @abstractmethod
    async def delete_table(self, dataset_id: str, table_name: str) -> None:
        pass

    async def close(self) -> None:
        """Release client resources."""
        return None
