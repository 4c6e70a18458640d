"""In-memory warehouse backend."""

import copy
from typing import Any, Dict, List, Sequence

from fs2bq.schema.builder import TableSchema
from fs2bq.warehouse.adapter import (
    InsertionError,
    TableExistsError,
    Warehouse,
    WarehouseError,
)
from fs2bq.warehouse.validation import partition_rows


class InMemoryWarehouse(Warehouse):
    """
    Warehouse kept in process memory.

    Rows are type-checked against the table schema. Invalid rows are
    rejected one by one; the rest of the batch is stored.
    """

    def __init__(self):
        self.datasets: Dict[str, Dict[str, TableSchema]] = {}
        self.rows: Dict[str, Dict[str, List[Dict[str, Any]]]] = {}

    def _require_dataset(self, dataset_id: str) -> Dict[str, TableSchema]:
        if dataset_id not in self.datasets:
            raise WarehouseError(f"Dataset not found: {dataset_id}")
        return self.datasets[dataset_id]

    def _require_table(self, dataset_id: str, table_name: str) -> TableSchema:
        tables = self._require_dataset(dataset_id)
        if table_name not in tables:
            raise WarehouseError(f"Table not found: {dataset_id}.{table_name}")
        return tables[table_name]

    async def dataset_exists(self, dataset_id: str) -> bool:
        return dataset_id in self.datasets

    async def create_dataset(self, dataset_id: str) -> None:
        self.datasets.setdefault(dataset_id, {})
        self.rows.setdefault(dataset_id, {})

    async def list_tables(self, dataset_id: str) -> List[str]:
        return list(self._require_dataset(dataset_id))

    async def create_table(self, dataset_id: str, table_name: str, schema: TableSchema) -> None:
        tables = self._require_dataset(dataset_id)
        if table_name in tables:
            raise TableExistsError(dataset_id, table_name)
        tables[table_name] = schema
        self.rows[dataset_id][table_name] = []

    async def insert_rows(
        self,
        dataset_id: str,
        table_name: str,
        rows: Sequence[Dict[str, Any]],
    ) -> int:
        schema = self._require_table(dataset_id, table_name)
        valid, failures = partition_rows(schema, rows)
        self.rows[dataset_id][table_name].extend(copy.deepcopy(valid))
        if failures:
            raise InsertionError(
                f"Rejected {len(failures)} of {len(rows)} rows for {dataset_id}.{table_name}",
                errors=failures,
                inserted=len(valid),
            )
        return len(valid)

    async def delete_table(self, dataset_id: str, table_name: str) -> None:
        self._require_table(dataset_id, table_name)
        del self.datasets[dataset_id][table_name]
        del self.rows[dataset_id][table_name]
