"""
BigQuery warehouse backend.

The BigQuery client is blocking; every call runs in a worker thread so
collections exported concurrently do not stall the event loop.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

from google.api_core import exceptions as google_exceptions
from google.cloud import bigquery
from google.oauth2 import service_account

from fs2bq.config.settings import load_service_account
from fs2bq.schema.builder import TableSchema
from fs2bq.warehouse.adapter import InsertionError, TableExistsError, Warehouse

logger = logging.getLogger(__name__)


def to_schema_fields(schema: TableSchema) -> List[bigquery.SchemaField]:
    """Convert a TableSchema to BigQuery schema fields."""
    return [
        bigquery.SchemaField(column.name, column.scalar_type.value, mode=column.mode.value)
        for column in schema
    ]


class BigQueryWarehouse(Warehouse):
    """Warehouse backed by Google BigQuery."""

    def __init__(self, client: Any, location: Optional[str] = None):
        """
        Initialize with a client.

        Args:
            client: google.cloud.bigquery.Client (or compatible)
            location: Location for newly created datasets
        """
        self.client = client
        self.location = location

    @classmethod
    def from_service_account_file(
        cls,
        path: Optional[str],
        project: Optional[str] = None,
        location: Optional[str] = None,
    ) -> "BigQueryWarehouse":
        """
        Connect to the BigQuery project of a service account key.

        Raises:
            ConfigurationError: If the key is missing or invalid
        """
        info = load_service_account(path, "BigQuery")
        credentials = service_account.Credentials.from_service_account_info(info)
        client = bigquery.Client(
            project=project or info.get("project_id"),
            credentials=credentials,
        )
        return cls(client, location=location)

    def _table_ref(self, dataset_id: str, table_name: str) -> str:
        return f"{self.client.project}.{dataset_id}.{table_name}"

    async def dataset_exists(self, dataset_id: str) -> bool:
        try:
            await asyncio.to_thread(self.client.get_dataset, dataset_id)
            return True
        except google_exceptions.NotFound:
            return False

    async def create_dataset(self, dataset_id: str) -> None:
        dataset = bigquery.Dataset(f"{self.client.project}.{dataset_id}")
        if self.location:
            dataset.location = self.location
        await asyncio.to_thread(self.client.create_dataset, dataset, exists_ok=True)
        logger.info(f"Created dataset {dataset_id}")

    async def list_tables(self, dataset_id: str) -> List[str]:
        def _list() -> List[str]:
            return [table.table_id for table in self.client.list_tables(dataset_id)]

        return await asyncio.to_thread(_list)

    async def create_table(self, dataset_id: str, table_name: str, schema: TableSchema) -> None:
        table = bigquery.Table(
            self._table_ref(dataset_id, table_name),
            schema=to_schema_fields(schema),
        )
        try:
            await asyncio.to_thread(self.client.create_table, table)
        except google_exceptions.Conflict:
            raise TableExistsError(dataset_id, table_name)

    async def insert_rows(
        self,
        dataset_id: str,
        table_name: str,
        rows: Sequence[Dict[str, Any]],
    ) -> int:
        if not rows:
            return 0

        # Invalid rows are skipped so the rest of the request still lands
        errors = await asyncio.to_thread(
            self.client.insert_rows_json,
            self._table_ref(dataset_id, table_name),
            list(rows),
            skip_invalid_rows=True,
        )
        if errors:
            rejected = {error.get("index") for error in errors}
            raise InsertionError(
                f"BigQuery rejected {len(rejected)} of {len(rows)} rows for {dataset_id}.{table_name}",
                errors=errors,
                inserted=len(rows) - len(rejected),
            )
        return len(rows)

    async def delete_table(self, dataset_id: str, table_name: str) -> None:
        await asyncio.to_thread(
            self.client.delete_table, self._table_ref(dataset_id, table_name))

    async def close(self) -> None:
        self.client.close()
