"""
Export orchestrator.

Runs the batch operations (create tables, copy collections, delete
tables). Each collection named in a batch becomes its own asyncio task;
a failure in one never cancels or hides the others.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, List

from fs2bq.common import metrics
from fs2bq.common.logging_config import (
    PerformanceTracker,
    get_correlation_id,
    set_correlation_id,
)
from fs2bq.export.results import BatchReport, CollectionResult, SchemaConflictError
from fs2bq.schema.builder import SchemaBuilder, TableSchema
from fs2bq.schema.flattener import flatten_document
from fs2bq.source.adapter import DocumentSource
from fs2bq.warehouse.adapter import InsertionError, TableExistsError, Warehouse

logger = logging.getLogger(__name__)

CREATE_TABLE = "create_table"
COPY = "copy"
DELETE_TABLE = "delete_table"


def _unique(names: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(names))


def _offset_errors(errors: List[Dict[str, Any]], offset: int) -> List[Dict[str, Any]]:
    """Re-index per-row errors of one chunk into the whole collection."""
    return [
        {**error, "index": error["index"] + offset}
        if isinstance(error.get("index"), int) else error
        for error in errors
    ]


class ExportOrchestrator:
    """
    Coordinates a document source and a warehouse.

    Table schemas are inferred once, when tables are created. Copies
    flatten documents against whatever table already exists; rows that
    no longer match it are rejected by the warehouse.
    """

    def __init__(
        self,
        source: DocumentSource,
        warehouse: Warehouse,
        insert_batch_size: int = 500,
    ):
        """
        Initialize orchestrator.

        Args:
            source: Document source to read collections from
            warehouse: Warehouse to create tables in and insert rows into
            insert_batch_size: Maximum rows per insert call
        """
        if insert_batch_size < 1:
            raise ValueError("insert_batch_size must be at least 1")
        self.source = source
        self.warehouse = warehouse
        self.insert_batch_size = insert_batch_size

    async def ensure_dataset(self, dataset_id: str) -> bool:
        """
        Create the dataset if it does not exist yet.

        Returns:
            True if the dataset was created
        """
        if await self.warehouse.dataset_exists(dataset_id):
            return False
        await self.warehouse.create_dataset(dataset_id)
        return True

    async def infer_schema(self, collection: str) -> TableSchema:
        """
        Infer the table schema of a collection without creating anything.

        Args:
            collection: Collection name

        Returns:
            TableSchema for the collection's current documents
        """
        documents = await self.source.list_documents(collection)

        builder = SchemaBuilder(collection)
        builder.add_documents((doc.id, doc.data) for doc in documents)
        schema = builder.build()

        metrics.schema_columns_inferred_total.inc(len(schema))
        if builder.classification_failures:
            metrics.classification_failures_total.labels(stage="schema").inc(
                len(builder.classification_failures))

        logger.info(
            f"Inferred {len(schema)} columns for {collection}",
            extra={
                "extra_fields": {
                    "collection": collection,
                    "documents": builder.documents_analyzed,
                    "columns": len(schema),
                    "skipped_values": len(builder.classification_failures),
                }
            },
        )
        return schema

    # Batch entry points

    async def create_tables(self, dataset_id: str, collection_names: Iterable[str]) -> BatchReport:
        """
        Create one table per collection with an inferred schema.

        The dataset is created first if needed. A name that already
        exists fails only its own unit.

        Args:
            dataset_id: Target dataset
            collection_names: Collections to create tables for

        Returns:
            BatchReport; ``count`` is the number of tables created
        """
        self._bind_correlation_id()
        await self.ensure_dataset(dataset_id)
        existing = set(await self.warehouse.list_tables(dataset_id))

        return await self._run_batch(
            CREATE_TABLE,
            dataset_id,
            collection_names,
            lambda name: self._create_table(dataset_id, name, existing),
        )

    async def copy_collections(self, dataset_id: str, collection_names: Iterable[str]) -> BatchReport:
        """
        Copy every document of each collection into its table.

        Args:
            dataset_id: Target dataset
            collection_names: Collections to copy

        Returns:
            BatchReport; each unit's ``value`` is its inserted row count.
            Rows the warehouse rejects fail the unit without stopping the
            remaining rows of the collection.
        """
        self._bind_correlation_id()
        await self.ensure_dataset(dataset_id)

        return await self._run_batch(
            COPY,
            dataset_id,
            collection_names,
            lambda name: self._copy_collection(dataset_id, name),
        )

    async def delete_tables(self, dataset_id: str, table_names: Iterable[str]) -> BatchReport:
        """
        Delete tables from a dataset.

        Returns:
            BatchReport; ``count`` is the number of tables deleted
        """
        self._bind_correlation_id()

        return await self._run_batch(
            DELETE_TABLE,
            dataset_id,
            table_names,
            lambda name: self._delete_table(dataset_id, name),
        )

    # Units

    @metrics.track_unit(CREATE_TABLE)
    async def _create_table(self, dataset_id: str, collection: str, existing: set) -> int:
        if collection in existing:
            raise SchemaConflictError(collection)

        logger.info(f"Creating schema and table {collection}.")
        schema = await self.infer_schema(collection)

        try:
            await self.warehouse.create_table(dataset_id, collection, schema)
        except TableExistsError:
            raise SchemaConflictError(collection)

        return len(schema)

    @metrics.track_unit(COPY)
    async def _copy_collection(self, dataset_id: str, collection: str) -> int:
        logger.info(f"Copying {collection} to dataset {dataset_id}.")
        documents = await self.source.list_documents(collection)

        skipped: List[str] = []
        rows = [flatten_document(doc.id, doc.data, skipped) for doc in documents]
        if skipped:
            metrics.classification_failures_total.labels(stage="row").inc(len(skipped))

        inserted = 0
        rejected: List[Dict[str, Any]] = []
        for start in range(0, len(rows), self.insert_batch_size):
            batch = rows[start:start + self.insert_batch_size]
            try:
                count = await self.warehouse.insert_rows(dataset_id, collection, batch)
            except InsertionError as e:
                count = e.inserted
                rejected.extend(_offset_errors(e.errors, start))
            inserted += count
            metrics.rows_inserted_total.inc(count)

        if rejected:
            raise InsertionError(
                f"Rejected {len(rejected)} of {len(rows)} rows for {dataset_id}.{collection}",
                errors=rejected,
                inserted=inserted,
            )
        return inserted

    @metrics.track_unit(DELETE_TABLE)
    async def _delete_table(self, dataset_id: str, table_name: str) -> None:
        logger.info(f"Deleting table {table_name}.")
        await self.warehouse.delete_table(dataset_id, table_name)

    # Fan-out

    async def _run_batch(
        self,
        operation: str,
        dataset_id: str,
        names: Iterable[str],
        unit: Callable[[str], Awaitable[Any]],
    ) -> BatchReport:
        tasks = [
            asyncio.create_task(self._run_unit(operation, dataset_id, name, unit))
            for name in _unique(names)
        ]
        results = list(await asyncio.gather(*tasks)) if tasks else []
        report = BatchReport(operation=operation, dataset_id=dataset_id, results=results)

        log = logger.info if report.ok else logger.warning
        log(
            f"{operation} finished: {report.count} of {len(results)} succeeded",
            extra={"extra_fields": self._summary(report)},
        )
        return report

    async def _run_unit(
        self,
        operation: str,
        dataset_id: str,
        name: str,
        unit: Callable[[str], Awaitable[Any]],
    ) -> CollectionResult:
        tracker = PerformanceTracker(operation, logger, collection=name, dataset=dataset_id)
        try:
            with tracker:
                value = await unit(name)
        except Exception as e:
            return CollectionResult(
                name=name,
                operation=operation,
                success=False,
                value=getattr(e, "inserted", None),
                error=str(e),
                error_type=type(e).__name__,
                details=getattr(e, "errors", None) or None,
                duration_ms=tracker.duration_ms,
                exception=e,
            )

        return CollectionResult(
            name=name,
            operation=operation,
            success=True,
            value=value,
            duration_ms=tracker.duration_ms,
        )

    @staticmethod
    def _summary(report: BatchReport) -> Dict[str, Any]:
        return {
            "operation": report.operation,
            "dataset": report.dataset_id,
            "succeeded": [r.name for r in report.succeeded],
            "failed": [r.name for r in report.failed],
        }

    @staticmethod
    def _bind_correlation_id() -> None:
        if get_correlation_id() is None:
            set_correlation_id()

    async def close(self) -> None:
        await self.source.close()
        await self.warehouse.close()
