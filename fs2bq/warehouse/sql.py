"""
SQL warehouse backend.

Stores exported tables in any SQLAlchemy-supported database. Useful for
local runs and tests where BigQuery is not available. Each table is
created as ``<dataset>__<table>`` and registered in the catalog.
"""

import asyncio
import logging
import threading
from typing import Any, Dict, List, Sequence

from sqlalchemy import (  # type: ignore
    BigInteger, Boolean, Column, Float, MetaData, Table, Text, create_engine, select
)
from sqlalchemy.engine import Engine  # type: ignore
from sqlalchemy.exc import SQLAlchemyError  # type: ignore
from sqlalchemy.orm import Session, sessionmaker  # type: ignore
from sqlalchemy.pool import StaticPool  # type: ignore

from fs2bq.schema.builder import TableSchema
from fs2bq.schema.classifier import ScalarType
from fs2bq.schema.naming import NAME_SEPARATOR
from fs2bq.warehouse.adapter import (
    InsertionError,
    TableExistsError,
    Warehouse,
    WarehouseError,
)
from fs2bq.warehouse.catalog import Base, DatasetRecord, TableRecord
from fs2bq.warehouse.validation import partition_rows

logger = logging.getLogger(__name__)

_TYPE_MAPPING = {
    ScalarType.STRING: Text,
    ScalarType.INTEGER: BigInteger,
    ScalarType.FLOAT: Float,
    ScalarType.BOOL: Boolean,
}


def create_warehouse_engine(url: str, echo: bool = False) -> Engine:
    """
    Create an engine for the warehouse database.

    In-memory SQLite is pinned to one connection so every worker thread
    sees the same database.
    """
    if url.startswith("sqlite") and (":memory:" in url or url.rstrip("/") == "sqlite:"):
        return create_engine(
            url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
            echo=echo,
            future=True,
        )
    if url.startswith("sqlite"):
        return create_engine(
            url, connect_args={"check_same_thread": False}, echo=echo, future=True)
    return create_engine(url, pool_pre_ping=True, echo=echo, future=True)


def physical_table_name(dataset_id: str, table_name: str) -> str:
    return f"{dataset_id}{NAME_SEPARATOR}{table_name}"


def build_table(name: str, schema: TableSchema, metadata: MetaData) -> Table:
    """Build a SQLAlchemy table definition for a schema."""
    columns = [
        Column(column.name, _TYPE_MAPPING[column.scalar_type], nullable=column.nullable)
        for column in schema
    ]
    return Table(name, metadata, *columns)


class SqlWarehouse(Warehouse):
    """Warehouse backed by a SQLAlchemy engine."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self.SessionLocal = sessionmaker(
            autocommit=False, autoflush=False, bind=engine, future=True)
        # One writer at a time; SQLite connections are not safe to share
        self._lock = threading.Lock()
        Base.metadata.create_all(bind=engine)

    @classmethod
    def from_url(cls, url: str, echo: bool = False) -> "SqlWarehouse":
        return cls(create_warehouse_engine(url, echo=echo))

    async def _run(self, func, *args):
        def _locked():
            with self._lock:
                return func(*args)

        return await asyncio.to_thread(_locked)

    def _get_table_record(self, db: Session, dataset_id: str, table_name: str) -> TableRecord:
        record = db.get(TableRecord, physical_table_name(dataset_id, table_name))
        if record is None:
            raise WarehouseError(f"Table not found: {dataset_id}.{table_name}")
        return record

    # Dataset operations

    def _dataset_exists(self, dataset_id: str) -> bool:
        with self.SessionLocal() as db:
            return db.get(DatasetRecord, dataset_id) is not None

    def _create_dataset(self, dataset_id: str) -> None:
        with self.SessionLocal() as db:
            if db.get(DatasetRecord, dataset_id) is None:
                db.add(DatasetRecord(dataset_id=dataset_id))
                db.commit()
                logger.info(f"Created dataset {dataset_id}")

    async def dataset_exists(self, dataset_id: str) -> bool:
        return await self._run(self._dataset_exists, dataset_id)

    async def create_dataset(self, dataset_id: str) -> None:
        await self._run(self._create_dataset, dataset_id)

    # Table operations

    def _list_tables(self, dataset_id: str) -> List[str]:
        with self.SessionLocal() as db:
            if db.get(DatasetRecord, dataset_id) is None:
                raise WarehouseError(f"Dataset not found: {dataset_id}")
            stmt = (
                select(TableRecord.table_name)
                .where(TableRecord.dataset_id == dataset_id)
                .order_by(TableRecord.created_at)
            )
            return list(db.scalars(stmt))

    def _create_table(self, dataset_id: str, table_name: str, schema: TableSchema) -> None:
        name = physical_table_name(dataset_id, table_name)
        with self.SessionLocal() as db:
            if db.get(DatasetRecord, dataset_id) is None:
                raise WarehouseError(f"Dataset not found: {dataset_id}")
            if db.get(TableRecord, name) is not None:
                raise TableExistsError(dataset_id, table_name)

        build_table(name, schema, MetaData()).create(bind=self.engine)

        with self.SessionLocal() as db:
            db.add(TableRecord(
                physical_name=name,
                dataset_id=dataset_id,
                table_name=table_name,
                columns=schema.to_dict(),
            ))
            db.commit()

    def _insert_rows(self, dataset_id: str, table_name: str, rows: Sequence[Dict[str, Any]]) -> int:
        with self.SessionLocal() as db:
            record = self._get_table_record(db, dataset_id, table_name)
            schema = TableSchema.from_dict(record.columns)

        valid, failures = partition_rows(schema, rows)

        if valid:
            # executemany needs every row to bind the same columns
            names = schema.names
            params = [{name: row.get(name) for name in names} for row in valid]
            table = build_table(record.physical_name, schema, MetaData())
            try:
                with self.engine.begin() as conn:
                    conn.execute(table.insert(), params)
            except SQLAlchemyError as e:
                raise InsertionError(
                    f"Insert into {dataset_id}.{table_name} failed: {e}",
                    errors=[{"index": None, "errors": [{"reason": "backendError", "message": str(e)}]}],
                )

        if failures:
            raise InsertionError(
                f"Rejected {len(failures)} of {len(rows)} rows for {dataset_id}.{table_name}",
                errors=failures,
                inserted=len(valid),
            )
        return len(valid)

    def _delete_table(self, dataset_id: str, table_name: str) -> None:
        name = physical_table_name(dataset_id, table_name)
        with self.SessionLocal() as db:
            record = self._get_table_record(db, dataset_id, table_name)
            schema = TableSchema.from_dict(record.columns)

        build_table(name, schema, MetaData()).drop(bind=self.engine)

        with self.SessionLocal() as db:
            db.delete(db.get(TableRecord, name))
            db.commit()

    async def list_tables(self, dataset_id: str) -> List[str]:
        return await self._run(self._list_tables, dataset_id)

    async def create_table(self, dataset_id: str, table_name: str, schema: TableSchema) -> None:
        await self._run(self._create_table, dataset_id, table_name, schema)

    async def insert_rows(
        self,
        dataset_id: str,
        table_name: str,
        rows: Sequence[Dict[str, Any]],
    ) -> int:
        if not rows:
            return 0
        return await self._run(self._insert_rows, dataset_id, table_name, rows)

    async def delete_table(self, dataset_id: str, table_name: str) -> None:
        await self._run(self._delete_table, dataset_id, table_name)

    def fetch_rows(self, dataset_id: str, table_name: str) -> List[Dict[str, Any]]:
        """Read back every row of a table (for inspection and tests)."""
        with self._lock:
            with self.SessionLocal() as db:
                record = self._get_table_record(db, dataset_id, table_name)
                schema = TableSchema.from_dict(record.columns)
            table = build_table(record.physical_name, schema, MetaData())
            with self.engine.connect() as conn:
                return [dict(row._mapping) for row in conn.execute(select(table))]

    async def close(self) -> None:
        self.engine.dispose()
