"""
Database models for the SQL warehouse catalog.

SQL databases have no notion of BigQuery datasets, so datasets and the
tables created in them are tracked in two registry tables.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List

from sqlalchemy import (  # type: ignore
    JSON, DateTime, ForeignKey, String, UniqueConstraint
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column  # type: ignore


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for catalog models."""
    pass


class DatasetRecord(Base):
    """A dataset created through the SQL warehouse."""
    __tablename__ = "fs2bq_dataset"

    dataset_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False)


class TableRecord(Base):
    """
    A table created in a dataset.

    Keeps the column list the table was created with so rows can be
    validated before insertion.
    """
    __tablename__ = "fs2bq_table"

    physical_name: Mapped[str] = mapped_column(String(511), primary_key=True)
    dataset_id: Mapped[str] = mapped_column(
        String(255), ForeignKey("fs2bq_dataset.dataset_id"), nullable=False, index=True)
    table_name: Mapped[str] = mapped_column(String(255), nullable=False)
    columns: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("dataset_id", "table_name", name="uq_fs2bq_table_name"),
    )
