"""
Warehouse backends.

Provides BigQuery, SQL and in-memory warehouses and a factory that
selects one based on configuration.
"""

from typing import Optional

from fs2bq.config.settings import ConfigurationError, Settings, get_settings
from fs2bq.warehouse.adapter import (
    Warehouse,
    WarehouseError,
    TableExistsError,
    InsertionError,
)
from fs2bq.warehouse.bigquery import BigQueryWarehouse
from fs2bq.warehouse.memory import InMemoryWarehouse
from fs2bq.warehouse.sql import SqlWarehouse


def create_warehouse(settings: Optional[Settings] = None) -> Warehouse:
    """
    Create the warehouse selected by settings.

    Returns:
        Warehouse instance

    Raises:
        ConfigurationError: If the backend is unknown or its credentials
            are missing
    """
    settings = settings or get_settings()

    if settings.warehouse_backend == "bigquery":
        return BigQueryWarehouse.from_service_account_file(
            settings.bigquery_credentials_path,
            project=settings.bigquery_project,
            location=settings.bigquery_location,
        )
    elif settings.warehouse_backend == "sql":
        return SqlWarehouse.from_url(settings.warehouse_url, echo=settings.debug)
    elif settings.warehouse_backend == "memory":
        return InMemoryWarehouse()

    raise ConfigurationError(f"Unknown warehouse backend: {settings.warehouse_backend}")


__all__ = [
    "Warehouse",
    "WarehouseError",
    "TableExistsError",
    "InsertionError",
    "BigQueryWarehouse",
    "SqlWarehouse",
    "InMemoryWarehouse",
    "create_warehouse",
]
