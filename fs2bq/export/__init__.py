"""
Batch export operations.

Ties a document source and a warehouse together and runs table creation,
collection copies and table deletion across many collections at once.
"""

from typing import Optional

from fs2bq.config.settings import Settings, get_settings
from fs2bq.export.orchestrator import ExportOrchestrator
from fs2bq.export.results import (
    BatchError,
    BatchReport,
    CollectionResult,
    ExportError,
    SchemaConflictError,
)
from fs2bq.source import create_document_source
from fs2bq.warehouse import create_warehouse


def create_orchestrator(settings: Optional[Settings] = None) -> ExportOrchestrator:
    """
    Build an orchestrator from configuration.

    Raises:
        ConfigurationError: If source or warehouse configuration is invalid
    """
    settings = settings or get_settings()
    return ExportOrchestrator(
        source=create_document_source(settings),
        warehouse=create_warehouse(settings),
        insert_batch_size=settings.insert_batch_size,
    )


__all__ = [
    "ExportOrchestrator",
    "BatchReport",
    "BatchError",
    "CollectionResult",
    "ExportError",
    "SchemaConflictError",
    "create_orchestrator",
]
