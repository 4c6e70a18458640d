"""
Document source backends.

Provides Firestore, JSON file and in-memory sources and a factory that
selects one based on configuration.
"""

from typing import Optional

from fs2bq.config.settings import ConfigurationError, Settings, get_settings
from fs2bq.source.adapter import DocumentSource, SourceDocument, SourceError
from fs2bq.source.filesystem import JsonDirectorySource
from fs2bq.source.firestore import FirestoreSource
from fs2bq.source.memory import InMemorySource


def create_document_source(settings: Optional[Settings] = None) -> DocumentSource:
    """
    Create the document source selected by settings.

    Returns:
        DocumentSource instance

    Raises:
        ConfigurationError: If the backend is unknown or its credentials
            are missing
    """
    settings = settings or get_settings()

    if settings.source_backend == "firestore":
        return FirestoreSource.from_service_account_file(
            settings.firebase_credentials_path,
            project=settings.firebase_project,
        )
    elif settings.source_backend == "json":
        return JsonDirectorySource(settings.json_source_path)
    elif settings.source_backend == "memory":
        return InMemorySource()

    raise ConfigurationError(f"Unknown source backend: {settings.source_backend}")


__all__ = [
    "DocumentSource",
    "SourceDocument",
    "SourceError",
    "FirestoreSource",
    "JsonDirectorySource",
    "InMemorySource",
    "create_document_source",
]
