"""
Firestore document source.

Reads collections through the async Firestore client using a service
account key.
"""

import inspect
import logging
from typing import Any, List, Optional

from google.cloud import firestore
from google.oauth2 import service_account

from fs2bq.config.settings import load_service_account
from fs2bq.source.adapter import DocumentSource, SourceDocument

logger = logging.getLogger(__name__)


class FirestoreSource(DocumentSource):
    """Document source backed by Cloud Firestore."""

    def __init__(self, client: Any):
        """
        Initialize with a client.

        Args:
            client: google.cloud.firestore.AsyncClient (or compatible)
        """
        self.client = client

    @classmethod
    def from_service_account_file(
        cls,
        path: Optional[str],
        project: Optional[str] = None,
    ) -> "FirestoreSource":
        """
        Connect to the Firebase project of a service account key.

        Args:
            path: Path to the service account JSON key
            project: Project override (defaults to the key's project_id)

        Raises:
            ConfigurationError: If the key is missing or invalid
        """
        info = load_service_account(path, "Firestore")
        credentials = service_account.Credentials.from_service_account_info(info)
        client = firestore.AsyncClient(
            project=project or info.get("project_id"),
            credentials=credentials,
        )
        return cls(client)

    async def list_documents(self, collection: str) -> List[SourceDocument]:
        snapshots = await self.client.collection(collection).get()
        documents = [
            SourceDocument(id=snapshot.id, data=snapshot.to_dict() or {})
            for snapshot in snapshots
        ]
        logger.debug(f"Read {len(documents)} documents from {collection}")
        return documents

    async def close(self) -> None:
        # close() is a coroutine on some client versions
        result = self.client.close()
        if inspect.isawaitable(result):
            await result
