"""In-memory document source."""

import copy
from typing import Any, Dict, List, Optional

from fs2bq.source.adapter import DocumentSource, SourceDocument, SourceError


class InMemorySource(DocumentSource):
    """Document source backed by a dict of collection -> {doc_id: document}."""

    def __init__(self, collections: Optional[Dict[str, Dict[str, Dict[str, Any]]]] = None):
        self.collections: Dict[str, Dict[str, Dict[str, Any]]] = collections or {}

    def add_document(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        self.collections.setdefault(collection, {})[doc_id] = data

    async def list_documents(self, collection: str) -> List[SourceDocument]:
        if collection not in self.collections:
            raise SourceError(f"Collection not found: {collection}")

        # Snapshot copies so callers never see later writes
        return [
            SourceDocument(id=doc_id, data=copy.deepcopy(data))
            for doc_id, data in self.collections[collection].items()
        ]
