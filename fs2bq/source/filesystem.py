"""
JSON file document source.

Reads collections exported to local files. Each collection is one file
named ``<collection>.json`` holding an object that maps document IDs to
documents.
"""

import asyncio
import json
from pathlib import Path
from typing import List, Union

from fs2bq.source.adapter import DocumentSource, SourceDocument, SourceError


class JsonDirectorySource(DocumentSource):
    """Document source reading ``<root>/<collection>.json`` files."""

    def __init__(self, base_path: Union[str, Path]):
        self.base_path = Path(base_path)

    def _get_path(self, collection: str) -> Path:
        path = (self.base_path / f"{collection}.json").resolve()
        # Collection names must not escape the base directory
        if self.base_path.resolve() not in path.parents:
            raise SourceError(f"Invalid collection name: {collection}")
        return path

    def _read(self, collection: str) -> List[SourceDocument]:
        path = self._get_path(collection)
        if not path.is_file():
            raise SourceError(f"Collection not found: {collection} ({path})")

        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise SourceError(f"Failed to read collection {collection}: {e}")

        if not isinstance(payload, dict):
            raise SourceError(
                f"Collection file {path} must map document IDs to documents")

        documents = []
        for doc_id, data in payload.items():
            if not isinstance(data, dict):
                raise SourceError(
                    f"Document {collection}/{doc_id} is not a JSON object")
            documents.append(SourceDocument(id=str(doc_id), data=data))
        return documents

    async def list_documents(self, collection: str) -> List[SourceDocument]:
        return await asyncio.to_thread(self._read, collection)
