"""
Abstract base class for document sources.

Defines the interface every document store backend must follow.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List


class SourceError(Exception):
    """Exception raised when a collection cannot be read."""
    pass


@dataclass
class SourceDocument:
    """One document read from a collection."""
    id: str
    data: Dict[str, Any] = field(default_factory=dict)


class DocumentSource(ABC):
    """
    Abstract base class for document stores.

    Implementations (Firestore, JSON files, in-memory) return a snapshot
    of a whole collection in one read; there is no pagination contract.
    """

    @abstractmethod
    async def list_documents(self, collection: str) -> List[SourceDocument]:
        """
        Read every document currently in a collection.

        Args:
            collection: Collection name

        Returns:
            Documents in the order the store enumerates them

        Raises:
            SourceError: If the backend detects the collection is unreadable
        """
        pass

    async def close(self) -> None:
        """Release client resources."""
        return None
