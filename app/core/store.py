"""Document store used for projects and user profiles."""

import copy
from typing import Any, Protocol

from app.core.exceptions import DocumentNotFoundError


class DataStore(Protocol):
    """Key-value document store addressed by collection and document id."""

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None: ...

    async def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> None: ...

    async def update(self, collection: str, doc_id: str, data: dict[str, Any]) -> None: ...

    async def delete(self, collection: str, doc_id: str) -> bool: ...


class InMemoryDataStore:
    """Keeps documents in process memory.

    Note: For production, use the Firestore-backed store.
    """

    def __init__(self):
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """Get a copy of a document."""
        doc = self._collections.get(collection, {}).get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    async def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Create or replace a document."""
        self._collections.setdefault(collection, {})[doc_id] = copy.deepcopy(data)

    async def update(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Merge top-level fields into an existing document."""
        docs = self._collections.get(collection, {})
        if doc_id not in docs:
            raise DocumentNotFoundError(collection, doc_id)
        docs[doc_id].update(copy.deepcopy(data))

    async def delete(self, collection: str, doc_id: str) -> bool:
        """Delete a document. Returns False if it did not exist."""
        docs = self._collections.get(collection, {})
        if doc_id in docs:
            del docs[doc_id]
            return True
        return False

    def clear(self) -> None:
        self._collections.clear()


def create_data_store(backend: str, gcp_project_id: str | None = None) -> DataStore:
    """Build the configured data store."""
    if backend == "firestore":
        from app.core.firestore_store import FirestoreDataStore

        return FirestoreDataStore(project_id=gcp_project_id)
    return InMemoryDataStore()
