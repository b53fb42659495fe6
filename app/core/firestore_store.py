"""Firestore-backed document store.

Firestore schema
================
projects/{project_id}   project document with nested deployments[]
users/{uid}             profile with provider tokens
"""

from typing import Any

from google.api_core.exceptions import NotFound
from google.cloud import firestore

from app.core.exceptions import DocumentNotFoundError


class FirestoreDataStore:
    """Stores documents in Firestore using the async client."""

    def __init__(self, project_id: str | None = None, client: firestore.AsyncClient | None = None):
        self.db = client or firestore.AsyncClient(project=project_id)

    def _ref(self, collection: str, doc_id: str):
        return self.db.collection(collection).document(doc_id)

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        doc = await self._ref(collection, doc_id).get()
        return doc.to_dict() if doc.exists else None

    async def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        await self._ref(collection, doc_id).set(data)

    async def update(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        try:
            await self._ref(collection, doc_id).update(data)
        except NotFound as e:
            raise DocumentNotFoundError(collection, doc_id) from e

    async def delete(self, collection: str, doc_id: str) -> bool:
        ref = self._ref(collection, doc_id)
        doc = await ref.get()
        if not doc.exists:
            return False
        await ref.delete()
        return True
