from typing import Any, Dict, List, Optional, Tuple
import logging

from firebase_admin import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from ..core.firebase_init import initialize_firebase, is_firebase_available
from .collections import COLLECTIONS

logger = logging.getLogger(__name__)

# (collection, document_id, data, merge)
BatchWrite = Tuple[str, str, Dict[str, Any], bool]


class DatabaseService:
    """
    Thin async facade over Firestore.

    Every collection is a flat keyspace of independent records. Methods return
    ``(success, payload, error)`` style tuples instead of raising so callers can
    decide which failures are fatal.
    """

    def __init__(self):
        self._client = None

    @property
    def client(self):
        if self._client is None:
            if not is_firebase_available() and not initialize_firebase():
                raise RuntimeError("Firebase initialization failed - Firestore not available")
            self._client = firestore.client()
        return self._client

    async def get_document(self, collection: str, document_id: str) -> Tuple[bool, Optional[Dict[str, Any]], Optional[str]]:
        try:
            snapshot = self.client.collection(collection).document(document_id).get()
            if not snapshot.exists:
                return True, None, None
            return True, snapshot.to_dict(), None
        except Exception as e:
            logger.error(f"Error reading {collection}/{document_id}: {e}")
            return False, None, str(e)

    async def create_document(
        self,
        collection: str,
        data: Dict[str, Any],
        document_id: Optional[str] = None,
    ) -> Tuple[bool, Optional[str], Optional[str]]:
        try:
            ref = self.client.collection(collection)
            doc_ref = ref.document(document_id) if document_id else ref.document()
            doc_ref.set(data)
            return True, doc_ref.id, None
        except Exception as e:
            logger.error(f"Error creating document in {collection}: {e}")
            return False, None, str(e)

    async def set_document(
        self,
        collection: str,
        document_id: str,
        data: Dict[str, Any],
        merge: bool = False,
    ) -> Tuple[bool, Optional[str]]:
        """Last-writer-wins put of a whole record (or a merge when ``merge``)."""
        try:
            self.client.collection(collection).document(document_id).set(data, merge=merge)
            return True, None
        except Exception as e:
            logger.error(f"Error writing {collection}/{document_id}: {e}")
            return False, str(e)

    async def update_document(self, collection: str, document_id: str, updates: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
        try:
            self.client.collection(collection).document(document_id).update(updates)
            return True, None
        except Exception as e:
            logger.error(f"Error updating {collection}/{document_id}: {e}")
            return False, str(e)

    async def delete_document(self, collection: str, document_id: str) -> Tuple[bool, Optional[str]]:
        try:
            self.client.collection(collection).document(document_id).delete()
            return True, None
        except Exception as e:
            logger.error(f"Error deleting {collection}/{document_id}: {e}")
            return False, str(e)

    async def query_documents(
        self,
        collection: str,
        filters: Optional[List[Tuple[str, str, Any]]] = None,
        limit: Optional[int] = None,
    ) -> Tuple[bool, List[Dict[str, Any]], Optional[str]]:
        """Query a collection with ``(field, op, value)`` filters, e.g. ``("status", "==", "pending")``."""
        try:
            query = self.client.collection(collection)
            for field, op, value in filters or []:
                query = query.where(filter=FieldFilter(field, op, value))
            if limit:
                query = query.limit(limit)
            return True, [doc.to_dict() for doc in query.stream()], None
        except Exception as e:
            logger.error(f"Error querying {collection} with {filters}: {e}")
            return False, [], str(e)

    async def get_all_documents(self, collection: str) -> Tuple[bool, List[Dict[str, Any]], Optional[str]]:
        return await self.query_documents(collection)

    async def commit_batch(self, writes: List[BatchWrite]) -> Tuple[bool, Optional[str]]:
        """
        Apply several document writes atomically.

        Firestore batches either land completely or not at all, so a complaint
        and its assignment never disagree after a transition.
        """
        try:
            batch = self.client.batch()
            for collection, document_id, data, merge in writes:
                batch.set(self.client.collection(collection).document(document_id), data, merge=merge)
            batch.commit()
            return True, None
        except Exception as e:
            logger.error(f"Batch write of {len(writes)} document(s) failed: {e}")
            return False, str(e)


database_service = DatabaseService()

__all__ = ["DatabaseService", "database_service", "COLLECTIONS"]
