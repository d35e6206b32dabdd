"""Shared plumbing for the Firestore-backed repositories.

Subclasses name a collection and provide the document <-> entity mapping;
document reads, batch reads, deletes and query streaming live here.
"""

from abc import (
    ABC,
    abstractmethod,
)
from datetime import (
    UTC,
    datetime,
)
from typing import (
    Any,
    Dict,
    Iterable,
    List,
    Optional,
)

from google.cloud.firestore import (
    Client,
    CollectionReference,
    Query,
)

from app.core.firebase import get_firestore
from app.core.logging import logger


def to_datetime(value: Any) -> Optional[datetime]:
    """Normalise a stored timestamp (DatetimeWithNanoseconds) to an aware datetime."""
    if value is None:
        return None
    if hasattr(value, "timestamp"):
        return datetime.fromtimestamp(value.timestamp(), tz=UTC)
    return value


def _with_id(snapshot) -> Dict[str, Any]:
    data = snapshot.to_dict()
    data["id"] = snapshot.id
    return data


class BaseFirestoreRepository(ABC):
    """Common base for repositories that map one collection to one entity type."""

    def __init__(self, collection_name: str, db: Optional[Client] = None):
        """Bind the repository to a collection.

        Args:
            collection_name: Firestore collection holding the documents
            db: Firestore client; taken from the Firebase app on first use when omitted
        """
        self.collection_name = collection_name
        self._db: Optional[Client] = db
        self._collection: Optional[CollectionReference] = None

    @property
    def db(self) -> Client:
        if self._db is None:
            self._db = get_firestore()
        return self._db

    @property
    def collection(self) -> CollectionReference:
        if self._collection is None:
            self._collection = self.db.collection(self.collection_name)
        return self._collection

    async def get_document(self, doc_id: str) -> Optional[Dict[str, Any]]:
        """Read a single document.

        Args:
            doc_id: Document ID

        Returns:
            Optional[Dict[str, Any]]: Document fields plus ``id``, or None when absent
        """
        snapshot = self.collection.document(doc_id).get()
        return _with_id(snapshot) if snapshot.exists else None

    async def get_documents(self, doc_ids: Iterable[str]) -> List[Dict[str, Any]]:
        """Fetch several documents in one round trip.

        Duplicate IDs are requested once; missing documents are left out.
        """
        refs = [self.collection.document(doc_id) for doc_id in dict.fromkeys(doc_ids)]
        if not refs:
            return []
        return [_with_id(snapshot) for snapshot in self.db.get_all(refs) if snapshot.exists]

    async def delete_document(self, doc_id: str) -> bool:
        """Remove a document.

        Returns:
            bool: False when Firestore rejected the delete
        """
        try:
            self.collection.document(doc_id).delete()
        except Exception as e:
            logger.warning(
                "firestore_delete_failed",
                collection=self.collection_name,
                doc_id=doc_id,
                error=str(e),
            )
            return False
        return True

    async def run_query(self, query: Query) -> List[Dict[str, Any]]:
        """Materialise a prepared query."""
        return [_with_id(snapshot) for snapshot in query.stream()]

    @abstractmethod
    def to_entity(self, data: Dict[str, Any]) -> Any:
        """Build the domain entity from stored fields (``id`` included)."""

    @abstractmethod
    def from_entity(self, entity: Any) -> Dict[str, Any]:
        """Serialise a domain entity into the fields stored in Firestore."""
