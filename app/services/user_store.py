"""
User store - the Document Store boundary for user profiles (users/{uid}).
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from firebase_admin import firestore
from google.api_core import exceptions as google_exceptions

from app.core.errors import StorageUnavailable
from app.models.user import UserProfile
from app.utils.firestore_helpers import where_filter
import logging

logger = logging.getLogger(__name__)


class UserStore(ABC):

    @abstractmethod
    def get_profile(self, uid: str) -> Optional[UserProfile]:
        raise NotImplementedError

    @abstractmethod
    def upsert_profile(self, uid: str, data: Dict[str, Any], create_only: Optional[Dict[str, Any]] = None) -> None:
        """
        Merge `data` into users/{uid}.

        `create_only` fields are written only when the document does not exist
        yet (so re-running the upsert never resets an approval).
        """
        raise NotImplementedError

    @abstractmethod
    def update_profile(self, uid: str, fields: Dict[str, Any]) -> None:
        raise NotImplementedError

    @abstractmethod
    def query_profiles(self, user_type: Optional[str] = None, status: Optional[str] = None) -> List[UserProfile]:
        raise NotImplementedError


@firestore.transactional
def _upsert_in_transaction(transaction, doc_ref, data: Dict[str, Any], create_only: Dict[str, Any]) -> None:
    snapshot = doc_ref.get(transaction=transaction)
    payload = dict(data)
    if not snapshot.exists:
        payload.update(create_only)
    transaction.set(doc_ref, payload, merge=True)


class FirestoreUserStore(UserStore):

    def __init__(self, db, collection: str = "users"):
        self.db = db
        self.collection = collection

    def get_profile(self, uid: str) -> Optional[UserProfile]:
        try:
            doc = self.db.collection(self.collection).document(uid).get()
        except google_exceptions.GoogleAPIError as e:
            raise StorageUnavailable(f"Failed to read profile {uid}: {e}") from e
        if not doc.exists:
            return None
        data = doc.to_dict() or {}
        data["uid"] = doc.id
        return UserProfile(**data)

    def upsert_profile(self, uid: str, data: Dict[str, Any], create_only: Optional[Dict[str, Any]] = None) -> None:
        doc_ref = self.db.collection(self.collection).document(uid)
        payload = dict(data)
        payload["updated_at"] = firestore.SERVER_TIMESTAMP
        first_write = dict(create_only or {})
        first_write["created_at"] = firestore.SERVER_TIMESTAMP
        try:
            _upsert_in_transaction(self.db.transaction(), doc_ref, payload, first_write)
        except google_exceptions.GoogleAPIError as e:
            raise StorageUnavailable(f"Failed to write profile {uid}: {e}") from e

    def update_profile(self, uid: str, fields: Dict[str, Any]) -> None:
        payload = dict(fields)
        payload["updated_at"] = firestore.SERVER_TIMESTAMP
        try:
            self.db.collection(self.collection).document(uid).update(payload)
        except google_exceptions.GoogleAPIError as e:
            raise StorageUnavailable(f"Failed to update profile {uid}: {e}") from e

    def query_profiles(self, user_type: Optional[str] = None, status: Optional[str] = None) -> List[UserProfile]:
        query = self.db.collection(self.collection)
        if user_type:
            query = where_filter(query, "user_type", "==", user_type)
        if status:
            query = where_filter(query, "status", "==", status)
        try:
            profiles = []
            for doc in query.stream():
                data = doc.to_dict() or {}
                data["uid"] = doc.id
                profiles.append(UserProfile(**data))
            return profiles
        except google_exceptions.GoogleAPIError as e:
            raise StorageUnavailable(f"Failed to query profiles: {e}") from e
