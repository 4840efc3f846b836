"""
Report store - the Document Store boundary for reports.

The engines never talk to Firestore directly. They produce field deltas and
the services apply them through a ReportStore, optionally guarded by an
UpdateCondition that the store checks atomically with the write.

Implementations:
- FirestoreReportStore (this module): firebase_admin, transactions for conditions
- InMemoryReportStore (memory_store.py): local development and tests
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from firebase_admin import firestore
from google.api_core import exceptions as google_exceptions

from app.core.errors import ConditionFailed, ReportNotFound, StorageUnavailable
from app.models.report import Report
from app.utils.firestore_helpers import get_field, has_field, where_filter
from app.utils.timestamps import parse_timestamp
import logging

logger = logging.getLogger(__name__)

Unsubscribe = Callable[[], None]


@dataclass
class ReportFilter:
    """Equality filters understood by every store. None means "don't filter"."""
    reporter_id: Optional[str] = None
    status: Optional[str] = None
    category: Optional[str] = None
    confidence_level: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None
    limit: Optional[int] = None
    newest_first: bool = True

    def equality_filters(self) -> Dict[str, Any]:
        candidates = {
            "reporter_id": self.reporter_id,
            "status": self.status,
            "category": self.category,
            "confidence_level": self.confidence_level,
            "state": self.state,
            "city": self.city,
        }
        return {k: v for k, v in candidates.items() if v is not None}

    def matches(self, data: Dict[str, Any]) -> bool:
        return all(data.get(k) == v for k, v in self.equality_filters().items())


@dataclass
class UpdateCondition:
    """
    Precondition checked atomically with an update.

    equals: dotted field path -> value the stored document must currently hold
    absent: dotted field paths that must not exist yet
    """
    equals: Dict[str, Any] = field(default_factory=dict)
    absent: List[str] = field(default_factory=list)

    def holds(self, data: Dict[str, Any]) -> bool:
        for path in self.absent:
            if has_field(data, path):
                return False
        for path, expected in self.equals.items():
            if get_field(data, path) != expected:
                return False
        return True


def sort_newest_first(documents: List[Dict[str, Any]], newest_first: bool = True) -> List[Dict[str, Any]]:
    def key(doc):
        ts = parse_timestamp(doc.get("created_at"))
        return ts.timestamp() if ts else 0.0
    return sorted(documents, key=key, reverse=newest_first)


class ReportStore(ABC):
    """
    Contract:
    - create_report assigns the id and the created_at/updated_at timestamps
    - update_report with a condition is atomic: either the condition holds and
      all fields are written, or ConditionFailed is raised and nothing changes
    - every backend failure surfaces as StorageUnavailable
    """

    @abstractmethod
    def create_report(self, payload: Dict[str, Any]) -> str:
        raise NotImplementedError

    @abstractmethod
    def get_report(self, report_id: str) -> Report:
        """Raises ReportNotFound when the document does not exist."""
        raise NotImplementedError

    @abstractmethod
    def update_report(
        self,
        report_id: str,
        fields: Dict[str, Any],
        condition: Optional[UpdateCondition] = None
    ) -> None:
        raise NotImplementedError

    @abstractmethod
    def query_reports(self, report_filter: Optional[ReportFilter] = None) -> List[Report]:
        raise NotImplementedError

    @abstractmethod
    def watch_reports(
        self,
        report_filter: Optional[ReportFilter],
        on_change: Callable[[List[Report]], None]
    ) -> Unsubscribe:
        """Call on_change with the full matching result set on every change. Returns an unsubscribe callable."""
        raise NotImplementedError


@firestore.transactional
def _conditional_update(transaction, doc_ref, fields: Dict[str, Any], condition: UpdateCondition) -> None:
    snapshot = doc_ref.get(transaction=transaction)
    if not snapshot.exists:
        raise ReportNotFound(doc_ref.id)
    if not condition.holds(snapshot.to_dict() or {}):
        raise ConditionFailed(f"Precondition failed for report {doc_ref.id}")
    transaction.update(doc_ref, fields)


class FirestoreReportStore(ReportStore):
    """ReportStore backed by a Firestore collection."""

    def __init__(self, db, collection: str = "reports"):
        self.db = db
        self.collection = collection

    def _collection(self):
        return self.db.collection(self.collection)

    def create_report(self, payload: Dict[str, Any]) -> str:
        doc_ref = self._collection().document()  # Auto-generate unique ID
        data = dict(payload)
        data["created_at"] = firestore.SERVER_TIMESTAMP
        data["updated_at"] = firestore.SERVER_TIMESTAMP
        try:
            doc_ref.set(data)
        except google_exceptions.GoogleAPIError as e:
            logger.error(f"Failed to save report to Firestore: {e}", exc_info=True)
            raise StorageUnavailable(f"Failed to create report: {e}") from e
        logger.info(f"Report saved to Firestore: {doc_ref.id}")
        return doc_ref.id

    def get_report(self, report_id: str) -> Report:
        try:
            doc = self._collection().document(report_id).get()
        except google_exceptions.GoogleAPIError as e:
            logger.error(f"Failed to read report {report_id}: {e}")
            raise StorageUnavailable(f"Failed to read report {report_id}: {e}") from e
        if not doc.exists:
            raise ReportNotFound(report_id)
        return Report.from_document(doc.id, doc.to_dict() or {})

    def update_report(
        self,
        report_id: str,
        fields: Dict[str, Any],
        condition: Optional[UpdateCondition] = None
    ) -> None:
        doc_ref = self._collection().document(report_id)
        try:
            if condition is None:
                doc_ref.update(fields)
            else:
                _conditional_update(self.db.transaction(), doc_ref, fields, condition)
        except google_exceptions.NotFound as e:
            raise ReportNotFound(report_id) from e
        except google_exceptions.GoogleAPIError as e:
            logger.error(f"Failed to update report {report_id}: {e}")
            raise StorageUnavailable(f"Failed to update report {report_id}: {e}") from e

    def _build_query(self, report_filter: Optional[ReportFilter]):
        report_filter = report_filter or ReportFilter()
        query = self._collection()
        for field_path, value in report_filter.equality_filters().items():
            query = where_filter(query, field_path, "==", value)
        direction = firestore.Query.DESCENDING if report_filter.newest_first else firestore.Query.ASCENDING
        query = query.order_by("created_at", direction=direction)
        if report_filter.limit:
            query = query.limit(report_filter.limit)
        return query

    def query_reports(self, report_filter: Optional[ReportFilter] = None) -> List[Report]:
        try:
            docs = self._build_query(report_filter).stream()
            return [Report.from_document(doc.id, doc.to_dict() or {}) for doc in docs]
        except google_exceptions.GoogleAPIError as e:
            logger.error(f"Failed to query reports: {e}")
            raise StorageUnavailable(f"Failed to query reports: {e}") from e

    def watch_reports(
        self,
        report_filter: Optional[ReportFilter],
        on_change: Callable[[List[Report]], None]
    ) -> Unsubscribe:
        def on_snapshot(docs, changes, read_time):
            on_change([Report.from_document(doc.id, doc.to_dict() or {}) for doc in docs])

        watch = self._build_query(report_filter).on_snapshot(on_snapshot)
        return watch.unsubscribe
