"""
In-memory document stores for local development without Firebase credentials
(USE_MOCK_DB=true) and for tests.

Writes are serialized with a lock, so conditional updates are atomic the
same way a Firestore transaction is. When a snapshot path is given the
collection is loaded from and saved to a JSON file after every write.
"""

import copy
import json
import os
import threading
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from app.core.errors import ConditionFailed, ReportNotFound, StorageUnavailable
from app.models.report import Report
from app.models.user import UserProfile
from app.services.report_store import ReportFilter, ReportStore, UpdateCondition, Unsubscribe, sort_newest_first
from app.services.user_store import UserStore
from app.utils.firestore_helpers import set_field
from app.utils.timestamps import utc_now
import logging

logger = logging.getLogger(__name__)


def _json_default(value):
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class _JsonSnapshot:
    """Load/save a {doc_id: data} mapping to a JSON file."""

    def __init__(self, path: Optional[str]):
        self.path = path

    def load(self) -> Dict[str, Dict[str, Any]]:
        if not self.path or not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageUnavailable(f"Failed to load snapshot {self.path}: {e}") from e

    def save(self, documents: Dict[str, Dict[str, Any]]) -> None:
        if not self.path:
            return
        tmp_path = f"{self.path}.tmp"
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(documents, f, default=_json_default, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise StorageUnavailable(f"Failed to save snapshot {self.path}: {e}") from e


class InMemoryReportStore(ReportStore):

    def __init__(self, snapshot_path: Optional[str] = None):
        self._lock = threading.RLock()
        self._snapshot = _JsonSnapshot(snapshot_path)
        self._documents: Dict[str, Dict[str, Any]] = self._snapshot.load()
        self._watchers: Dict[int, Tuple[ReportFilter, Callable[[List[Report]], None]]] = {}
        self._next_watch_id = 0
        if self._documents:
            logger.info(f"Loaded {len(self._documents)} report(s) from {snapshot_path}")

    def create_report(self, payload: Dict[str, Any]) -> str:
        now = utc_now()
        with self._lock:
            report_id = uuid.uuid4().hex[:20]
            data = copy.deepcopy(payload)
            data["created_at"] = now
            data["updated_at"] = now
            self._documents[report_id] = data
            self._commit()
        logger.info(f"Report saved to in-memory store: {report_id}")
        return report_id

    def get_report(self, report_id: str) -> Report:
        with self._lock:
            data = self._documents.get(report_id)
            if data is None:
                raise ReportNotFound(report_id)
            return Report.from_document(report_id, copy.deepcopy(data))

    def update_report(
        self,
        report_id: str,
        fields: Dict[str, Any],
        condition: Optional[UpdateCondition] = None
    ) -> None:
        with self._lock:
            data = self._documents.get(report_id)
            if data is None:
                raise ReportNotFound(report_id)
            if condition is not None and not condition.holds(data):
                raise ConditionFailed(f"Precondition failed for report {report_id}")
            for field_path, value in fields.items():
                set_field(data, field_path, copy.deepcopy(value))
            self._commit()

    def _select(self, report_filter: Optional[ReportFilter]) -> List[Report]:
        report_filter = report_filter or ReportFilter()
        matching = [
            dict(data, id=doc_id)
            for doc_id, data in self._documents.items()
            if report_filter.matches(data)
        ]
        matching = sort_newest_first(matching, report_filter.newest_first)
        if report_filter.limit:
            matching = matching[:report_filter.limit]
        return [Report.from_document(d.pop("id"), copy.deepcopy(d)) for d in matching]

    def query_reports(self, report_filter: Optional[ReportFilter] = None) -> List[Report]:
        with self._lock:
            return self._select(report_filter)

    def watch_reports(
        self,
        report_filter: Optional[ReportFilter],
        on_change: Callable[[List[Report]], None]
    ) -> Unsubscribe:
        with self._lock:
            watch_id = self._next_watch_id
            self._next_watch_id += 1
            self._watchers[watch_id] = (report_filter or ReportFilter(), on_change)
            initial = self._select(report_filter)

        # Firestore delivers the current result set immediately; so do we.
        on_change(initial)

        def unsubscribe() -> None:
            with self._lock:
                self._watchers.pop(watch_id, None)

        return unsubscribe

    def _commit(self) -> None:
        """Persist the snapshot and notify watchers. Caller holds the lock."""
        self._snapshot.save(self._documents)
        for report_filter, on_change in list(self._watchers.values()):
            try:
                on_change(self._select(report_filter))
            except Exception as e:
                # A broken listener must not fail the write that triggered it
                logger.error(f"Report watcher callback failed: {e}", exc_info=True)


class InMemoryUserStore(UserStore):

    def __init__(self):
        self._lock = threading.RLock()
        self._documents: Dict[str, Dict[str, Any]] = {}

    def get_profile(self, uid: str) -> Optional[UserProfile]:
        with self._lock:
            data = self._documents.get(uid)
            if data is None:
                return None
            return UserProfile(**dict(copy.deepcopy(data), uid=uid))

    def upsert_profile(self, uid: str, data: Dict[str, Any], create_only: Optional[Dict[str, Any]] = None) -> None:
        now = utc_now()
        with self._lock:
            existing = self._documents.get(uid)
            created = existing is None
            if created:
                existing = {"created_at": now}
                self._documents[uid] = existing
            existing.update(copy.deepcopy(data))
            if created:
                existing.update(copy.deepcopy(create_only or {}))
            existing["updated_at"] = now

    def update_profile(self, uid: str, fields: Dict[str, Any]) -> None:
        with self._lock:
            existing = self._documents.get(uid)
            if existing is None:
                raise StorageUnavailable(f"Profile {uid} does not exist")
            existing.update(copy.deepcopy(fields))
            existing["updated_at"] = utc_now()

    def query_profiles(self, user_type: Optional[str] = None, status: Optional[str] = None) -> List[UserProfile]:
        with self._lock:
            profiles = []
            for uid, data in self._documents.items():
                if user_type and data.get("user_type") != user_type:
                    continue
                if status and data.get("status") != status:
                    continue
                profiles.append(UserProfile(**dict(copy.deepcopy(data), uid=uid)))
            return profiles
