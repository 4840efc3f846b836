"""
Tests for the Firestore-backed stores (Firestore client mocked)
"""
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
from firebase_admin import firestore
from google.api_core import exceptions as google_exceptions

from app.core.errors import ConditionFailed, ReportNotFound, StorageUnavailable
from app.services.report_store import (
    FirestoreReportStore,
    ReportFilter,
    UpdateCondition,
    _conditional_update,
)
from app.services.user_store import FirestoreUserStore


def _snapshot(doc_id, data, exists=True):
    doc = MagicMock()
    doc.id = doc_id
    doc.exists = exists
    doc.to_dict.return_value = data
    return doc


class TestFirestoreReportStore:
    """Test the Firestore report store against a mocked client."""

    def setup_method(self):
        self.db = MagicMock()
        self.collection = self.db.collection.return_value
        self.store = FirestoreReportStore(self.db, collection="reports")

    def test_create_report(self):
        doc_ref = self.collection.document.return_value
        doc_ref.id = "abc123"

        report_id = self.store.create_report({"reporter_id": "c1", "status": "submitted"})

        assert report_id == "abc123"
        self.db.collection.assert_called_with("reports")
        written = doc_ref.set.call_args.args[0]
        assert written["status"] == "submitted"
        assert written["created_at"] is firestore.SERVER_TIMESTAMP
        assert written["updated_at"] is firestore.SERVER_TIMESTAMP

    def test_create_wraps_backend_error(self):
        self.collection.document.return_value.set.side_effect = google_exceptions.ServiceUnavailable("down")
        with pytest.raises(StorageUnavailable) as exc_info:
            self.store.create_report({"reporter_id": "c1"})
        assert isinstance(exc_info.value.__cause__, google_exceptions.ServiceUnavailable)

    def test_get_report_normalizes_timestamps(self):
        created = datetime(2026, 2, 1, 8, 0)
        self.collection.document.return_value.get.return_value = _snapshot(
            "r1", {"reporter_id": "c1", "status": "working", "created_at": created, "voters": None}
        )

        report = self.store.get_report("r1")

        assert report.id == "r1"
        assert report.status == "working"
        assert report.voters == {}
        assert report.created_at == created.replace(tzinfo=timezone.utc)

    def test_get_missing_report(self):
        self.collection.document.return_value.get.return_value = _snapshot("r1", None, exists=False)
        with pytest.raises(ReportNotFound):
            self.store.get_report("r1")

    def test_unconditional_update(self):
        self.store.update_report("r1", {"status": "reviewed"})
        self.collection.document.assert_called_with("r1")
        self.collection.document.return_value.update.assert_called_once_with({"status": "reviewed"})

    def test_update_not_found(self):
        self.collection.document.return_value.update.side_effect = google_exceptions.NotFound("gone")
        with pytest.raises(ReportNotFound):
            self.store.update_report("r1", {"status": "reviewed"})

    @patch("app.services.report_store._conditional_update")
    def test_conditional_update_uses_transaction(self, mock_conditional):
        condition = UpdateCondition(equals={"status": "submitted"})
        self.store.update_report("r1", {"status": "reviewed"}, condition=condition)

        mock_conditional.assert_called_once_with(
            self.db.transaction.return_value,
            self.collection.document.return_value,
            {"status": "reviewed"},
            condition,
        )

    def test_query_builds_filters_order_and_limit(self):
        query = self.collection
        query.where.return_value = query
        query.order_by.return_value = query
        query.limit.return_value = query
        query.stream.return_value = [_snapshot("r1", {"reporter_id": "c1", "state": "Goa"})]

        reports = self.store.query_reports(ReportFilter(state="Goa", limit=5))

        assert [r.id for r in reports] == ["r1"]
        query.where.assert_called_once_with("state", "==", "Goa")
        query.order_by.assert_called_once_with("created_at", direction=firestore.Query.DESCENDING)
        query.limit.assert_called_once_with(5)

    def test_query_wraps_backend_error(self):
        self.collection.order_by.return_value.stream.side_effect = google_exceptions.DeadlineExceeded("slow")
        with pytest.raises(StorageUnavailable):
            self.store.query_reports()

    def test_watch_reports(self):
        query = self.collection.order_by.return_value
        watch = query.on_snapshot.return_value
        received = []

        unsubscribe = self.store.watch_reports(None, received.append)
        callback = query.on_snapshot.call_args.args[0]
        callback([_snapshot("r1", {"reporter_id": "c1"})], [], None)

        assert [r.id for r in received[0]] == ["r1"]
        assert unsubscribe == watch.unsubscribe


class TestConditionalUpdateBody:
    """The transaction body, called without the retrying wrapper."""

    def setup_method(self):
        self.transaction = MagicMock()
        self.doc_ref = MagicMock()
        self.doc_ref.id = "r1"

    def test_condition_holds(self):
        self.doc_ref.get.return_value = _snapshot("r1", {"status": "submitted", "voters": {}})
        condition = UpdateCondition(equals={"status": "submitted"}, absent=["voters.v1"])

        _conditional_update.to_wrap(self.transaction, self.doc_ref, {"voters.v1": "yes"}, condition)

        self.doc_ref.get.assert_called_once_with(transaction=self.transaction)
        self.transaction.update.assert_called_once_with(self.doc_ref, {"voters.v1": "yes"})

    def test_condition_fails(self):
        self.doc_ref.get.return_value = _snapshot("r1", {"status": "reviewed"})
        with pytest.raises(ConditionFailed):
            _conditional_update.to_wrap(
                self.transaction, self.doc_ref, {"status": "reviewed"}, UpdateCondition(equals={"status": "submitted"})
            )
        self.transaction.update.assert_not_called()

    def test_missing_document(self):
        self.doc_ref.get.return_value = _snapshot("r1", None, exists=False)
        with pytest.raises(ReportNotFound):
            _conditional_update.to_wrap(self.transaction, self.doc_ref, {}, UpdateCondition())


class TestFirestoreUserStore:

    def setup_method(self):
        self.db = MagicMock()
        self.collection = self.db.collection.return_value
        self.store = FirestoreUserStore(self.db, collection="users")

    def test_get_profile(self):
        self.collection.document.return_value.get.return_value = _snapshot(
            "u1", {"email": "u1@example.com", "user_type": "operator", "status": "pending"}
        )
        profile = self.store.get_profile("u1")
        assert profile.uid == "u1"
        assert profile.user_type == "operator"
        assert not profile.is_approved

    def test_get_missing_profile(self):
        self.collection.document.return_value.get.return_value = _snapshot("u1", None, exists=False)
        assert self.store.get_profile("u1") is None

    def test_update_wraps_backend_error(self):
        self.collection.document.return_value.update.side_effect = google_exceptions.PermissionDenied("rules")
        with pytest.raises(StorageUnavailable):
            self.store.update_profile("u1", {"status": "approved"})

    def test_query_profiles(self):
        self.collection.where.return_value = self.collection
        self.collection.stream.return_value = [_snapshot("o1", {"user_type": "operator", "status": "pending"})]

        profiles = self.store.query_profiles(user_type="operator", status="pending")

        assert [p.uid for p in profiles] == ["o1"]
        assert self.collection.where.call_count == 2
