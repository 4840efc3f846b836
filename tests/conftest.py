"""
Pytest configuration and fixtures
"""
import os

# Settings are read once at import; force the offline stack before any app import
os.environ.setdefault("USE_MOCK_DB", "true")
os.environ.setdefault("GEOCODING_PROVIDER", "none")

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from app.models.report import Report
from app.models.user import ApprovalStatus, UserType
from app.services.memory_store import InMemoryReportStore, InMemoryUserStore
from app.services.operator_service import OperatorService, get_operator_service
from app.services.report_service import ReportService, get_report_service
from app.services.user_service import UserService, get_user_service
from app.services.vote_service import VoteService, get_vote_service

FIXED_NOW = datetime(2026, 3, 14, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def make_report():
    """Build a Report without touching a store."""
    def _make(**overrides) -> Report:
        data = {
            "id": "r1",
            "reporter_id": "reporter-1",
            "title": "Waterlogging near bus stand",
            "description": "Knee-deep water on the main road",
            "category": "flood",
            "location_text": "Bus stand, Station Road",
            "lat": 0.0,
            "lng": 0.0,
            "state": "Maharashtra",
            "city": "Pune",
            "status": "submitted",
            "yes_count": 0,
            "no_count": 0,
            "confidence_level": "low",
            "voters": {},
            "created_at": FIXED_NOW,
            "updated_at": FIXED_NOW,
        }
        data.update(overrides)
        return Report(**data)
    return _make


@pytest.fixture
def report_store():
    return InMemoryReportStore()


@pytest.fixture
def user_store():
    return InMemoryUserStore()


@pytest.fixture
def seed_report(report_store):
    """Insert a report document directly into the in-memory store."""
    def _seed(**overrides) -> str:
        payload = {
            "reporter_id": "reporter-1",
            "title": "Fallen tree",
            "description": "Tree blocking one lane",
            "category": "road",
            "location_text": "MG Road",
            "lat": 18.52,
            "lng": 73.85,
            "state": "Maharashtra",
            "city": "Pune",
            "status": "submitted",
            "status_history": [],
            "yes_count": 0,
            "no_count": 0,
            "confidence_level": "low",
            "voters": {},
        }
        payload.update(overrides)
        return report_store.create_report(payload)
    return _seed


@pytest.fixture
def report_service(report_store):
    return ReportService(report_store, max_radius_km=500.0)


@pytest.fixture
def vote_service(report_store):
    return VoteService(report_store, max_retries=3)


@pytest.fixture
def operator_service(report_store):
    return OperatorService(report_store)


@pytest.fixture
def user_service(user_store):
    return UserService(user_store, max_retries=3, retry_delay_ms=10, sleep=lambda seconds: None)


@pytest.fixture
def add_user(user_store):
    """Insert a profile with the given type and approval status."""
    def _add(uid: str, user_type: UserType = UserType.CITIZEN, status: ApprovalStatus = ApprovalStatus.APPROVED):
        user_store.upsert_profile(uid, {
            "uid": uid,
            "email": f"{uid}@example.com",
            "user_type": user_type.value,
            "role": user_type.value if status == ApprovalStatus.APPROVED else None,
            "status": status.value,
        })
        return user_store.get_profile(uid)
    return _add


@pytest.fixture
def client(report_service, vote_service, operator_service, user_service):
    """TestClient wired to the in-memory services."""
    from app.main import app

    app.dependency_overrides[get_report_service] = lambda: report_service
    app.dependency_overrides[get_vote_service] = lambda: vote_service
    app.dependency_overrides[get_operator_service] = lambda: operator_service
    app.dependency_overrides[get_user_service] = lambda: user_service
    yield TestClient(app)
    app.dependency_overrides.clear()
