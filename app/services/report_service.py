"""
Report service - citizen-facing report handling.

DESIGN NOTE:
- Creates reports with the lifecycle/verification fields initialized server-side
  (clients never choose their own status or counts)
- Browsing views (nearby, by area) fetch candidates from the store and hand
  them to the pure map_service transforms
- Store errors propagate unchanged (StorageUnavailable)
"""

from typing import Dict, List, Optional

from app.config.firebase import get_report_store
from app.core.errors import InvalidArea
from app.core.settings import settings
from app.models.report import ConfidenceLevel, NearbyReportsResponse, Report, ReportCreate
from app.services import map_service
from app.services.confidence_engine import confidence_reason
from app.services.geocoding.resolver import get_geocoding_provider
from app.services.report_store import ReportFilter, ReportStore
from app.services.status_workflow import INITIAL_STATUS, StatusWorkflowEngine
from app.utils.geo import validate_coordinates
from app.utils.timestamps import utc_now
import logging

logger = logging.getLogger(__name__)


class ReportService:
    """Service for creating and browsing reports."""

    def __init__(self, store: ReportStore, max_radius_km: Optional[float] = None):
        self.store = store
        self.max_radius_km = max_radius_km

    def create_report(self, report_data: ReportCreate, reporter_id: str, reporter_email: Optional[str] = None) -> Report:
        """
        Create a new citizen report.

        Status starts at the first lifecycle status, counts at zero, voters
        empty and confidence LOW. The store assigns id and timestamps.

        Returns:
            The stored report as read back from the store
        """
        now = utc_now()
        payload = {
            "reporter_id": reporter_id,
            "reporter_email": reporter_email,
            "title": report_data.title,
            "description": report_data.description,
            "category": report_data.category,
            "location_text": report_data.location_text,
            "lat": report_data.lat,
            "lng": report_data.lng,
            "state": report_data.state,
            "city": report_data.city,
            "status": INITIAL_STATUS,
            "status_history": StatusWorkflowEngine.initial_history(created_by=reporter_id, now=now),
            "yes_count": 0,
            "no_count": 0,
            "confidence_level": ConfidenceLevel.LOW.value,
            "confidence_reason": confidence_reason(0, 0),
            "voters": {},
        }

        report_id = self.store.create_report(payload)
        logger.info(f"📝 Report {report_id} created by {reporter_id} (category={report_data.category})")
        return self.store.get_report(report_id)

    def get_report(self, report_id: str) -> Report:
        return self.store.get_report(report_id)

    def list_reporter_reports(self, reporter_id: str) -> List[Report]:
        """A citizen's own reports, newest first."""
        return self.store.query_reports(ReportFilter(reporter_id=reporter_id))

    def _browse(self, reports: List, viewer_id: Optional[str], confidence: Optional[str]):
        own_excluded = map_service.exclude_reporter(reports, viewer_id)
        visible = map_service.filter_by_confidence(own_excluded, confidence)
        return visible, len(reports) - len(visible)

    def get_nearby_reports(
        self,
        lat: float,
        lng: float,
        radius_km: float,
        viewer_id: Optional[str] = None,
        confidence: Optional[str] = None,
        state: Optional[str] = None,
        city: Optional[str] = None
    ) -> NearbyReportsResponse:
        """
        Reports within radius_km of (lat, lng), nearest first.

        Optional state/city narrow the radius result to an administrative area
        (useful near borders). The viewer's own reports are hidden, as are
        reports outside the requested confidence level; hidden_count says how many.

        Candidate set: full collection scan, then exact distance filtering.
        """
        # Validate before touching the store
        validate_coordinates(lat, lng)
        candidates = self.store.query_reports()

        nearby = map_service.filter_nearby(lat, lng, radius_km, candidates, max_radius_km=self.max_radius_km)
        if state or city:
            nearby = map_service.filter_by_area(nearby, state, city)

        visible, hidden = self._browse(nearby, viewer_id, confidence)
        return NearbyReportsResponse(count=len(visible), hidden_count=hidden, radius_km=radius_km, reports=visible)

    def get_reports_by_area(
        self,
        state: str,
        city: Optional[str] = None,
        lat: Optional[float] = None,
        lng: Optional[float] = None,
        viewer_id: Optional[str] = None,
        confidence: Optional[str] = None
    ) -> NearbyReportsResponse:
        """
        Every report in a state (or a city within a state), newest first,
        or nearest first when the viewer's location is given.
        """
        if not state:
            raise InvalidArea("State is required")

        reports = self.store.query_reports(ReportFilter(state=state, city=city))
        annotated = map_service.annotate_distances(reports, lat, lng)

        visible, hidden = self._browse(annotated, viewer_id, confidence)
        return NearbyReportsResponse(count=len(visible), hidden_count=hidden, reports=visible)

    def list_states(self) -> List[str]:
        """Distinct states that have at least one report, sorted (area dropdown)."""
        return sorted({r.state for r in self.store.query_reports() if r.state})

    def list_cities(self, state: Optional[str]) -> List[str]:
        """Distinct cities reported within `state`, sorted. Empty when no state is given."""
        if not state:
            return []
        return sorted({r.city for r in self.store.query_reports(ReportFilter(state=state)) if r.city})

    def detect_area(self, lat: float, lng: float) -> Dict[str, Optional[str]]:
        """
        Reverse-geocode the viewer's location to a state/city for area mode.
        Never raises on provider failure; fields are None instead.
        """
        validate_coordinates(lat, lng)
        result = get_geocoding_provider().reverse_geocode(lat, lng)
        return {
            "state": result.get("state"),
            "city": result.get("city"),
            "formatted_address": result.get("formatted_address"),
            "provider": result.get("provider"),
        }


# Global service instance (singleton pattern)
_report_service = None


def get_report_service() -> ReportService:
    """Get or create ReportService singleton."""
    global _report_service
    if _report_service is None:
        _report_service = ReportService(get_report_store(), max_radius_km=settings.MAX_RADIUS_KM)
    return _report_service
