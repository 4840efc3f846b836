"""
Report endpoints - citizen report submission, browsing and verification votes.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.core.errors import ReportEngineError
from app.models.report import NearbyReportsResponse, Report, ReportCreate, VoteRequest, VoteResponse
from app.routes.dependencies import get_caller_email, get_caller_id, get_optional_caller_id, http_error
from app.services.report_service import ReportService, get_report_service
from app.services.vote_service import VoteService, get_vote_service
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=Report)
def submit_report(
    report: ReportCreate,
    caller_id: str = Depends(get_caller_id),
    caller_email: Optional[str] = Depends(get_caller_email),
    report_service: ReportService = Depends(get_report_service)
):
    """
    Submit a new citizen report.

    Status starts at 'submitted' with no votes and LOW confidence.
    Returns the created report with its generated ID.
    """
    logger.info(f"📝 POST /reports - category={report.category}, state={report.state}, city={report.city}")
    try:
        return report_service.create_report(report, reporter_id=caller_id, reporter_email=caller_email)
    except ReportEngineError as e:
        logger.error(f"❌ POST /reports - Report creation failed: {e.message}")
        raise http_error(e)


@router.get("/mine", response_model=List[Report])
def get_my_reports(
    caller_id: str = Depends(get_caller_id),
    report_service: ReportService = Depends(get_report_service)
):
    """The caller's own reports, newest first."""
    try:
        return report_service.list_reporter_reports(caller_id)
    except ReportEngineError as e:
        raise http_error(e)


@router.get("/nearby", response_model=NearbyReportsResponse)
def get_nearby_reports(
    lat: float = Query(..., description="Viewer latitude"),
    lng: float = Query(..., description="Viewer longitude"),
    radius_km: float = Query(5.0, description="Search radius in kilometres"),
    confidence: Optional[str] = Query(None, description="Only this confidence level ('all' for every level)"),
    state: Optional[str] = Query(None, description="Also require this state"),
    city: Optional[str] = Query(None, description="Also require this city (needs state)"),
    caller_id: Optional[str] = Depends(get_optional_caller_id),
    report_service: ReportService = Depends(get_report_service)
):
    """
    Reports within radius_km of the viewer, nearest first, each annotated
    with distance_in_km. The caller's own reports are not shown.
    """
    try:
        return report_service.get_nearby_reports(
            lat=lat,
            lng=lng,
            radius_km=radius_km,
            viewer_id=caller_id,
            confidence=confidence,
            state=state,
            city=city,
        )
    except ReportEngineError as e:
        raise http_error(e)


@router.get("/area", response_model=NearbyReportsResponse)
def get_area_reports(
    state: Optional[str] = Query(None, description="State (required)"),
    city: Optional[str] = Query(None, description="City within the state"),
    lat: Optional[float] = Query(None, description="Viewer latitude for distance annotation"),
    lng: Optional[float] = Query(None, description="Viewer longitude for distance annotation"),
    confidence: Optional[str] = Query(None, description="Only this confidence level"),
    caller_id: Optional[str] = Depends(get_optional_caller_id),
    report_service: ReportService = Depends(get_report_service)
):
    """Every report in a state or city. Sorted by distance when lat/lng are given."""
    try:
        return report_service.get_reports_by_area(
            state=state,
            city=city,
            lat=lat,
            lng=lng,
            viewer_id=caller_id,
            confidence=confidence,
        )
    except ReportEngineError as e:
        raise http_error(e)


@router.get("/area/states", response_model=List[str])
def list_area_states(report_service: ReportService = Depends(get_report_service)):
    """States with at least one report, for the area-mode state picker."""
    try:
        return report_service.list_states()
    except ReportEngineError as e:
        raise http_error(e)


@router.get("/area/cities", response_model=List[str])
def list_area_cities(
    state: Optional[str] = Query(None, description="State whose cities to list"),
    report_service: ReportService = Depends(get_report_service)
):
    """Cities with reports in `state`. Empty list when no state is given."""
    try:
        return report_service.list_cities(state)
    except ReportEngineError as e:
        raise http_error(e)


@router.get("/area/detect")
def detect_area(
    lat: float = Query(..., description="Latitude"),
    lng: float = Query(..., description="Longitude"),
    report_service: ReportService = Depends(get_report_service)
):
    """Reverse-geocode a location to state/city. Fields are null when lookup fails."""
    try:
        return report_service.detect_area(lat, lng)
    except ReportEngineError as e:
        raise http_error(e)


@router.get("/{report_id}", response_model=Report)
def get_report(report_id: str, report_service: ReportService = Depends(get_report_service)):
    try:
        return report_service.get_report(report_id)
    except ReportEngineError as e:
        raise http_error(e)


@router.post("/{report_id}/vote", response_model=VoteResponse)
def vote_on_report(
    report_id: str,
    request: VoteRequest,
    caller_id: str = Depends(get_caller_id),
    vote_service: VoteService = Depends(get_vote_service)
):
    """
    Confirm ('yes') or mark uncertain ('no') a report.

    Raises:
        403: voting on your own report
        409: already voted, or too many concurrent votes
        422: choice is not 'yes'/'no'
    """
    try:
        return vote_service.cast_vote(report_id, caller_id, request.choice)
    except ReportEngineError as e:
        if e.status_code != 404:
            logger.warning(f"Vote by {caller_id} on {report_id} rejected: {e.message}")
        raise http_error(e)
