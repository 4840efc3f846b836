"""
Operator endpoints - live incident feed and status workflow.

Only approved operators (or admins) may call these. Status moves one step
at a time: submitted → reviewed → working → resolved.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from app.core.errors import ReportEngineError
from app.models.report import AdvanceRequest, AdvanceResponse, DashboardStats, Report, StatusUpdateRequest
from app.models.user import UserProfile
from app.routes.dependencies import http_error, require_operator
from app.services.operator_service import OperatorService, get_operator_service
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/operator", tags=["Operator"])


@router.get("/reports", response_model=List[Report])
def get_reports(
    status: Optional[str] = Query(None, description="Filter by status ('all' for every status)"),
    category: Optional[str] = Query(None, description="Filter by category"),
    confidence: Optional[str] = Query(None, description="Filter by confidence level"),
    limit: Optional[int] = Query(None, ge=1, le=500, description="Maximum number of reports"),
    operator: UserProfile = Depends(require_operator),
    operator_service: OperatorService = Depends(get_operator_service)
):
    try:
        return operator_service.list_reports(status=status, category=category, confidence=confidence, limit=limit)
    except ReportEngineError as e:
        raise http_error(e)


@router.get("/stats", response_model=DashboardStats)
def get_stats(
    operator: UserProfile = Depends(require_operator),
    operator_service: OperatorService = Depends(get_operator_service)
):
    """Totals for the operator console (total, active, working, resolved today)."""
    try:
        return operator_service.get_dashboard_stats()
    except ReportEngineError as e:
        raise http_error(e)


@router.post("/reports/{report_id}/advance", response_model=AdvanceResponse)
def advance_report(
    report_id: str,
    request: Optional[AdvanceRequest] = None,
    operator: UserProfile = Depends(require_operator),
    operator_service: OperatorService = Depends(get_operator_service)
):
    """
    Move a report to its next status.

    Resolved reports are left alone and reported with already_terminal=true.
    """
    try:
        return operator_service.advance_report(
            report_id,
            operator_id=operator.uid,
            note=request.note if request else None,
        )
    except ReportEngineError as e:
        logger.warning(f"Advance of {report_id} by {operator.uid} rejected: {e.message}")
        raise http_error(e)


@router.patch("/reports/{report_id}/status", response_model=Report)
def change_status(
    report_id: str,
    request: StatusUpdateRequest,
    operator: UserProfile = Depends(require_operator),
    operator_service: OperatorService = Depends(get_operator_service)
):
    """
    Set an explicit status. Only the single next status is accepted;
    skips, repeats and regressions are rejected with 400.
    """
    try:
        return operator_service.transition_report(
            report_id,
            to_status=request.status,
            operator_id=operator.uid,
            note=request.note,
        )
    except ReportEngineError as e:
        logger.warning(f"Status change of {report_id} by {operator.uid} rejected: {e.message}")
        raise http_error(e)


@router.get("/reports/{report_id}/allowed-transitions")
def get_allowed_transitions(
    report_id: str,
    operator: UserProfile = Depends(require_operator),
    operator_service: OperatorService = Depends(get_operator_service)
):
    try:
        return operator_service.get_allowed_transitions(report_id)
    except ReportEngineError as e:
        raise http_error(e)
