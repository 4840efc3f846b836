"""
Operator Service - backend logic for operator actions on reports.

DESIGN PRINCIPLES:
- Filter reports by status, category, confidence
- Advance status one step at a time through the workflow engine
- Every status write is a compare-and-swap on the status the operator saw
- Dashboard stats derived from the live report set
"""

from datetime import datetime
from typing import Dict, List, Optional

from app.config.firebase import get_report_store
from app.core.errors import ConcurrentModification, ConditionFailed, InvalidTransition
from app.models.report import AdvanceResponse, DashboardStats, Report, ReportStatus
from app.services.report_store import ReportFilter, ReportStore, UpdateCondition
from app.services.status_workflow import StatusWorkflowEngine, TERMINAL_STATUS
from app.utils.timestamps import utc_now
import logging

logger = logging.getLogger(__name__)


def _none_if_all(value: Optional[str]) -> Optional[str]:
    return None if value in (None, "", "all") else value


class OperatorService:
    """
    Service for operator operations on reports.
    """

    def __init__(self, store: ReportStore):
        self.store = store
        self.workflow = StatusWorkflowEngine()

    def list_reports(
        self,
        status: Optional[str] = None,
        category: Optional[str] = None,
        confidence: Optional[str] = None,
        limit: Optional[int] = None
    ) -> List[Report]:
        """
        Live incident feed with optional filters, newest first.

        Args:
            status: Filter by status ("all" or None for every status)
            category: Filter by category
            confidence: Filter by confidence level
            limit: Maximum number of reports to return
        """
        report_filter = ReportFilter(
            status=_none_if_all(status),
            category=_none_if_all(category),
            confidence_level=_none_if_all(confidence),
            limit=limit,
        )
        reports = self.store.query_reports(report_filter)
        logger.info(f"Retrieved {len(reports)} reports with filters: status={status}, category={category}, confidence={confidence}")
        return reports

    def _write_transition(self, report: Report, updates: Dict) -> None:
        # Compare-and-swap: only move the report if nobody moved it first
        try:
            self.store.update_report(report.id, updates, condition=UpdateCondition(equals={"status": report.status}))
        except ConditionFailed as e:
            logger.warning(f"Report {report.id} changed status concurrently; transition from {report.status} rejected")
            raise ConcurrentModification(
                f"Report {report.id} is no longer '{report.status}'; reload and try again"
            ) from e

    def advance_report(self, report_id: str, operator_id: str, note: Optional[str] = None) -> AdvanceResponse:
        """
        Move a report to the next status.

        Returns:
            AdvanceResponse; already_terminal=True (and no write) for resolved reports

        Raises:
            InvalidTransition: stored status is not part of the lifecycle
            ConcurrentModification: the status changed between read and write
        """
        report = self.store.get_report(report_id)
        outcome = self.workflow.advance(report, changed_by=operator_id, note=note)

        if outcome.already_terminal:
            logger.info(f"Report {report_id} already {TERMINAL_STATUS}; nothing to advance")
            return AdvanceResponse(report_id=report_id, from_status=outcome.from_status, already_terminal=True)

        if not outcome.advanced:
            raise InvalidTransition(report.status)

        self._write_transition(report, outcome.updates)
        logger.info(f"✅ Operator {operator_id} advanced report {report_id}: {outcome.from_status} → {outcome.to_status}")
        return AdvanceResponse(report_id=report_id, from_status=outcome.from_status, to_status=outcome.to_status)

    def transition_report(
        self,
        report_id: str,
        to_status: str,
        operator_id: str,
        note: Optional[str] = None
    ) -> Report:
        """
        Apply an explicit status change, accepted only if it is the single next step.

        Raises:
            InvalidTransition: skip, repeat, regression or unknown status
            ConcurrentModification: the status changed between read and write
        """
        report = self.store.get_report(report_id)

        if not self.workflow.can_transition(report.status, to_status):
            allowed = self.workflow.get_allowed_transitions(report.status)
            raise InvalidTransition(
                report.status,
                to_status,
                message=(
                    f"Invalid status transition: {report.status} → {to_status}. "
                    f"Allowed transitions from {report.status}: {allowed}"
                ),
            )

        updates = self.workflow.transition_updates(report, to_status, operator_id, note)
        self._write_transition(report, updates)
        logger.info(f"✅ Operator {operator_id} moved report {report_id}: {report.status} → {to_status}")
        return self.store.get_report(report_id)

    def get_allowed_transitions(self, report_id: str) -> Dict:
        report = self.store.get_report(report_id)
        return {
            "report_id": report_id,
            "current_status": report.status,
            "allowed_transitions": self.workflow.get_allowed_transitions(report.status),
        }

    def get_dashboard_stats(self, now: Optional[datetime] = None) -> DashboardStats:
        """
        Headline numbers for the operator console.

        - active: anything not resolved
        - resolved_today: resolved reports last updated on today's (UTC) date
        """
        now = now or utc_now()
        reports = self.store.query_reports()

        resolved = ReportStatus.RESOLVED.value
        resolved_today = 0
        for r in reports:
            last_change = r.updated_at or r.created_at
            if r.status == resolved and last_change and last_change.date() == now.date():
                resolved_today += 1

        return DashboardStats(
            total_reports=len(reports),
            active_reports=sum(1 for r in reports if r.status != resolved),
            working_reports=sum(1 for r in reports if r.status == ReportStatus.WORKING.value),
            resolved_today=resolved_today,
            categories=sorted({r.category for r in reports if r.category}),
        )


# Global service instance (singleton pattern)
_operator_service = None


def get_operator_service() -> OperatorService:
    """Get or create OperatorService singleton."""
    global _operator_service
    if _operator_service is None:
        _operator_service = OperatorService(get_report_store())
    return _operator_service
