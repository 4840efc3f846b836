"""
Status Workflow Engine - strict single-step forward state machine.

DESIGN PRINCIPLES:
- The ReportStatus declaration order is the only definition of the lifecycle
- No skipping states
- No backward transitions, no same-status "transitions"
- Unknown/legacy statuses are never advanced (and never crash the engine)
- All transitions logged in status_history
- Pure: produces field deltas, the caller persists them
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from app.models.report import Report, ReportStatus
from app.utils.timestamps import utc_now
import logging

logger = logging.getLogger(__name__)

STATUS_SEQUENCE: Tuple[str, ...] = tuple(status.value for status in ReportStatus)
INITIAL_STATUS: str = STATUS_SEQUENCE[0]
TERMINAL_STATUS: str = STATUS_SEQUENCE[-1]


@dataclass
class StatusAdvance:
    """
    Outcome of advancing a report.

    - advanced: `updates` holds the field deltas to persist
    - already_terminal: report is at the last status; benign no-op
    - no transition (neither flag): current status is not a known status
    """
    from_status: str
    to_status: Optional[str] = None
    already_terminal: bool = False
    updates: Dict = field(default_factory=dict)

    @property
    def advanced(self) -> bool:
        return self.to_status is not None


def _index_of(status) -> int:
    value = status.value if isinstance(status, ReportStatus) else status
    try:
        return STATUS_SEQUENCE.index(value)
    except ValueError:
        return -1


class StatusWorkflowEngine:
    """
    Strict state machine for report status transitions.

    Rules:
    - Only the status immediately after the current one is reachable
    - The terminal status has no successor
    """

    @classmethod
    def is_known_status(cls, status) -> bool:
        return _index_of(status) != -1

    @classmethod
    def next_status(cls, current) -> Optional[str]:
        """
        Status immediately following `current`.

        Returns:
            The next status string, or None if `current` is unknown or terminal
        """
        idx = _index_of(current)
        if idx == -1 or idx == len(STATUS_SEQUENCE) - 1:
            return None
        return STATUS_SEQUENCE[idx + 1]

    @classmethod
    def can_transition(cls, from_status, to_status) -> bool:
        """
        Check if a status transition is valid.

        True only when both statuses are known and `to_status` is exactly one
        step after `from_status`.
        """
        from_idx = _index_of(from_status)
        to_idx = _index_of(to_status)
        return from_idx != -1 and to_idx == from_idx + 1

    @classmethod
    def get_allowed_transitions(cls, current_status) -> List[str]:
        nxt = cls.next_status(current_status)
        return [nxt] if nxt else []

    @classmethod
    def create_status_history_entry(
        cls,
        from_status: str,
        to_status: str,
        changed_by: str,
        timestamp: datetime,
        note: Optional[str] = None
    ) -> Dict:
        """
        Create a status history entry for the audit trail.

        The timestamp is explicit: Firestore rejects server timestamps inside arrays.
        """
        return {
            "from": from_status,
            "to": to_status,
            "changed_by": changed_by,
            "timestamp": timestamp,
            "note": note or ""
        }

    @classmethod
    def advance(
        cls,
        report: Report,
        changed_by: str = "system",
        note: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> StatusAdvance:
        """
        Compute the single-step advance for a report.

        Args:
            report: Current report
            changed_by: Operator identifier recorded in the history
            note: Optional note
            now: Mutation time (defaults to current UTC time)

        Returns:
            StatusAdvance describing the outcome; never raises for bad data
        """
        current = report.status
        if current == TERMINAL_STATUS:
            return StatusAdvance(from_status=current, already_terminal=True)

        nxt = cls.next_status(current)
        if nxt is None:
            logger.warning(f"Report {report.id} has unknown status {current!r}; not advancing")
            return StatusAdvance(from_status=current)

        return StatusAdvance(
            from_status=current,
            to_status=nxt,
            updates=cls.transition_updates(report, nxt, changed_by, note, now),
        )

    @classmethod
    def transition_updates(
        cls,
        report: Report,
        to_status: str,
        changed_by: str,
        note: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> Dict:
        """Field deltas for a validated transition of `report` to `to_status`."""
        now = now or utc_now()
        history = list(report.status_history)
        history.append(cls.create_status_history_entry(
            from_status=report.status,
            to_status=to_status,
            changed_by=changed_by,
            timestamp=now,
            note=note
        ))
        return {
            "status": to_status,
            "status_history": history,
            "updated_at": now,
        }

    @classmethod
    def initial_history(cls, created_by: str, now: datetime) -> List[Dict]:
        return [cls.create_status_history_entry(
            from_status="",
            to_status=INITIAL_STATUS,
            changed_by=created_by,
            timestamp=now,
            note="Report created"
        )]
