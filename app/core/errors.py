"""
Error taxonomy for the report lifecycle and community-verification engine.

All errors are raised synchronously from the offending call. Nothing here is
logged-and-swallowed; routes translate these into HTTP responses.
"""

from typing import Optional


class ReportEngineError(Exception):
    """Base class for every error raised by the report engines and services."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidTransition(ReportEngineError):
    """Status outside the known sequence, or a target that is not one step ahead."""

    def __init__(self, from_status: Optional[str], to_status: Optional[str] = None, message: Optional[str] = None):
        self.from_status = from_status
        self.to_status = to_status
        if message is None:
            if to_status is None:
                message = f"No status transition available from '{from_status}'"
            else:
                message = f"Invalid status transition: {from_status} → {to_status}"
        super().__init__(message)


class DuplicateVote(ReportEngineError):
    """Voter already present in the report's voters map."""

    status_code = 409

    def __init__(self, report_id: Optional[str], voter_id: str):
        self.report_id = report_id
        self.voter_id = voter_id
        super().__init__("You have already voted on this report")


class SelfVote(ReportEngineError):
    """Reporter attempting to verify their own report."""

    status_code = 403

    def __init__(self, report_id: Optional[str]):
        self.report_id = report_id
        super().__init__("You cannot verify your own report")


class InvalidChoice(ReportEngineError):
    """Vote choice outside {yes, no}."""

    status_code = 422

    def __init__(self, choice):
        self.choice = choice
        super().__init__(f"Invalid vote choice: {choice!r} (expected 'yes' or 'no')")


class InvalidGeometry(ReportEngineError):
    """Out-of-range coordinates or non-positive radius."""

    status_code = 422


class ReportNotFound(ReportEngineError):
    status_code = 404

    def __init__(self, report_id: str):
        self.report_id = report_id
        super().__init__(f"Report {report_id} not found")


class ConcurrentModification(ReportEngineError):
    """A conditional update found the document changed since it was read."""

    status_code = 409


class PermissionDenied(ReportEngineError):
    status_code = 403


class StorageUnavailable(ReportEngineError):
    """Any failure surfaced by the document store. The original error is kept as __cause__."""

    status_code = 503


class ConditionFailed(Exception):
    """
    Raised by a ReportStore when a conditional update's precondition does not hold.

    Internal to the store/service boundary; services turn it into a domain error.
    """


class InvalidArea(ReportEngineError):
    """Administrative-area query without the fields it needs (city requires state)."""

    status_code = 422
