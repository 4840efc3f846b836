"""
Vote Service - community verification (confirm / uncertain) on reports.

Each vote is persisted as one conditional update: the voter must still be
absent and the counts must still be what this request read. A concurrent
vote by someone else makes the condition fail; the vote is then recomputed
from a fresh read. A concurrent vote by the same voter shows up on that
fresh read as a DuplicateVote.
"""

from app.config.firebase import get_report_store
from app.core.errors import ConcurrentModification, ConditionFailed
from app.core.settings import settings
from app.models.report import VoteResponse
from app.services import confidence_engine
from app.services.report_store import ReportStore, UpdateCondition
from app.utils.firestore_helpers import field_path
import logging

logger = logging.getLogger(__name__)


class VoteService:
    """Service for casting votes on reports."""

    def __init__(self, store: ReportStore, max_retries: int = 5):
        self.store = store
        self.max_retries = max(1, max_retries)

    def cast_vote(self, report_id: str, voter_id: str, choice) -> VoteResponse:
        """
        Record a vote and recompute confidence.

        Args:
            report_id: Report to vote on
            voter_id: Caller identity
            choice: 'yes' or 'no'

        Returns:
            VoteResponse with the updated tally

        Raises:
            InvalidChoice, SelfVote, DuplicateVote, ReportNotFound,
            ConcurrentModification (retries exhausted), StorageUnavailable
        """
        # Reject a bad choice before any read or write
        confidence_engine.parse_choice(choice)

        for attempt in range(1, self.max_retries + 1):
            report = self.store.get_report(report_id)
            outcome = confidence_engine.cast_vote(report, voter_id, choice)

            condition = UpdateCondition(
                equals={"yes_count": report.yes_count, "no_count": report.no_count},
                absent=[field_path("voters", voter_id)],
            )
            try:
                self.store.update_report(report_id, outcome.updates, condition=condition)
            except ConditionFailed:
                logger.info(f"Vote on report {report_id} raced another write (attempt {attempt}/{self.max_retries})")
                continue

            logger.info(
                f"✅ Vote recorded on report {report_id}: yes={outcome.yes_count} "
                f"no={outcome.no_count} confidence={outcome.confidence_level.value}"
            )
            return VoteResponse(
                report_id=report_id,
                yes_count=outcome.yes_count,
                no_count=outcome.no_count,
                confidence_level=outcome.confidence_level.value,
                confidence_reason=outcome.confidence_reason,
            )

        logger.warning(f"Vote on report {report_id} by {voter_id} gave up after {self.max_retries} attempts")
        raise ConcurrentModification(f"Report {report_id} is receiving too many concurrent votes, please retry")


# Global service instance
_vote_service = None


def get_vote_service() -> VoteService:
    """Get or create VoteService singleton."""
    global _vote_service
    if _vote_service is None:
        _vote_service = VoteService(get_report_store(), max_retries=settings.VOTE_MAX_RETRIES)
    return _vote_service
