"""
Confidence Engine - deterministic confidence derived from community votes.

DESIGN PRINCIPLES (CRITICAL):
- Confidence is rule-based, NOT ML-based
- Confidence is explainable in plain language
- Confidence is a pure function of (yes_count, no_count); it is never set directly
- One vote per user; re-voting is rejected, never overwritten

CONFIDENCE RULES:
1. HIGH:   3+ confirmations AND more confirmations than "uncertain" votes
2. MEDIUM: 1+ confirmation AND at least as many confirmations as "uncertain" votes
3. LOW:    everything else (including no votes at all)

For a fixed number of "uncertain" votes, adding confirmations never lowers the level.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional

from app.core.errors import DuplicateVote, InvalidChoice, SelfVote
from app.models.report import ConfidenceLevel, Report, VoteChoice
from app.utils.firestore_helpers import field_path
from app.utils.timestamps import utc_now

# Configuration constants (easy to adjust)
HIGH_MIN_YES_VOTES = 3
MEDIUM_MIN_YES_VOTES = 1

_LEVEL_RANK = {
    ConfidenceLevel.LOW: 0,
    ConfidenceLevel.MEDIUM: 1,
    ConfidenceLevel.HIGH: 2,
}


def confidence_rank(level) -> int:
    """Numeric rank of a confidence level (unknown values rank as LOW)."""
    try:
        return _LEVEL_RANK[ConfidenceLevel(level)]
    except ValueError:
        return 0


def derive_confidence(yes_count: int, no_count: int) -> ConfidenceLevel:
    if yes_count >= HIGH_MIN_YES_VOTES and yes_count > no_count:
        return ConfidenceLevel.HIGH
    if yes_count >= MEDIUM_MIN_YES_VOTES and yes_count >= no_count:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


def confidence_reason(yes_count: int, no_count: int) -> str:
    """Plain-language explanation for the derived level."""
    level = derive_confidence(yes_count, no_count)
    if yes_count == 0 and no_count == 0:
        return "No community verifications yet"
    if level == ConfidenceLevel.HIGH:
        return f"Confirmed by {yes_count} people ({no_count} uncertain)"
    if level == ConfidenceLevel.MEDIUM:
        return f"Confirmed by {yes_count} of {yes_count + no_count} people, awaiting more corroboration"
    return f"More uncertain votes ({no_count}) than confirmations ({yes_count})"


def parse_choice(choice) -> VoteChoice:
    """Validate a raw vote choice. Raises InvalidChoice before anything is mutated."""
    if isinstance(choice, VoteChoice):
        return choice
    try:
        return VoteChoice(choice)
    except ValueError:
        raise InvalidChoice(choice)


@dataclass
class VoteOutcome:
    yes_count: int
    no_count: int
    confidence_level: ConfidenceLevel
    confidence_reason: str
    updates: Dict


def cast_vote(
    report: Report,
    voter_id: str,
    choice,
    now: Optional[datetime] = None
) -> VoteOutcome:
    """
    Apply a single community vote to a report (pure).

    Args:
        report: Report as last read from the store
        voter_id: Opaque identity of the voter
        choice: 'yes' or 'no'
        now: Mutation time (defaults to current UTC time)

    Returns:
        VoteOutcome with the new tally and the field deltas to persist

    Raises:
        InvalidChoice: choice not in {yes, no}
        SelfVote: voter is the report's reporter
        DuplicateVote: voter already present in report.voters
    """
    vote = parse_choice(choice)

    if voter_id == report.reporter_id:
        raise SelfVote(report.id)

    if voter_id in report.voters:
        raise DuplicateVote(report.id, voter_id)

    yes_count = report.yes_count
    no_count = report.no_count
    if vote == VoteChoice.YES:
        yes_count += 1
    else:
        no_count += 1

    level = derive_confidence(yes_count, no_count)
    reason = confidence_reason(yes_count, no_count)

    return VoteOutcome(
        yes_count=yes_count,
        no_count=no_count,
        confidence_level=level,
        confidence_reason=reason,
        updates={
            field_path("voters", voter_id): vote.value,
            "yes_count": yes_count,
            "no_count": no_count,
            "confidence_level": level.value,
            "confidence_reason": reason,
            "updated_at": now or utc_now(),
        },
    )
