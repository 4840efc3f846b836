"""
Tests for community verification and confidence derivation
"""
import pytest

from app.core.errors import DuplicateVote, InvalidChoice, SelfVote
from app.models.report import ConfidenceLevel, VoteChoice
from app.services.confidence_engine import (
    cast_vote,
    confidence_rank,
    confidence_reason,
    derive_confidence,
    parse_choice,
)
from tests.conftest import FIXED_NOW


class TestDeriveConfidence:
    """Test the confidence policy."""

    @pytest.mark.parametrize("yes,no,expected", [
        (0, 0, ConfidenceLevel.LOW),
        (0, 4, ConfidenceLevel.LOW),
        (1, 0, ConfidenceLevel.MEDIUM),
        (1, 1, ConfidenceLevel.MEDIUM),
        (1, 2, ConfidenceLevel.LOW),
        (2, 0, ConfidenceLevel.MEDIUM),
        (3, 0, ConfidenceLevel.HIGH),
        (3, 3, ConfidenceLevel.MEDIUM),
        (4, 3, ConfidenceLevel.HIGH),
    ])
    def test_policy(self, yes, no, expected):
        assert derive_confidence(yes, no) == expected

    def test_monotone_in_yes(self):
        """For a fixed number of uncertain votes, more confirmations never lower the level."""
        for no in range(0, 6):
            ranks = [confidence_rank(derive_confidence(yes, no)) for yes in range(0, 12)]
            assert ranks == sorted(ranks)

    def test_reason_mentions_counts(self):
        assert confidence_reason(0, 0) == "No community verifications yet"
        assert "3" in confidence_reason(3, 1)
        assert "uncertain" in confidence_reason(0, 2)

    def test_rank_of_unknown_level(self):
        assert confidence_rank("legendary") == 0
        assert confidence_rank("high") == 2


class TestParseChoice:

    def test_valid(self):
        assert parse_choice("yes") == VoteChoice.YES
        assert parse_choice(VoteChoice.NO) == VoteChoice.NO

    @pytest.mark.parametrize("choice", ["YES", "maybe", "", None, 1])
    def test_invalid(self, choice):
        with pytest.raises(InvalidChoice):
            parse_choice(choice)


class TestCastVote:
    """Test the pure vote application."""

    def test_yes_increments_yes_only(self, make_report):
        report = make_report(yes_count=1, no_count=2)
        outcome = cast_vote(report, "voter-1", "yes", now=FIXED_NOW)

        assert outcome.yes_count == 2
        assert outcome.no_count == 2
        assert outcome.updates["voters.`voter-1`"] == "yes"
        assert outcome.updates["yes_count"] == 2
        assert outcome.updates["no_count"] == 2
        assert outcome.updates["confidence_level"] == "medium"
        assert outcome.updates["updated_at"] == FIXED_NOW

    def test_no_increments_no_only(self, make_report):
        outcome = cast_vote(make_report(), "voter-1", "no")
        assert (outcome.yes_count, outcome.no_count) == (0, 1)
        assert outcome.confidence_level == ConfidenceLevel.LOW

    def test_third_yes_reaches_high(self, make_report):
        report = make_report(yes_count=2, voters={"a": "yes", "b": "yes"})
        outcome = cast_vote(report, "c", "yes")
        assert outcome.confidence_level == ConfidenceLevel.HIGH

    def test_duplicate_vote(self, make_report):
        report = make_report(yes_count=1, voters={"voter-1": "yes"})
        with pytest.raises(DuplicateVote):
            cast_vote(report, "voter-1", "no")
        assert report.yes_count == 1
        assert report.no_count == 0

    def test_self_vote(self, make_report):
        report = make_report(reporter_id="citizen-9")
        with pytest.raises(SelfVote) as exc_info:
            cast_vote(report, "citizen-9", "yes")
        assert exc_info.value.message == "You cannot verify your own report"

    def test_invalid_choice_checked_first(self, make_report):
        # Even a duplicate voter gets InvalidChoice for a malformed choice
        report = make_report(voters={"voter-1": "yes"})
        with pytest.raises(InvalidChoice):
            cast_vote(report, "voter-1", "perhaps")
