"""
Tests for the vote service (persisted community verification)
"""
import threading

import pytest

from app.core.errors import ConcurrentModification, DuplicateVote, InvalidChoice, ReportNotFound, SelfVote
from app.services.memory_store import InMemoryReportStore
from app.services.vote_service import VoteService
from app.utils.firestore_helpers import field_path


class RacingReportStore(InMemoryReportStore):
    """Lets another voter slip in right before the first `races` conditional writes."""

    def __init__(self, races: int = 1):
        super().__init__()
        self.races = races
        self.conditional_writes = 0

    def update_report(self, report_id, fields, condition=None):
        if condition is not None:
            self.conditional_writes += 1
            if self.races > 0:
                self.races -= 1
                rival = f"rival-{self.races}"
                report = self.get_report(report_id)
                super().update_report(report_id, {
                    field_path("voters", rival): "no",
                    "no_count": report.no_count + 1,
                })
        super().update_report(report_id, fields, condition=condition)


def _seed(store, **overrides):
    payload = {"reporter_id": "reporter-1", "title": "Smoke from warehouse", "status": "submitted", "voters": {}}
    payload.update(overrides)
    return store.create_report(payload)


class TestVoteService:
    """Test vote persistence and validation."""

    def test_vote_persists(self, vote_service, report_store, seed_report):
        report_id = seed_report()
        result = vote_service.cast_vote(report_id, "neighbour-1", "yes")

        assert result.yes_count == 1
        assert result.no_count == 0
        assert result.confidence_level == "medium"

        stored = report_store.get_report(report_id)
        assert stored.voters == {"neighbour-1": "yes"}
        assert stored.yes_count == 1
        assert stored.confidence_level == "medium"
        assert stored.confidence_reason == result.confidence_reason

    def test_three_confirmations_make_high(self, vote_service, seed_report):
        report_id = seed_report()
        for voter in ("a", "b"):
            vote_service.cast_vote(report_id, voter, "yes")
        assert vote_service.cast_vote(report_id, "c", "yes").confidence_level == "high"

    def test_duplicate_vote_leaves_counts(self, vote_service, report_store, seed_report):
        report_id = seed_report()
        vote_service.cast_vote(report_id, "neighbour-1", "yes")

        with pytest.raises(DuplicateVote):
            vote_service.cast_vote(report_id, "neighbour-1", "no")

        stored = report_store.get_report(report_id)
        assert (stored.yes_count, stored.no_count) == (1, 0)
        assert stored.voters == {"neighbour-1": "yes"}

    def test_dotted_voter_id_is_one_voter(self, vote_service, report_store, seed_report):
        report_id = seed_report()
        vote_service.cast_vote(report_id, "alice.smith", "yes")

        stored = report_store.get_report(report_id)
        assert stored.voters == {"alice.smith": "yes"}
        assert stored.yes_count == 1

        with pytest.raises(DuplicateVote):
            vote_service.cast_vote(report_id, "alice.smith", "no")
        assert report_store.get_report(report_id).voters == {"alice.smith": "yes"}

    def test_self_vote(self, vote_service, report_store, seed_report):
        report_id = seed_report(reporter_id="citizen-1")
        with pytest.raises(SelfVote):
            vote_service.cast_vote(report_id, "citizen-1", "yes")
        assert report_store.get_report(report_id).yes_count == 0

    def test_invalid_choice_before_read(self, vote_service):
        # Unknown report id: the choice is rejected before the store is touched
        with pytest.raises(InvalidChoice):
            vote_service.cast_vote("does-not-exist", "v", "sure")

    def test_unknown_report(self, vote_service):
        with pytest.raises(ReportNotFound):
            vote_service.cast_vote("does-not-exist", "v", "yes")

    def test_retries_after_concurrent_vote(self):
        store = RacingReportStore(races=1)
        report_id = _seed(store)

        result = VoteService(store, max_retries=3).cast_vote(report_id, "me", "yes")

        assert store.conditional_writes == 2
        assert (result.yes_count, result.no_count) == (1, 1)
        stored = store.get_report(report_id)
        assert stored.voters == {"rival-0": "no", "me": "yes"}
        assert stored.confidence_level == "medium"

    def test_gives_up_after_max_retries(self):
        store = RacingReportStore(races=10)
        report_id = _seed(store)

        with pytest.raises(ConcurrentModification):
            VoteService(store, max_retries=3).cast_vote(report_id, "me", "yes")
        assert "me" not in store.get_report(report_id).voters

    def test_parallel_votes_are_all_counted(self, report_store, seed_report):
        report_id = seed_report()
        service = VoteService(report_store, max_retries=50)
        errors = []

        def vote(voter):
            try:
                service.cast_vote(report_id, voter, "yes")
            except ConcurrentModification as e:
                errors.append(e)

        threads = [threading.Thread(target=vote, args=(f"v{i}",)) for i in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        stored = report_store.get_report(report_id)
        assert errors == []
        assert stored.yes_count == 20
        assert len(stored.voters) == 20
        assert stored.confidence_level == "high"

    def test_parallel_votes_by_same_voter_count_once(self, report_store, seed_report):
        report_id = seed_report()
        service = VoteService(report_store, max_retries=5)
        duplicates = []
        failures = []

        def vote():
            try:
                service.cast_vote(report_id, "same", "yes")
            except DuplicateVote as e:
                duplicates.append(e)
            except ConcurrentModification as e:
                failures.append(e)

        threads = [threading.Thread(target=vote) for _ in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        stored = report_store.get_report(report_id)
        assert failures == []
        assert len(duplicates) == 9
        assert stored.yes_count == 1
        assert stored.voters == {"same": "yes"}
