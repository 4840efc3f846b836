"""
Tests for field path building and resolution
"""
import pytest

from app.utils.firestore_helpers import field_path, get_field, has_field, set_field, split_field_path


class TestFieldPaths:
    """Test that user-supplied map keys survive as single segments."""

    def test_simple_segments_stay_bare(self):
        assert field_path("voters", "uid123") == "voters.uid123"

    def test_awkward_segments_are_quoted(self):
        assert field_path("voters", "alice.smith") == "voters.`alice.smith`"
        assert field_path("voters", "voter-1") == "voters.`voter-1`"

    def test_split_reverses_quoting(self):
        for voter_id in ("alice.smith", "a`b", "x\\y", "user@example.com"):
            assert split_field_path(field_path("voters", voter_id)) == ("voters", voter_id)

    def test_empty_segment_rejected(self):
        with pytest.raises(ValueError):
            field_path("voters", "")

    def test_get_and_has_field(self):
        data = {"voters": {"alice.smith": "yes"}, "alice": {"smith": "no"}}
        assert get_field(data, field_path("voters", "alice.smith")) == "yes"
        assert get_field(data, "alice.smith") == "no"
        assert has_field(data, field_path("voters", "alice.smith"))
        assert not has_field(data, field_path("voters", "alice"))
        assert get_field(data, "voters.bob", "missing") == "missing"

    def test_set_field_writes_single_key(self):
        data = {"voters": {}}
        set_field(data, field_path("voters", "alice.smith"), "yes")
        assert data == {"voters": {"alice.smith": "yes"}}

    def test_set_field_creates_nested_maps(self):
        data = {}
        set_field(data, "location.lat", 19.07)
        assert data == {"location": {"lat": 19.07}}
