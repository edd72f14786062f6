"""Tests for ggtrack.identity."""

import pytest

from conftest import make_slot
from ggtrack.identity import (
    IDENTITY_MATCHERS,
    match_entrant_name,
    match_gamer_tag,
    match_linked_slug,
    normalize_identity,
    slot_matches,
)


class TestNormalizeIdentity:

    @pytest.mark.parametrize("raw", ["abc123", "ABC123", "user/abc123", "User/ABC123", " user/abc123 "])
    def test_case_and_prefix_insensitive(self, raw):
        assert normalize_identity(raw) == "abc123"

    def test_blank(self):
        assert normalize_identity("") == ""
        assert normalize_identity(None) == ""


class TestLinkedSlug:

    def test_equal_slug(self):
        slot = make_slot(1, "Alice", user_slug="user/abc123")
        assert match_linked_slug(slot, "abc123")

    def test_uppercase_input_matches_after_normalizing(self):
        slot = make_slot(1, "Alice", user_slug="user/abc123")
        assert match_linked_slug(slot, normalize_identity("ABC123"))

    def test_containment_either_direction(self):
        slot = make_slot(1, "Alice", user_slug="user/abc123")
        assert match_linked_slug(slot, "abc")
        assert match_linked_slug(slot, "abc123xyz")

    def test_no_linked_account(self):
        slot = make_slot(1, "Alice")
        assert not match_linked_slug(slot, "abc123")

    def test_any_team_member(self):
        slot = make_slot(
            1,
            "Team",
            participants=[
                {"gamerTag": "One", "user": {"slug": "user/one111"}},
                {"gamerTag": "Two", "user": {"slug": "user/two222"}},
            ],
        )
        assert match_linked_slug(slot, "two222")


class TestGamerTag:

    def test_exact_case_insensitive(self):
        slot = make_slot(1, "Team X | Alice", gamer_tag="Alice")
        assert match_gamer_tag(slot, "alice")

    def test_partial_tag_does_not_match(self):
        slot = make_slot(1, "Alice", gamer_tag="Alice")
        assert not match_gamer_tag(slot, "ali")


class TestEntrantName:

    def test_substring(self):
        slot = make_slot(1, "PG | Alice", gamer_tag="Alice")
        assert match_entrant_name(slot, "alice")

    def test_known_false_positive(self):
        slot = make_slot(1, "ACEventure")
        assert match_entrant_name(slot, "ace")

    def test_empty_identity_never_matches(self):
        slot = make_slot(1, "Alice", gamer_tag="Alice", user_slug="user/abc")
        assert not any(matcher(slot, "") for matcher in IDENTITY_MATCHERS)


class TestSlotMatches:

    def test_order(self):
        assert IDENTITY_MATCHERS == (match_linked_slug, match_gamer_tag, match_entrant_name)

    def test_short_circuits_on_first_hit(self):
        calls = []

        def first(slot, identity):
            calls.append("first")
            return True

        def second(slot, identity):
            calls.append("second")
            return True

        assert slot_matches(make_slot(1, "Alice"), "alice", matchers=(first, second))
        assert calls == ["first"]

    def test_falls_through_to_name(self):
        slot = make_slot(1, "Alice", gamer_tag="Al")
        assert slot_matches(slot, "alice")

    def test_missing_entrant(self):
        assert not slot_matches({"id": "slot"}, "alice")
