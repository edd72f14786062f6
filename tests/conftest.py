"""Shared test fixtures and start.gg payload builders."""

from typing import Dict, List, Optional

import pytest


def make_slot(
    entrant_id: int,
    name: str,
    gamer_tag: Optional[str] = None,
    user_slug: Optional[str] = None,
    participants: Optional[List[Dict]] = None,
) -> Dict:
    """Build a set slot the way start.gg nests entrant -> participants -> user."""
    if participants is None:
        participant = {"id": entrant_id * 10, "gamerTag": gamer_tag or name}
        participant["user"] = {"id": entrant_id * 100, "slug": user_slug} if user_slug else None
        participants = [participant]
    return {
        "id": f"slot-{entrant_id}",
        "entrant": {"id": entrant_id, "name": name, "participants": participants},
    }


def make_set(
    set_id: int,
    slots: List[Dict],
    winner_id: Optional[int] = None,
    completed_at: Optional[int] = None,
    score: str = "",
) -> Dict:
    return {
        "id": set_id,
        "displayScore": score,
        "fullRoundText": "Winners Final",
        "winnerId": winner_id,
        "completedAt": completed_at,
        "state": 3,
        "event": {
            "id": 1,
            "name": "Ultimate Singles",
            "slug": "tournament/test/event/ultimate-singles",
            "tournament": {"id": 7, "name": "Test Major", "slug": "tournament/test"},
        },
        "slots": slots,
    }


class FakeClient:
    """Stands in for StartGGClient; serves canned sets keyed by identity."""

    def __init__(
        self,
        sets: Optional[Dict[str, List[Dict]]] = None,
        failures: Optional[Dict[str, Exception]] = None,
        tournaments: Optional[List[Dict]] = None,
        profiles: Optional[Dict[str, Dict]] = None,
    ) -> None:
        self.sets = sets or {}
        self.failures = failures or {}
        self.tournaments = tournaments or []
        self.profiles = profiles or {}
        self.calls: List[tuple] = []

    def fetch_player_sets(self, identity: str, per_page: int = 10, page: int = 1) -> List[Dict]:
        self.calls.append(("fetch_player_sets", identity, per_page, page))
        if identity in self.failures:
            raise self.failures[identity]
        return list(self.sets.get(identity, []))

    def search_tournaments(self, filt=None) -> List[Dict]:
        self.calls.append(("search_tournaments", filt))
        return list(self.tournaments)

    def fetch_tournament_by_slug(self, slug: str) -> Optional[Dict]:
        self.calls.append(("fetch_tournament_by_slug", slug))
        return next((t for t in self.tournaments if t.get("slug") == slug), None)

    def fetch_player_profile(self, identity: str) -> Optional[Dict]:
        self.calls.append(("fetch_player_profile", identity))
        return self.profiles.get(identity)


@pytest.fixture
def alice_slot() -> Dict:
    return make_slot(1, "Alice", gamer_tag="Alice", user_slug="user/aaa111")


@pytest.fixture
def bob_slot() -> Dict:
    return make_slot(2, "Bob", gamer_tag="Bob", user_slug="user/bbb222")


@pytest.fixture
def scenario_client() -> FakeClient:
    """A vs B once (A wins), plus one unrelated set in each window."""
    a = make_slot(1, "Alice", gamer_tag="Alice", user_slug="user/aaa111")
    b = make_slot(2, "Bob", gamer_tag="Bob", user_slug="user/bbb222")
    c = make_slot(3, "Carol", gamer_tag="Carol", user_slug="user/ccc333")
    d = make_slot(4, "Dave", gamer_tag="Dave", user_slug="user/ddd444")
    shared = make_set(101, [a, b], winner_id=1, completed_at=500, score="Alice 3 - Bob 1")
    return FakeClient(
        sets={
            "aaa111": [shared, make_set(102, [a, c], winner_id=3, completed_at=600)],
            "bbb222": [shared, make_set(103, [b, d], winner_id=2, completed_at=700)],
        }
    )
