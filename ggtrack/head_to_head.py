"""
head_to_head.py
---------------

Derive the sets two players actually played against each other.

Each player's sets are fetched independently, so either window may hold a set
the other lacks. Both windows are scanned (player 1 first), de-duplicated by
set id, and the surviving sets are ordered newest first.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .identity import IDENTITY_MATCHERS, SlotMatcher, normalize_identity, slot_matches
from .startgg_client import StartGGClient

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlayerInfo:
    """One side of a head-to-head set."""

    gamer_tag: str
    is_winner: bool

    def to_dict(self) -> Dict:
        return {"gamerTag": self.gamer_tag, "isWinner": self.is_winner}


@dataclass(frozen=True)
class HeadToHeadSet:
    """A start.gg set annotated with which requested player sat on which side."""

    set_id: str
    player1: PlayerInfo
    player2: PlayerInfo
    raw: Dict = field(repr=False, compare=False)

    @property
    def completed_at(self) -> Optional[int]:
        return self.raw.get("completedAt")

    @property
    def display_score(self) -> Optional[str]:
        return self.raw.get("displayScore")

    @property
    def round_text(self) -> Optional[str]:
        return self.raw.get("fullRoundText")

    @property
    def event_name(self) -> Optional[str]:
        return (self.raw.get("event") or {}).get("name")

    @property
    def tournament_name(self) -> Optional[str]:
        event = self.raw.get("event") or {}
        return (event.get("tournament") or {}).get("name")

    def to_dict(self) -> Dict:
        """Return the raw set with `player1Info` / `player2Info` attached."""
        payload = dict(self.raw)
        payload["player1Info"] = self.player1.to_dict()
        payload["player2Info"] = self.player2.to_dict()
        return payload


def ensure_distinct_players(player1: str, player2: str) -> Tuple[str, str]:
    """
    Validate a head-to-head request before any data is fetched.

    Returns the normalized identities; raises ValueError when either is blank
    or both refer to the same handle.
    """
    norm1 = normalize_identity(player1)
    norm2 = normalize_identity(player2)
    if not norm1 or not norm2:
        raise ValueError("Both player slugs are required")
    if norm1 == norm2:
        raise ValueError("Cannot compare a player against themselves")
    return norm1, norm2


def _entrant_id(slot: Dict) -> Optional[str]:
    entrant_id = (slot.get("entrant") or {}).get("id")
    return None if entrant_id is None else str(entrant_id)


def _player_info(slot: Dict, winner_id) -> PlayerInfo:
    entrant = slot.get("entrant") or {}
    participants = entrant.get("participants") or []
    first = participants[0] if participants else None
    gamer_tag = (first or {}).get("gamerTag") or entrant.get("name") or ""
    entrant_id = _entrant_id(slot)
    is_winner = winner_id is not None and entrant_id is not None and str(winner_id) == entrant_id
    return PlayerInfo(gamer_tag=gamer_tag, is_winner=is_winner)


def _locate_players(
    slots: Sequence[Dict],
    player1: str,
    player2: str,
    matchers: Sequence[SlotMatcher],
) -> Tuple[Optional[Dict], Optional[Dict]]:
    """
    Pick one slot per player from two different entrants.

    A slot may match both identities (e.g. "ace" inside "acer"), so every
    valid pairing is considered and the one leaving fewer ambiguous slots
    wins; remaining ties go to slot order.
    """
    candidates = [
        (slot, slot_matches(slot, player1, matchers), slot_matches(slot, player2, matchers))
        for slot in slots
        if slot
    ]
    best: Optional[Tuple[Dict, Dict]] = None
    best_score = -1
    for i, (slot1, is_p1, also_p2) in enumerate(candidates):
        if not is_p1:
            continue
        for j, (slot2, also_p1, is_p2) in enumerate(candidates):
            if i == j or not is_p2 or _entrant_id(slot1) == _entrant_id(slot2):
                continue
            score = (not also_p2) + (not also_p1)
            if score > best_score:
                best, best_score = (slot1, slot2), score
    return best if best is not None else (None, None)


def reconcile_head_to_head(
    player1_sets: Iterable[Dict],
    player2_sets: Iterable[Dict],
    player1: str,
    player2: str,
    matchers: Sequence[SlotMatcher] = IDENTITY_MATCHERS,
) -> List[HeadToHeadSet]:
    """
    Return the sets in which `player1` and `player2` faced each other.

    Pure function over already-fetched sets. Identities may be bare or
    `user/`-prefixed handles in any case.
    """
    norm1 = normalize_identity(player1)
    norm2 = normalize_identity(player2)
    seen: set = set()
    results: List[HeadToHeadSet] = []

    for set_node in [*player1_sets, *player2_sets]:
        set_id = str(set_node.get("id"))
        if set_id in seen:
            continue
        slots = set_node.get("slots") or []
        if len(slots) < 2:
            continue

        slot1, slot2 = _locate_players(slots, norm1, norm2, matchers)
        if slot1 is None or slot2 is None:
            continue

        winner_id = set_node.get("winnerId")
        record = HeadToHeadSet(
            set_id=set_id,
            player1=_player_info(slot1, winner_id),
            player2=_player_info(slot2, winner_id),
            raw=set_node,
        )
        log.debug(
            "Set %s: %s vs %s (%s)",
            set_id,
            record.player1.gamer_tag,
            record.player2.gamer_tag,
            record.display_score,
        )
        seen.add(set_id)
        results.append(record)

    # sorted() is stable, so ties keep discovery order.
    results = sorted(results, key=lambda rec: rec.completed_at or 0, reverse=True)
    log.info("Found %d head-to-head set(s) between %s and %s", len(results), norm1, norm2)
    return results


def fetch_head_to_head(
    client: StartGGClient,
    player1: str,
    player2: str,
    limit: int = 200,
) -> List[HeadToHeadSet]:
    """
    Fetch up to `limit` sets for each player and reconcile them.

    The two fetches run concurrently; the first failure from either one is
    raised and no partial result is produced.
    """
    fetched: Dict[int, List[Dict]] = {}
    with ThreadPoolExecutor(max_workers=2) as executor:
        futures = {
            executor.submit(client.fetch_player_sets, player1, limit, 1): 1,
            executor.submit(client.fetch_player_sets, player2, limit, 1): 2,
        }
        try:
            for future in as_completed(futures):
                fetched[futures[future]] = future.result()
        except Exception:
            for pending in futures:
                pending.cancel()
            raise

    log.debug("Fetched %d set(s) for %s", len(fetched[1]), player1)
    log.debug("Fetched %d set(s) for %s", len(fetched[2]), player2)
    return reconcile_head_to_head(fetched[1], fetched[2], player1, player2)


def summarize_head_to_head(sets: Sequence[HeadToHeadSet]) -> Dict[str, int]:
    """Win counts per side plus the total number of shared sets."""
    return {
        "player1_wins": sum(1 for rec in sets if rec.player1.is_winner),
        "player2_wins": sum(1 for rec in sets if rec.player2.is_winner),
        "total": len(sets),
    }
