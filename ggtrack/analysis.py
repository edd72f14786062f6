"""High-level entry points used by the API and the CLI."""

from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from .head_to_head import (
    ensure_distinct_players,
    fetch_head_to_head,
    summarize_head_to_head,
)
from .identity import normalize_identity, slot_matches
from .startgg_client import StartGGClient, TournamentFilter

HISTORY_COLUMNS = [
    "set_id",
    "tournament",
    "event",
    "round",
    "score",
    "opponent",
    "won",
    "completed_at",
]

HEAD_TO_HEAD_COLUMNS = [
    "set_id",
    "tournament",
    "event",
    "round",
    "score",
    "player1",
    "player2",
    "player1_won",
    "player2_won",
    "completed_at",
]


def _set_context(set_node: Dict) -> Dict[str, Any]:
    event = set_node.get("event") or {}
    tournament = event.get("tournament") or {}
    return {
        "set_id": str(set_node.get("id")),
        "tournament": tournament.get("name"),
        "event": event.get("name"),
        "round": set_node.get("fullRoundText"),
        "score": set_node.get("displayScore"),
        "completed_at": set_node.get("completedAt"),
    }


def _history_row(set_node: Dict, identity: str) -> Dict[str, Any]:
    """Flatten a set from the perspective of `identity` (already normalized)."""
    row = _set_context(set_node)
    slots = [s for s in set_node.get("slots") or [] if s]
    own = next((s for s in slots if slot_matches(s, identity)), None)
    opponents = [s for s in slots if s is not own]
    opponent_entrant = (opponents[0].get("entrant") or {}) if opponents else {}
    row["opponent"] = opponent_entrant.get("name")

    won: Optional[bool] = None
    winner_id = set_node.get("winnerId")
    own_entrant = (own or {}).get("entrant") or {}
    if winner_id is not None and own_entrant.get("id") is not None:
        won = str(winner_id) == str(own_entrant["id"])
    row["won"] = won
    return row


def player_match_history(
    client: StartGGClient,
    identity: str,
    per_page: int = 20,
    page: int = 1,
) -> pd.DataFrame:
    """Return one page of a player's sets as a DataFrame (newest first)."""
    sets = client.fetch_player_sets(identity, per_page=per_page, page=page)
    normalized = normalize_identity(identity)
    rows = [_history_row(set_node, normalized) for set_node in sets]
    return pd.DataFrame(rows, columns=HISTORY_COLUMNS, dtype=object)


def head_to_head_report(
    client: StartGGClient,
    player1: str,
    player2: str,
    limit: int = 200,
) -> Tuple[Dict[str, Any], pd.DataFrame]:
    """
    Compare two players.

    Returns a summary (gamer tags, win counts, total) and a DataFrame of the
    shared sets ordered newest first. Raises ValueError when both identities
    refer to the same player.
    """
    norm1, norm2 = ensure_distinct_players(player1, player2)
    sets = fetch_head_to_head(client, player1, player2, limit=limit)

    rows = []
    for rec in sets:
        row = _set_context(rec.raw)
        row.update(
            {
                "player1": rec.player1.gamer_tag,
                "player2": rec.player2.gamer_tag,
                "player1_won": rec.player1.is_winner,
                "player2_won": rec.player2.is_winner,
            }
        )
        rows.append(row)

    summary: Dict[str, Any] = {
        "player1": sets[0].player1.gamer_tag if sets else norm1,
        "player2": sets[0].player2.gamer_tag if sets else norm2,
        **summarize_head_to_head(sets),
    }
    return summary, pd.DataFrame(rows, columns=HEAD_TO_HEAD_COLUMNS, dtype=object)


def tournament_record(tourney: Dict) -> Dict[str, Any]:
    """Shape a raw tournament node for display."""
    images = tourney.get("images") or []
    events = tourney.get("events") or []
    return {
        "id": tourney.get("id"),
        "slug": tourney.get("slug"),
        "name": tourney.get("name"),
        "city": tourney.get("city"),
        "state": tourney.get("addrState"),
        "country": tourney.get("countryCode"),
        "start_at": tourney.get("startAt"),
        "end_at": tourney.get("endAt"),
        "num_attendees": tourney.get("numAttendees"),
        "status": tourney.get("state"),
        "is_online": tourney.get("isOnline"),
        "image_url": images[0].get("url") if images else None,
        "events": [event.get("name") for event in events if event],
        "url": f"https://start.gg/{tourney['slug']}" if tourney.get("slug") else None,
    }


def browse_tournaments(
    client: StartGGClient,
    filt: Optional[TournamentFilter] = None,
) -> List[Dict[str, Any]]:
    """Return display records for one page of tournaments."""
    return [tournament_record(t) for t in client.search_tournaments(filt)]


def frame_records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """DataFrame rows as JSON-safe dicts (NaN becomes None)."""
    if df.empty:
        return []
    cleaned = df.astype(object).where(pd.notnull(df), None)
    return cleaned.to_dict(orient="records")
