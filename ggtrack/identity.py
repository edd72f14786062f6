"""
Identity matching for start.gg set slots.

start.gg records are unevenly populated: some participants carry a linked user
slug, some only a gamer tag. A slot is therefore matched against a player
identity through an ordered series of decreasing-confidence checks:

    1. linked user slug (equal, or either contains the other)
    2. exact gamer tag
    3. identity contained in the entrant display name

The last check trades precision for recall: "ace" also matches an entrant
named "ACEventure".
"""

from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Sequence

SlotMatcher = Callable[[Dict, str], bool]


def normalize_identity(identity: str) -> str:
    """Lower-case a player handle and strip any leading `user/`."""
    cleaned = (identity or "").strip().lower()
    if cleaned.startswith("user/"):
        cleaned = cleaned[len("user/"):]
    return cleaned


def _participants(slot: Dict) -> List[Dict]:
    entrant = slot.get("entrant") or {}
    return [p for p in entrant.get("participants") or [] if p]


def match_linked_slug(slot: Dict, identity: str) -> bool:
    """Match on the participant's linked start.gg account slug."""
    if not identity:
        return False
    for participant in _participants(slot):
        user = participant.get("user") or {}
        slug = normalize_identity(user.get("slug") or "")
        if slug and (slug == identity or identity in slug or slug in identity):
            return True
    return False


def match_gamer_tag(slot: Dict, identity: str) -> bool:
    """Match when a participant's gamer tag equals the identity."""
    if not identity:
        return False
    return any(
        (participant.get("gamerTag") or "").lower() == identity
        for participant in _participants(slot)
    )


def match_entrant_name(slot: Dict, identity: str) -> bool:
    """Match when the identity appears inside the entrant display name."""
    if not identity:
        return False
    entrant = slot.get("entrant") or {}
    return identity in (entrant.get("name") or "").lower()


IDENTITY_MATCHERS: Sequence[SlotMatcher] = (
    match_linked_slug,
    match_gamer_tag,
    match_entrant_name,
)


def slot_matches(
    slot: Dict,
    identity: str,
    matchers: Iterable[SlotMatcher] = IDENTITY_MATCHERS,
) -> bool:
    """Return True as soon as one matcher accepts the slot for `identity`.

    `identity` must already be normalized.
    """
    return any(matcher(slot, identity) for matcher in matchers)
