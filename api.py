"""FastAPI entrypoint exposing player history, head-to-head and tournament lookups."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, HTTPException, Query

from ggtrack.analysis import (
    browse_tournaments,
    frame_records,
    head_to_head_report,
    player_match_history,
    tournament_record,
)
from ggtrack.startgg_client import (
    ConfigurationError,
    GatewayError,
    QueryError,
    StartGGClient,
    TournamentFilter,
)

app = FastAPI(
    title="ggtrack",
    description="Match history, head-to-head and tournament browsing over start.gg data.",
    version="0.1.0",
)

_client: Optional[StartGGClient] = None


def get_client() -> StartGGClient:
    """Build the start.gg client on first use and share it across requests."""
    global _client
    if _client is None:
        try:
            _client = StartGGClient()
        except ConfigurationError as exc:
            raise HTTPException(status_code=500, detail="Missing STARTGG_API_TOKEN") from exc
    return _client


def _gateway_failure(exc: GatewayError) -> HTTPException:
    """Translate a gateway failure into a 502 carrying the upstream detail."""
    if isinstance(exc, QueryError):
        return HTTPException(status_code=502, detail={"message": str(exc), "errors": exc.errors})
    return HTTPException(status_code=502, detail=str(exc))


def _extract_tournament_slug(value: Optional[str]) -> Optional[str]:
    """Pull the tournament slug out of either a slug or a full start.gg URL."""
    if not value:
        return None
    cleaned = value.strip().lower()
    if not cleaned:
        return None
    anchor = "tournament/"
    if "start.gg" in cleaned:
        start_idx = cleaned.find(anchor)
        cleaned = cleaned[start_idx:] if start_idx != -1 else ""
    cleaned = cleaned.lstrip("/").split("?", 1)[0].split("#", 1)[0]
    segments = [s for s in cleaned.split("/") if s]
    if segments and segments[0] != "tournament":
        segments = ["tournament", *segments]
    if len(segments) < 2:
        return None
    return "/".join(segments[:2])


@app.get("/health")
def health() -> Dict[str, bool]:
    """Simple liveness endpoint."""
    return {"ok": True}


@app.get("/players/{slug:path}/sets")
def player_sets(
    slug: str,
    per_page: int = Query(20, ge=1, le=100, description="Sets per page."),
    page: int = Query(1, ge=1, description="1-based page number."),
    client: StartGGClient = Depends(get_client),
) -> Dict[str, Any]:
    """Return one page of a player's match history."""
    try:
        df = player_match_history(client, slug, per_page=per_page, page=page)
    except GatewayError as exc:
        raise _gateway_failure(exc) from exc

    records = frame_records(df)
    return {
        "player": slug,
        "page": page,
        "per_page": per_page,
        "count": len(records),
        "results": records,
    }


@app.get("/players/{slug:path}")
def player_profile(
    slug: str,
    client: StartGGClient = Depends(get_client),
) -> Dict[str, Any]:
    """Resolve a user slug (with or without `user/`) to a player profile."""
    try:
        profile = client.fetch_player_profile(slug)
    except GatewayError as exc:
        raise _gateway_failure(exc) from exc
    if not profile:
        raise HTTPException(status_code=404, detail=f"No start.gg user found for '{slug}'.")
    return profile


@app.get("/head-to-head")
def head_to_head(
    player1: str = Query(..., description="First player slug (e.g. 'user/b149c474')."),
    player2: str = Query(..., description="Second player slug."),
    limit: int = Query(
        200,
        ge=1,
        le=500,
        description="Sets fetched per player before reconciling (not sets returned).",
    ),
    client: StartGGClient = Depends(get_client),
) -> Dict[str, Any]:
    """Return the shared sets between two players with win counts."""
    try:
        summary, df = head_to_head_report(client, player1, player2, limit=limit)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except GatewayError as exc:
        raise _gateway_failure(exc) from exc

    records = frame_records(df)
    return {
        **summary,
        "count": len(records),
        "results": records,
    }


@app.get("/tournaments")
def list_tournaments(
    query: Optional[str] = Query(None, description="Tournament name substring."),
    videogame_id: Optional[int] = Query(
        None,
        description="start.gg videogame identifier (e.g. 1386 for Ultimate).",
    ),
    country_code: Optional[str] = Query(None, description="Two-letter country code."),
    state: Optional[int] = Query(
        None,
        ge=1,
        le=3,
        description="Tournament state: 1 = upcoming, 2 = active, 3 = completed.",
    ),
    timeframe: str = Query(
        "upcoming",
        pattern="^(upcoming|past|all)$",
        description="Browse upcoming (soonest first), past, or all tournaments.",
    ),
    min_entrants: Optional[int] = Query(
        None,
        ge=0,
        description="Minimum attendee count, applied after the page is fetched.",
    ),
    per_page: int = Query(20, ge=1, le=100, description="Tournaments per page."),
    page: int = Query(1, ge=1, description="1-based page number."),
    client: StartGGClient = Depends(get_client),
) -> Dict[str, Any]:
    """Browse tournaments by filter."""
    filt = TournamentFilter(
        query=query.strip() if query and query.strip() else None,
        videogame_id=videogame_id,
        country_code=country_code.strip().upper() if country_code and country_code.strip() else None,
        state=state,
        upcoming=timeframe == "upcoming",
        past=timeframe == "past",
        min_entrants=min_entrants,
        per_page=per_page,
        page=page,
    )
    try:
        records = browse_tournaments(client, filt)
    except GatewayError as exc:
        raise _gateway_failure(exc) from exc

    return {
        "page": page,
        "per_page": per_page,
        "count": len(records),
        "results": records,
    }


@app.get("/tournaments/by-slug")
def tournament_by_slug(
    tournament_slug: str = Query(
        ...,
        description="Exact slug or start.gg URL (e.g., 'tournament/genesis-9').",
    ),
    client: StartGGClient = Depends(get_client),
) -> Dict[str, Any]:
    """Return a single tournament by slug."""
    slug = _extract_tournament_slug(tournament_slug)
    if not slug:
        raise HTTPException(
            status_code=400,
            detail="Provide a tournament_slug or start.gg tournament URL.",
        )
    try:
        tourney = client.fetch_tournament_by_slug(slug)
    except GatewayError as exc:
        raise _gateway_failure(exc) from exc
    if not tourney:
        raise HTTPException(status_code=404, detail=f"No tournament found for '{slug}'.")
    return tournament_record(tourney)
