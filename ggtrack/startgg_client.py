"""
startgg_client.py
-----------------

Typed client for the start.gg GraphQL API.

Responsibilities:
    * Inject authentication from the environment (`STARTGG_API_TOKEN`).
    * Translate the handful of logical lookups (player sets, tournament search,
      tournament/profile by slug) into GraphQL documents.
    * Parse the response envelope into data or a typed failure. There is no
      caching and no retry policy here; callers get the raw outcome.
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

STARTGG_API_URL = "https://api.start.gg/gql/alpha"
PLACEHOLDER_TOKEN = "your_api_key_here"

log = logging.getLogger(__name__)


class GatewayError(RuntimeError):
    """Base class for failures surfaced by :class:`StartGGClient`."""


class ConfigurationError(GatewayError):
    """The client cannot be built (e.g. no API token)."""


class TransportError(GatewayError):
    """The HTTP call itself failed: network error or non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class QueryError(GatewayError):
    """The response envelope carried a GraphQL `errors` list."""

    def __init__(self, errors: List[Any]) -> None:
        super().__init__(f"GraphQL error: {errors}")
        self.errors = errors


SET_FIELDS = """
    id
    displayScore
    fullRoundText
    winnerId
    completedAt
    state
    event {
      id
      name
      slug
      tournament {
        id
        name
        slug
      }
    }
    slots {
      id
      entrant {
        id
        name
        participants {
          id
          gamerTag
          user {
            id
            slug
          }
        }
      }
    }
"""

TOURNAMENT_FIELDS = """
    id
    name
    slug
    city
    countryCode
    addrState
    startAt
    endAt
    numAttendees
    state
    isOnline
    images {
      url
      type
    }
    events {
      id
      name
      numEntrants
      videogame {
        id
        name
      }
    }
"""


def user_slug(identity: str) -> str:
    """Return `identity` with the `user/` prefix start.gg expects."""
    cleaned = identity.strip()
    return cleaned if cleaned.startswith("user/") else f"user/{cleaned}"


@dataclass(frozen=True)
class TournamentFilter:
    """Value object describing tournament browsing filters."""

    query: Optional[str] = None
    videogame_id: Optional[int] = None
    country_code: Optional[str] = None
    state: Optional[int] = None  # 1 = upcoming, 2 = active, 3 = completed
    upcoming: bool = False
    past: bool = False
    min_entrants: Optional[int] = None
    per_page: int = 20
    page: int = 1

    def sort_by(self) -> str:
        """Upcoming browsing wants the soonest first, everything else newest first."""
        return "startAt asc" if self.upcoming else "startAt desc"

    def to_variables(self) -> Dict[str, Any]:
        """Return the upstream filter object, omitting every unset option."""
        upstream: Dict[str, Any] = {}
        if self.query:
            upstream["name"] = self.query
        if self.videogame_id is not None:
            upstream["videogameIds"] = [self.videogame_id]
        if self.country_code:
            upstream["countryCode"] = self.country_code
        if self.state is not None:
            upstream["state"] = self.state
        if self.upcoming:
            upstream["upcoming"] = True
        if self.past:
            upstream["past"] = True
        return upstream


def _require_positive(name: str, value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"{name} must be a positive integer, got {value!r}")
    return value


class StartGGClient:
    """Minimal start.gg client; build once and share it between callers."""

    def __init__(
        self,
        token: Optional[str] = None,
        api_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 30,
    ) -> None:
        self._token = token or os.getenv("STARTGG_API_TOKEN")
        if not self._token or self._token == PLACEHOLDER_TOKEN:
            raise ConfigurationError(
                "STARTGG_API_TOKEN is not set; export it before running live queries."
            )

        self.api_url = api_url or os.getenv("STARTGG_API_URL") or STARTGG_API_URL
        self.timeout = timeout
        self._session = session
        self._local = threading.local()

    @property
    def session(self) -> requests.Session:
        """The injected session, otherwise one `requests.Session` per thread."""
        if self._session is not None:
            return self._session
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            self._local.session = session
        return session

    def execute(self, query: str, variables: Optional[Dict] = None) -> Dict:
        """Execute a GraphQL request and return the `data` payload."""
        headers = {
            "Authorization": f"Bearer {self._token}",
            "Content-Type": "application/json",
        }
        payload = {"query": query, "variables": variables or {}}
        log.debug("POST %s variables=%s", self.api_url, payload["variables"])

        try:
            response = self.session.post(
                self.api_url, json=payload, headers=headers, timeout=self.timeout
            )
        except requests.RequestException as exc:
            log.warning("start.gg request failed: %s", exc)
            raise TransportError(f"API request failed: {exc}") from exc

        try:
            body = response.json()
        except ValueError:
            body = None

        # An errors list is a failure whatever the HTTP status says.
        if isinstance(body, dict) and body.get("errors"):
            log.warning("start.gg returned errors: %s", body["errors"])
            raise QueryError(body["errors"])

        if not 200 <= response.status_code < 300:
            log.warning("start.gg responded with HTTP %s", response.status_code)
            raise TransportError(
                f"API request failed: {response.status_code} {response.reason}",
                status_code=response.status_code,
            )

        if body is None:
            raise TransportError(
                "API request failed: response body is not JSON",
                status_code=response.status_code,
            )

        data = body.get("data") if isinstance(body, dict) else None
        return data if isinstance(data, dict) else {}

    def fetch_player_sets(
        self, identity: str, per_page: int = 10, page: int = 1
    ) -> List[Dict]:
        """
        Return one page of a player's sets, newest first as start.gg orders them.

        A user without a player profile, or a player without sets, yields an
        empty list rather than an error.
        """
        per_page = _require_positive("per_page", per_page)
        page = _require_positive("page", page)
        query = f"""
        query PlayerSets($userSlug: String!, $perPage: Int!, $page: Int!) {{
          user(slug: $userSlug) {{
            player {{
              sets(perPage: $perPage, page: $page) {{
                nodes {{
                  {SET_FIELDS}
                }}
              }}
            }}
          }}
        }}
        """
        data = self.execute(
            query,
            {"userSlug": user_slug(identity), "perPage": per_page, "page": page},
        )
        user = data.get("user") or {}
        player = user.get("player") or {}
        sets = player.get("sets") or {}
        return list(sets.get("nodes") or [])

    def search_tournaments(self, filt: Optional[TournamentFilter] = None) -> List[Dict]:
        """Return one page of tournaments matching `filt`."""
        filt = filt or TournamentFilter()
        per_page = _require_positive("per_page", filt.per_page)
        page = _require_positive("page", filt.page)
        query = f"""
        query TournamentSearch($perPage: Int!, $page: Int!, $sortBy: String!, $filter: TournamentPageFilter) {{
          tournaments(query: {{
            perPage: $perPage,
            page: $page,
            sortBy: $sortBy,
            filter: $filter
          }}) {{
            nodes {{
              {TOURNAMENT_FIELDS}
            }}
          }}
        }}
        """
        data = self.execute(
            query,
            {
                "perPage": per_page,
                "page": page,
                "sortBy": filt.sort_by(),
                "filter": filt.to_variables(),
            },
        )
        nodes: List[Dict] = list((data.get("tournaments") or {}).get("nodes") or [])
        if filt.min_entrants is None:
            return nodes
        # start.gg cannot filter on attendance, so trim the page locally.
        return [t for t in nodes if (t.get("numAttendees") or 0) >= filt.min_entrants]

    def fetch_tournament_by_slug(self, slug: str) -> Optional[Dict]:
        """Return a single tournament by slug, or None when it does not exist."""
        query = f"""
        query TournamentBySlug($slug: String!) {{
          tournament(slug: $slug) {{
            {TOURNAMENT_FIELDS}
          }}
        }}
        """
        data = self.execute(query, {"slug": slug})
        return data.get("tournament") or None

    def fetch_player_profile(self, identity: str) -> Optional[Dict]:
        """Resolve a user slug to its player profile and most recent tournaments."""
        query = """
        query PlayerProfile($userSlug: String!) {
          user(slug: $userSlug) {
            id
            slug
            name
            images {
              url
              type
            }
            player {
              id
              gamerTag
              prefix
            }
            tournaments(query: { perPage: 3, page: 1 }) {
              nodes {
                id
                name
                slug
                startAt
              }
            }
          }
        }
        """
        data = self.execute(query, {"userSlug": user_slug(identity)})
        user = data.get("user")
        if not user:
            return None
        player = user.get("player") or {}
        images = user.get("images") or []
        avatar = next(
            (img.get("url") for img in images if img.get("type") == "profile"),
            images[0].get("url") if images else None,
        )
        return {
            "id": player.get("id"),
            "gamerTag": player.get("gamerTag"),
            "prefix": player.get("prefix"),
            "slug": user.get("slug"),
            "name": user.get("name"),
            "avatarUrl": avatar,
            "recentTournaments": list((user.get("tournaments") or {}).get("nodes") or []),
        }
