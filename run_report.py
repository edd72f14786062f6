#!/usr/bin/env python3
"""CLI helper to print start.gg match history, head-to-head records and tournaments."""

import argparse
import logging
import sys

import pandas as pd

from ggtrack import analysis
from ggtrack.startgg_client import GatewayError, StartGGClient, TournamentFilter


def _emit(df: pd.DataFrame, output: str, empty_message: str) -> None:
    if df.empty:
        print(empty_message)
        return
    if output:
        df.to_csv(output, index=False)
        print(f"Wrote {len(df)} rows to {output}")
        return
    print(df.to_string(index=False))


def _run_history(client: StartGGClient, args: argparse.Namespace) -> None:
    df = analysis.player_match_history(
        client, args.player, per_page=args.per_page, page=args.page
    )
    _emit(df, args.output, "No match history found for this player.")


def _run_h2h(client: StartGGClient, args: argparse.Namespace) -> None:
    summary, df = analysis.head_to_head_report(
        client, args.player1, args.player2, limit=args.limit
    )
    print(
        f"{summary['player1']} {summary['player1_wins']} - "
        f"{summary['player2_wins']} {summary['player2']} "
        f"(total matches: {summary['total']})"
    )
    _emit(df, args.output, "No head-to-head matches found between these players.")


def _run_tournaments(client: StartGGClient, args: argparse.Namespace) -> None:
    filt = TournamentFilter(
        query=args.query,
        videogame_id=args.videogame_id,
        country_code=args.country_code,
        state=args.state,
        upcoming=args.timeframe == "upcoming",
        past=args.timeframe == "past",
        min_entrants=args.min_entrants,
        per_page=args.per_page,
        page=args.page,
    )
    records = analysis.browse_tournaments(client, filt)
    df = pd.DataFrame(records)
    if not df.empty:
        df = df[["name", "slug", "city", "country", "start_at", "num_attendees"]]
    _emit(df, args.output, "No tournaments matched the supplied filters.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Query start.gg player and tournament data.")
    parser.add_argument("--output", help="Optional path to write the table as CSV instead of printing it.")
    parser.add_argument("--verbose", action="store_true", help="Log each upstream query and match.")
    sub = parser.add_subparsers(dest="command", required=True)

    history = sub.add_parser("history", help="Show a player's recent sets.")
    history.add_argument("player", help="Player slug, e.g. user/b149c474")
    history.add_argument("--per-page", type=int, default=20)
    history.add_argument("--page", type=int, default=1)
    history.set_defaults(handler=_run_history)

    h2h = sub.add_parser("h2h", help="Compare two players head-to-head.")
    h2h.add_argument("player1")
    h2h.add_argument("player2")
    h2h.add_argument(
        "--limit",
        type=int,
        default=200,
        help="Sets fetched per player before reconciling (default: 200).",
    )
    h2h.set_defaults(handler=_run_h2h)

    tournaments = sub.add_parser("tournaments", help="Browse tournaments.")
    tournaments.add_argument("--query", help="Tournament name substring.")
    tournaments.add_argument("--videogame-id", type=int)
    tournaments.add_argument("--country-code")
    tournaments.add_argument(
        "--state",
        type=int,
        choices=(1, 2, 3),
        help="1 = upcoming, 2 = active, 3 = completed.",
    )
    tournaments.add_argument(
        "--timeframe",
        choices=("upcoming", "past", "all"),
        default="upcoming",
    )
    tournaments.add_argument("--min-entrants", type=int)
    tournaments.add_argument("--per-page", type=int, default=20)
    tournaments.add_argument("--page", type=int, default=1)
    tournaments.set_defaults(handler=_run_tournaments)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        client = StartGGClient()
        args.handler(client, args)
    except ValueError as exc:
        print(f"Error: {exc}")
        return 2
    except GatewayError as exc:
        print("Error running report:", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
