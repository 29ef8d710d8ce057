# main.py
import argparse
import datetime
import sys
from typing import List, Optional

from enrichment import attach_rankings, enrich_games
from formatting import GAME_DAY_TZ, inning_ordinal, standing_line, to_weekday_mm_d_yy
from game_parser import normalize, normalize_future
from mlb_adapter import (
    MLBFetchError,
    fetch_detailed_box_score,
    fetch_schedule_for_date,
    fetch_standings_for_date,
)
from models import Game
from pitchers import fetch_team_pitchers
from rivalries import EMPTY_TABLE, load_rivalry_table
from scoring import (
    EnabledFactors,
    Factor,
    parse_factor,
    rank_games,
    score_breakdown,
    score_to_stars,
    star_symbols,
)
from standings import parse_team_rankings
from vibe_tags import pick_vibe


def _game_day_iso() -> str:
    """
    Game-day date in GAME_DAY_TZ as YYYY-MM-DD.

    Before 6 AM local the "game day" is still *yesterday*, so late West
    Coast finals are included.
    """
    now = datetime.datetime.now(GAME_DAY_TZ)
    if now.hour < 6:
        game_day = now.date() - datetime.timedelta(days=1)
    else:
        game_day = now.date()
    return game_day.isoformat()


def _date_line_from_iso(date_iso: str) -> str:
    try:
        return to_weekday_mm_d_yy(date_iso)
    except ValueError:
        return date_iso


def _final_line(game: Game) -> str:
    line = f"FINAL {game.away.runs}-{game.home.runs}"
    if game.is_extra_innings:
        line += f" ({game.innings})"
    return line


def _format_console_block(game: Game, breakdown: bool, enabled: EnabledFactors) -> str:
    """Build the console text we print for a single completed game."""
    score_val = game.excitement_score or 0.0
    stars = score_to_stars(score_val)

    lines = [
        f"⚾ {game.away.name} @ {game.home.name} — {game.venue} — {_final_line(game)}",
        f"Excitement Score: {score_val:.1f}  {star_symbols(stars)} ({stars:g})",
        pick_vibe(score_val),
    ]
    if game.is_walkoff:
        lines.append(f"Walk-off in the {inning_ordinal(game.innings)}")
    if game.away.detailed_ranking and game.home.detailed_ranking:
        lines.append(f"  {game.away.name}: {standing_line(game.away)}")
        lines.append(f"  {game.home.name}: {standing_line(game.home)}")
    if breakdown:
        for part in score_breakdown(game, enabled):
            lines.append(
                f"  {part.factor.value:<22} {part.raw * 100:5.1f}% x{part.weight:<3} "
                f"= {part.weighted:5.2f}  {part.description}"
            )
    lines.append("-" * 40)
    return "\n".join(lines)


def _format_future_block(game: Game) -> str:
    away_p = game.away.pitcher.name if game.away.pitcher else "TBD"
    home_p = game.home.pitcher.name if game.home.pitcher else "TBD"
    lines = [
        f"⚾ {game.away.name} @ {game.home.name} — {game.venue} — {game.game_time or game.status}",
        f"Probables: {away_p} vs {home_p}",
        "-" * 40,
    ]
    return "\n".join(lines)


def _enabled_from_args(only: List[str], disable: List[str]) -> EnabledFactors:
    enabled = EnabledFactors.all()
    if only:
        enabled = EnabledFactors.only(*[f for f in map(parse_factor, only) if f is not None])
    drop = [f for f in map(parse_factor, disable) if f is not None]
    unknown = [name for name in only + disable if parse_factor(name) is None]
    if unknown:
        print(f"[RUN] [WARN] ignoring unknown factors: {', '.join(unknown)}", flush=True)
    return enabled.without(*drop)


def run_rank(args: argparse.Namespace) -> int:
    date_iso = args.date or _game_day_iso()
    print(f"[RUN] Great Games for {_date_line_from_iso(date_iso)}", flush=True)

    try:
        schedule = fetch_schedule_for_date(date_iso)
    except (MLBFetchError, ValueError) as ex:
        print(f"[ERROR] fetch failed for {date_iso}: {ex}", flush=True)
        return 1

    # Standings only feed enrichment; rank without them if they are down.
    try:
        standings = fetch_standings_for_date(date_iso)
    except MLBFetchError as ex:
        print(f"[RUN] [WARN] standings unavailable for {date_iso}: {ex}", flush=True)
        standings = None

    if args.future:
        games = attach_rankings(normalize_future(schedule), parse_team_rankings(standings))
        if not games:
            print(f"[RUN] no upcoming games on {date_iso}", flush=True)
            return 0
        for game in sorted(games, key=lambda g: g.game_date):
            print(_format_future_block(game), flush=True)
        return 0

    games = normalize(schedule)
    if not games:
        print(f"[RUN] no completed games on {date_iso}", flush=True)
        return 0

    try:
        rivalry_table = load_rivalry_table(args.rivalries)
    except (OSError, ValueError) as ex:
        print(f"[RUN] [WARN] rivalry table unavailable, scoring without it: {ex}", flush=True)
        rivalry_table = EMPTY_TABLE
    games = enrich_games(
        games,
        standings_payload=standings,
        rivalry_table=rivalry_table,
        fetch_box_score=None if args.no_enrich else fetch_detailed_box_score,
    )

    enabled = _enabled_from_args(args.only or [], args.disable or [])
    for game in rank_games(games, enabled):
        print(_format_console_block(game, args.breakdown, enabled), flush=True)
    return 0


def run_pitchers(args: argparse.Namespace) -> int:
    try:
        lines = fetch_team_pitchers(args.team, args.season)
    except MLBFetchError as ex:
        print(f"[ERROR] roster fetch failed for team {args.team}: {ex}", flush=True)
        return 1

    if not lines:
        print(f"[RUN] no starting pitchers found for team {args.team}", flush=True)
        return 0

    for i, p in enumerate(lines, start=1):
        era = f"{p.era:.2f}" if p.era is not None else "-.--"
        print(
            f"{i:>2}. {p.name:<24} {p.wins}-{p.losses}  ERA {era}  "
            f"{p.innings_pitched} IP  {p.strike_outs} K  GS {p.games_started}",
            flush=True,
        )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Rank MLB games by how much fun they were to watch.")
    sub = parser.add_subparsers(dest="command", required=True)

    rank = sub.add_parser("rank", help="rank one day's games")
    rank.add_argument("--date", help="YYYY-MM-DD (default: current game day)")
    rank.add_argument("--future", action="store_true", help="list upcoming games instead")
    rank.add_argument(
        "--only",
        nargs="*",
        metavar="FACTOR",
        help=f"score with just these factors ({', '.join(f.value for f in Factor)})",
    )
    rank.add_argument("--disable", nargs="*", metavar="FACTOR", help="factors to switch off")
    rank.add_argument("--no-enrich", action="store_true", help="skip box score fetches")
    rank.add_argument("--breakdown", action="store_true", help="print per-factor scores")
    rank.add_argument("--rivalries", help="path to a rivalry table JSON file")
    rank.set_defaults(func=run_rank)

    pitchers = sub.add_parser("pitchers", help="a team's starters ranked by ERA")
    pitchers.add_argument("--team", type=int, required=True, help="Stats API team id")
    pitchers.add_argument("--season", type=int, help="season year (default: this year)")
    pitchers.set_defaults(func=run_pitchers)

    return parser


def run(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(run())
