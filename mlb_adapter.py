# mlb_adapter.py
# MLB Stats API adapter for Great Games.
#
# Public API:
#   fetch_schedule_for_date(date_iso: str) -> dict
#   fetch_standings_for_date(date_iso: str) -> dict
#   fetch_detailed_box_score(game_id: int) -> dict
#   fetch_team_roster(team_id: int, season: int | None = None) -> dict
#   fetch_player_season_stats(player_id: int, season: int | None = None) -> dict
#   team_logo_url(team_id: int) -> str
#
# Every fetch returns the raw JSON payload untouched. Shaping it into games
# is game_parser's job. Transport failures raise MLBFetchError.

from __future__ import annotations

import datetime
import os
import re
from typing import Final, Dict, Any

import requests

DEBUG: bool = os.getenv("DEBUG_MLB", "1").lower() not in ("0", "false", "no")
TIMEOUT: float = float(os.getenv("MLB_TIMEOUT", "10.0"))
BASE_URL: str = os.getenv("MLB_API_BASE", "https://statsapi.mlb.com/api/v1").rstrip("/")

USER_AGENT: Final[str] = "Mozilla/5.0 (compatible; GreatGamesBot/1.0)"

HEADERS: Final[Dict[str, str]] = {
    "User-Agent": USER_AGENT,
    "Accept": "application/json, text/plain, */*",
    "Accept-Language": "en-US,en;q=0.9",
}

LOGO_TEMPLATE: Final[str] = "https://www.mlbstatic.com/team-logos/{team_id}.svg"

# American League, National League
LEAGUE_IDS: Final[str] = "103,104"

SCHEDULE_HYDRATE: Final[str] = "team,linescore,probablePitcher,lineups"
STANDINGS_HYDRATE: Final[str] = "team,division"

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class MLBFetchError(RuntimeError):
    """Raised when the Stats API cannot be reached or answers badly."""

    def __init__(self, message: str, status: int | None = None, endpoint: str = ""):
        super().__init__(message)
        self.status = status
        self.endpoint = endpoint


def _log(msg: str) -> None:
    if DEBUG:
        print(f"[MLB] {msg}", flush=True)


def _check_date(date_iso: str) -> str:
    """Callers must pass YYYY-MM-DD."""
    cleaned = (date_iso or "").strip()
    if not _DATE_RE.match(cleaned):
        raise ValueError(f"date must be YYYY-MM-DD, got {date_iso!r}")
    return cleaned


def _season_for(season: int | None) -> int:
    return season if season is not None else datetime.date.today().year


def _get(endpoint: str, params: Dict[str, Any] | None = None) -> Dict[str, Any]:
    url = f"{BASE_URL}{endpoint}"
    try:
        r = requests.get(url, headers=HEADERS, params=params, timeout=TIMEOUT)
    except requests.RequestException as e:
        _log(f"[ERROR] GET {url} params={params} failed: {e}")
        raise MLBFetchError(f"network error: {e}", endpoint=endpoint) from e

    if not r.ok:
        _log(f"[ERROR] GET {url} params={params} -> {r.status_code}")
        raise MLBFetchError(
            f"Stats API request failed: HTTP {r.status_code}",
            status=r.status_code,
            endpoint=endpoint,
        )

    try:
        data = r.json()
    except ValueError as e:
        raise MLBFetchError("Stats API returned invalid JSON", r.status_code, endpoint) from e

    if not isinstance(data, dict):
        raise MLBFetchError("Stats API returned a non-object payload", r.status_code, endpoint)
    return data


def team_logo_url(team_id: int) -> str:
    return LOGO_TEMPLATE.format(team_id=team_id)


def fetch_schedule_for_date(date_iso: str) -> Dict[str, Any]:
    """
    Schedule for one day, hydrated with teams, linescores, probable
    pitchers and (when announced) lineups.
    """
    day = _check_date(date_iso)
    data = _get(
        "/schedule",
        {"sportId": 1, "date": day, "hydrate": SCHEDULE_HYDRATE},
    )
    n_games = sum(len(d.get("games") or []) for d in data.get("dates") or [])
    _log(f"[INFO] schedule for {day}: {n_games} games")
    return data


def fetch_standings_for_date(date_iso: str) -> Dict[str, Any]:
    """Division standings for both leagues as of the given day."""
    day = _check_date(date_iso)
    data = _get(
        "/standings",
        {
            "leagueId": LEAGUE_IDS,
            "season": day[:4],
            "date": day,
            "hydrate": STANDINGS_HYDRATE,
        },
    )
    _log(f"[INFO] standings for {day}: {len(data.get('records') or [])} divisions")
    return data


def fetch_detailed_box_score(game_id: int) -> Dict[str, Any]:
    return _get(f"/game/{game_id}/boxscore")


def fetch_team_roster(team_id: int, season: int | None = None) -> Dict[str, Any]:
    return _get(
        f"/teams/{team_id}/roster",
        {"rosterType": "active", "season": _season_for(season)},
    )


def fetch_player_season_stats(player_id: int, season: int | None = None) -> Dict[str, Any]:
    return _get(
        f"/people/{player_id}/stats",
        {"stats": "season", "season": _season_for(season), "group": "pitching"},
    )
