# pitchers.py
# Team-wide starting-pitcher tables (roster + season pitching lines).
#
# Not used by the game score; main.py exposes it as the `pitchers` command.

from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from game_parser import resolve_person_name
from mlb_adapter import fetch_player_season_stats, fetch_team_roster

PITCHER_POSITION_CODE = "1"
PITCHER_WORKERS: int = int(os.getenv("PITCHER_WORKERS", "8"))


@dataclass(frozen=True)
class PitcherSeasonLine:
    player_id: int
    name: str
    team_id: int
    games_started: int
    wins: int = 0
    losses: int = 0
    era: Optional[float] = None
    innings_pitched: str = "0.0"
    strike_outs: int = 0
    whip: Optional[float] = None


def _int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _float(value: Any) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def roster_pitchers(roster: Dict[str, Any]) -> List[Tuple[int, str]]:
    """[(player_id, name)] for everyone on the roster listed as a pitcher."""
    out = []
    for entry in roster.get("roster") or []:
        if not isinstance(entry, dict):
            continue
        position = entry.get("position") if isinstance(entry.get("position"), dict) else {}
        if str(position.get("code")) != PITCHER_POSITION_CODE:
            continue
        person = entry.get("person") if isinstance(entry.get("person"), dict) else {}
        if person.get("id") is None:
            continue
        out.append((_int(person["id"]), resolve_person_name(entry)))
    return out


def parse_pitcher_season_line(
    player_id: int,
    name: str,
    team_id: int,
    stats_payload: Dict[str, Any],
) -> Optional[PitcherSeasonLine]:
    """Season pitching line, or None for pitchers who have not started a game."""
    if not isinstance(stats_payload, dict):
        return None
    groups = stats_payload.get("stats")
    if not isinstance(groups, list) or not groups or not isinstance(groups[0], dict):
        return None
    splits = groups[0].get("splits")
    if not isinstance(splits, list) or not splits or not isinstance(splits[0], dict):
        return None
    stat = splits[0].get("stat")
    if not isinstance(stat, dict):
        return None

    games_started = _int(stat.get("gamesStarted"))
    if games_started <= 0:
        return None

    return PitcherSeasonLine(
        player_id=player_id,
        name=name,
        team_id=team_id,
        games_started=games_started,
        wins=_int(stat.get("wins")),
        losses=_int(stat.get("losses")),
        era=_float(stat.get("era")),
        innings_pitched=str(stat.get("inningsPitched") or "0.0"),
        strike_outs=_int(stat.get("strikeOuts")),
        whip=_float(stat.get("whip")),
    )


def rank_pitchers(lines: List[PitcherSeasonLine]) -> List[PitcherSeasonLine]:
    """Best ERA first (missing ERA last), strikeouts break ties."""
    return sorted(
        lines,
        key=lambda p: (p.era is None, p.era if p.era is not None else 0.0, -p.strike_outs),
    )


def fetch_team_pitchers(
    team_id: int,
    season: Optional[int] = None,
    *,
    fetch_roster: Callable[..., Dict[str, Any]] = fetch_team_roster,
    fetch_stats: Callable[..., Dict[str, Any]] = fetch_player_season_stats,
    max_workers: int = PITCHER_WORKERS,
) -> List[PitcherSeasonLine]:
    """
    Roster is required (its failure propagates); a single pitcher's stats
    failing only drops that pitcher.
    """
    candidates = roster_pitchers(fetch_roster(team_id, season))
    if not candidates:
        return []

    lines: List[PitcherSeasonLine] = []
    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as pool:
        futures = {
            pool.submit(fetch_stats, player_id, season): (player_id, name)
            for player_id, name in candidates
        }
        for future in as_completed(futures):
            player_id, name = futures[future]
            try:
                payload = future.result()
            except Exception as e:
                print(f"[PITCHERS] [WARN] stats failed for {name} ({player_id}): {e}", flush=True)
                continue
            line = parse_pitcher_season_line(player_id, name, team_id, payload)
            if line is not None:
                lines.append(line)

    return rank_pitchers(lines)
