# standings.py
# Standings payload -> per-team ranking snapshots.
#
#   parse_team_rankings(payload)       -> {team_id: TeamRanking}
#   extract_seasonal_context(payload)  -> {team_id: DetailedRanking}
#
# Both are pure; fetching lives in mlb_adapter.

from __future__ import annotations

from typing import Any, Dict, Final, Iterable, Optional, Tuple

from models import DetailedRanking, TeamRanking

UNKNOWN_DIVISION: Final[str] = "Unknown Division"

LEAGUE_ABBREVIATIONS: Final[Dict[str, str]] = {
    "American League": "AL",
    "National League": "NL",
}

# Top three non-division-winners per league make the postseason.
WILD_CARD_SPOTS: Final[int] = 3


def format_division_name(name: Optional[str]) -> str:
    """'American League East' -> 'AL East'."""
    if not name:
        return UNKNOWN_DIVISION
    for long_name, abbrev in LEAGUE_ABBREVIATIONS.items():
        name = name.replace(long_name, abbrev)
    return name


def parse_games_back(value: Any) -> Optional[float]:
    """
    '-' is the leader (0.0), '+2.0' means two games ahead (-2.0),
    '3.5' is three and a half back. Anything else is None.
    """
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    text = str(value).strip()
    if text in ("-", "--", ""):
        return 0.0
    try:
        if text.startswith("+"):
            return -float(text[1:])
        return float(text)
    except ValueError:
        return None


def _parse_int(value: Any) -> Optional[int]:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def _parse_pct(value: Any) -> Optional[float]:
    try:
        return float(str(value).strip())
    except (TypeError, ValueError):
        return None


def _team_records(payload: Dict[str, Any] | None) -> Iterable[Tuple[str, Dict[str, Any]]]:
    if not isinstance(payload, dict):
        return
    for record in payload.get("records") or []:
        if not isinstance(record, dict):
            continue
        division = record.get("division") if isinstance(record.get("division"), dict) else {}
        division_name = format_division_name(division.get("name"))
        for team_record in record.get("teamRecords") or []:
            if isinstance(team_record, dict):
                yield division_name, team_record


def _team_id(team_record: Dict[str, Any]) -> Optional[int]:
    team = team_record.get("team")
    if not isinstance(team, dict):
        return None
    return _parse_int(team.get("id"))


def parse_team_rankings(payload: Dict[str, Any] | None) -> Dict[int, TeamRanking]:
    rankings: Dict[int, TeamRanking] = {}
    for division_name, team_record in _team_records(payload):
        team_id = _team_id(team_record)
        if team_id is None:
            continue
        rankings[team_id] = TeamRanking(
            division_rank=_parse_int(team_record.get("divisionRank")) or 0,
            division_name=division_name,
            win_percentage=_parse_pct(team_record.get("winningPercentage")),
            games_back=parse_games_back(team_record.get("gamesBack")) or 0.0,
        )
    return rankings


def extract_seasonal_context(payload: Dict[str, Any] | None) -> Dict[int, DetailedRanking]:
    """Division and wild-card position for every team in the standings."""
    context: Dict[int, DetailedRanking] = {}
    for division_name, team_record in _team_records(payload):
        team_id = _team_id(team_record)
        if team_id is None:
            continue

        division_rank = _parse_int(team_record.get("divisionRank")) or 0
        wild_card_rank = _parse_int(team_record.get("wildCardRank"))

        context[team_id] = DetailedRanking(
            division_rank=division_rank,
            division_name=division_name,
            games_back=parse_games_back(team_record.get("gamesBack")) or 0.0,
            wild_card_rank=wild_card_rank,
            wild_card_games_back=parse_games_back(team_record.get("wildCardGamesBack")),
            elimination_number=_parse_int(team_record.get("eliminationNumber")),
            wins=_parse_int(team_record.get("wins")) or 0,
            losses=_parse_int(team_record.get("losses")) or 0,
            is_in_first_place=division_rank == 1,
            is_in_wild_card=wild_card_rank is not None and wild_card_rank <= WILD_CARD_SPOTS,
        )
    return context
