# milestones.py
# Rare individual performances pulled out of a game's box score.
#
# A pitching feat for one side is judged against the *other* side's batting
# line: the away staff throws a no-hitter when the home lineup has no hits.

from __future__ import annotations

from typing import Any, Dict, Final, Iterable, List, Optional

from game_parser import resolve_person_name
from models import AWAY, HOME, GameMilestones, MilestonePlayer, SideMilestones

MULTI_HR_MIN: Final[int] = 2
HIGH_RBI_MIN: Final[int] = 5
HIGH_K_MIN: Final[int] = 10


class MalformedBoxScoreError(ValueError):
    pass


def _n(stats: Dict[str, Any], key: str) -> int:
    try:
        return int(stats.get(key) or 0)
    except (TypeError, ValueError):
        return 0


def _team(box_score: Dict[str, Any], side: str) -> Dict[str, Any]:
    teams = box_score.get("teams") if isinstance(box_score, dict) else None
    team = teams.get(side) if isinstance(teams, dict) else None
    if not isinstance(team, dict):
        raise MalformedBoxScoreError(f"box score has no {side} team")
    return team


def _team_stat(team: Dict[str, Any], group: str, key: str) -> Optional[int]:
    team_stats = team.get("teamStats") if isinstance(team.get("teamStats"), dict) else {}
    stats = team_stats.get(group) if isinstance(team_stats.get(group), dict) else {}
    if stats.get(key) is None:
        return None
    try:
        return int(stats[key])
    except (TypeError, ValueError):
        return None


def _players(team: Dict[str, Any]) -> Iterable[Dict[str, Any]]:
    players = team.get("players") if isinstance(team.get("players"), dict) else {}
    for player in players.values():
        if isinstance(player, dict):
            yield player


def _stats(player: Dict[str, Any], group: str) -> Dict[str, Any]:
    stats = player.get("stats") if isinstance(player.get("stats"), dict) else {}
    group_stats = stats.get(group)
    return group_stats if isinstance(group_stats, dict) else {}


def _player_id(player: Dict[str, Any]) -> Optional[int]:
    person = player.get("person") if isinstance(player.get("person"), dict) else {}
    try:
        return int(person.get("id"))
    except (TypeError, ValueError):
        return None


def _hit_for_cycle(batting: Dict[str, Any]) -> bool:
    doubles = _n(batting, "doubles")
    triples = _n(batting, "triples")
    home_runs = _n(batting, "homeRuns")
    singles = _n(batting, "hits") - doubles - triples - home_runs
    return singles >= 1 and doubles >= 1 and triples >= 1 and home_runs >= 1


def _side_milestones(own: Dict[str, Any], opponent: Dict[str, Any]) -> SideMilestones:
    opp_hits = _team_stat(opponent, "batting", "hits")
    opp_walks = _team_stat(opponent, "batting", "baseOnBalls") or 0
    opp_hbp = _team_stat(opponent, "batting", "hitByPitch") or 0
    own_errors = _team_stat(own, "fielding", "errors") or 0

    no_hitter = opp_hits == 0
    perfect_game = no_hitter and opp_walks == 0 and opp_hbp == 0 and own_errors == 0

    cycle_hitter: Optional[MilestonePlayer] = None
    multi_hr: List[MilestonePlayer] = []
    high_rbi: List[MilestonePlayer] = []
    top_k: Optional[MilestonePlayer] = None

    for player in _players(own):
        name = resolve_person_name(player)
        pid = _player_id(player)

        batting = _stats(player, "batting")
        if batting:
            home_runs = _n(batting, "homeRuns")
            rbi = _n(batting, "rbi")
            line = MilestonePlayer(pid, name, home_runs=home_runs, rbi=rbi)
            if cycle_hitter is None and _hit_for_cycle(batting):
                cycle_hitter = line
            if home_runs >= MULTI_HR_MIN:
                multi_hr.append(line)
            if rbi >= HIGH_RBI_MIN:
                high_rbi.append(line)

        pitching = _stats(player, "pitching")
        strike_outs = _n(pitching, "strikeOuts")
        if strike_outs >= HIGH_K_MIN and (top_k is None or strike_outs > top_k.strike_outs):
            top_k = MilestonePlayer(pid, name, strike_outs=strike_outs)

    return SideMilestones(
        no_hitter=no_hitter,
        perfect_game=perfect_game,
        cycle_hitter=cycle_hitter,
        multi_home_run_hitters=tuple(multi_hr),
        high_rbi_hitters=tuple(high_rbi),
        high_strikeout_pitcher=top_k,
    )


def extract_milestones(box_score: Dict[str, Any]) -> GameMilestones:
    away = _team(box_score, AWAY)
    home = _team(box_score, HOME)
    return GameMilestones(
        away=_side_milestones(away, home),
        home=_side_milestones(home, away),
    )
