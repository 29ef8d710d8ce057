# game_parser.py
# Turn Stats API schedule payloads into canonical Game records.
#
# Public API:
#   normalize(payload) -> list[Game]          # Final games, with analytics
#   normalize_future(payload) -> list[Game]   # Preview / Scheduled games
#   resolve_person_name(raw, placeholder) -> str
#
# A bad record never sinks the batch: it is logged and skipped.

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from formatting import to_local_time
from mlb_adapter import team_logo_url
from models import AWAY, HOME, Game, InningScore, PlayerRef, TeamSide

UNKNOWN_PLAYER = "Unknown Player"
TBD = "TBD"
UNKNOWN_VENUE = "Unknown Venue"

FINAL_STATES = ("Final",)
FUTURE_STATES = ("Preview", "Scheduled")

COMEBACK_MIN_LEAD = 3
REGULATION_INNINGS = 9

# (inning number, away runs, home runs); None means the half was not played.
RawInning = Tuple[int, Optional[int], Optional[int]]


class MalformedGameError(ValueError):
    """A single schedule record is missing something we cannot do without."""


def _log(msg: str) -> None:
    print(f"[PARSER] {msg}", flush=True)


def _safe_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


# ----------------------------------------------------------------------
# Names
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class PersonName:
    """The name fields a Stats API person record may carry."""

    person_full: str = ""
    person_first: str = ""
    person_last: str = ""
    full: str = ""
    first: str = ""
    last: str = ""
    flat: str = ""

    @classmethod
    def from_raw(cls, raw: Dict[str, Any] | None) -> "PersonName":
        raw = raw if isinstance(raw, dict) else {}
        person = raw.get("person") if isinstance(raw.get("person"), dict) else {}

        def s(d: Dict[str, Any], key: str) -> str:
            v = d.get(key)
            return v.strip() if isinstance(v, str) else ""

        return cls(
            person_full=s(person, "fullName"),
            person_first=s(person, "firstName"),
            person_last=s(person, "lastName"),
            full=s(raw, "fullName"),
            first=s(raw, "firstName"),
            last=s(raw, "lastName"),
            flat=s(raw, "name"),
        )

    def resolve(self, placeholder: str = UNKNOWN_PLAYER) -> str:
        if self.person_full:
            return self.person_full
        if self.person_first and self.person_last:
            return f"{self.person_first} {self.person_last}"
        if self.full:
            return self.full
        if self.first and self.last:
            return f"{self.first} {self.last}"
        if self.flat:
            return self.flat
        return placeholder


def resolve_person_name(raw: Dict[str, Any] | None, placeholder: str = UNKNOWN_PLAYER) -> str:
    return PersonName.from_raw(raw).resolve(placeholder)


def _person_id(raw: Dict[str, Any]) -> Optional[int]:
    person = raw.get("person")
    if isinstance(person, dict) and person.get("id") is not None:
        return _safe_int(person.get("id"))
    return _safe_int(raw.get("id"))


def _player_ref(raw: Any, placeholder: str = UNKNOWN_PLAYER) -> Optional[PlayerRef]:
    if not isinstance(raw, dict) or not raw:
        return None
    position = raw.get("position") or raw.get("primaryPosition") or {}
    return PlayerRef(
        player_id=_person_id(raw),
        name=resolve_person_name(raw, placeholder),
        position=position.get("abbreviation") if isinstance(position, dict) else None,
    )


# ----------------------------------------------------------------------
# Inning-by-inning analytics
# ----------------------------------------------------------------------

def _raw_innings(linescore: Dict[str, Any]) -> List[RawInning]:
    out: List[RawInning] = []
    for idx, inning in enumerate(linescore.get("innings") or [], start=1):
        if not isinstance(inning, dict):
            raise MalformedGameError(f"inning #{idx} is not an object")
        away = inning.get("away") if isinstance(inning.get("away"), dict) else {}
        home = inning.get("home") if isinstance(inning.get("home"), dict) else {}
        num = _safe_int(inning.get("num")) or idx
        out.append((num, _safe_int(away.get("runs")), _safe_int(home.get("runs"))))
    return out


def count_lead_changes(innings: Iterable[RawInning]) -> int:
    """
    Away half first, then home half. A tie clears the leader (only checked
    after the home half) and is never itself a change.
    """
    changes = 0
    away_score = 0
    home_score = 0
    leader: Optional[str] = None

    for _, away_runs, home_runs in innings:
        if away_runs is not None:
            away_score += away_runs
            if away_score > home_score:
                if leader is not None and leader != AWAY:
                    changes += 1
                leader = AWAY

        if home_runs is not None:
            home_score += home_runs
            if home_score > away_score:
                if leader is not None and leader != HOME:
                    changes += 1
                leader = HOME
            elif home_score == away_score:
                leader = None

    return changes


def find_last_lead_change_inning(innings: Iterable[RawInning]) -> int:
    """Inning at whose end a new leader emerged most recently (0 if never)."""
    last = 0
    away_score = 0
    home_score = 0
    previous: Optional[str] = None

    for num, away_runs, home_runs in innings:
        away_score += away_runs or 0
        home_score += home_runs or 0
        if away_score > home_score:
            current = AWAY
        elif home_score > away_score:
            current = HOME
        else:
            current = "tie"
        if current != previous and current != "tie":
            last = num
        previous = current

    return last


def is_walkoff(innings: List[RawInning], away_final: int, home_final: int) -> bool:
    if not innings:
        return False
    if home_final <= away_final:
        return False
    last_num, _, last_home = innings[-1]
    if last_num < REGULATION_INNINGS:
        return False
    home_before_last = home_final - (last_home or 0)
    return home_before_last <= away_final


def find_max_lead_and_comeback(
    innings: Iterable[RawInning],
    away_final: int,
    home_final: int,
) -> Tuple[int, Optional[str], Optional[str]]:
    """Return (max_lead, side that held it, comeback winner side or None)."""
    away_score = 0
    home_score = 0
    max_lead = 0
    max_lead_side: Optional[str] = None

    for _, away_runs, home_runs in innings:
        if away_runs is not None:
            away_score += away_runs
        if away_score - home_score > max_lead:
            max_lead = away_score - home_score
            max_lead_side = AWAY

        if home_runs is not None:
            home_score += home_runs
        if home_score - away_score > max_lead:
            max_lead = home_score - away_score
            max_lead_side = HOME

    comeback_side: Optional[str] = None
    if max_lead >= COMEBACK_MIN_LEAD:
        if away_final > home_final and max_lead_side == HOME:
            comeback_side = AWAY
        elif home_final > away_final and max_lead_side == AWAY:
            comeback_side = HOME

    return max_lead, max_lead_side, comeback_side


# ----------------------------------------------------------------------
# Record -> Game
# ----------------------------------------------------------------------

def _require(obj: Any, key: str, what: str) -> Dict[str, Any]:
    value = obj.get(key) if isinstance(obj, dict) else None
    if not isinstance(value, dict):
        raise MalformedGameError(f"missing {what}")
    return value


def _team_basics(raw_side: Dict[str, Any], label: str) -> Tuple[int, str]:
    team = _require(raw_side, "team", f"{label} team")
    team_id = _safe_int(team.get("id"))
    if team_id is None:
        raise MalformedGameError(f"{label} team has no id")
    name = team.get("name") or team.get("teamName") or f"Team {team_id}"
    return team_id, str(name)


def _lineup(raw_game: Dict[str, Any], key: str) -> Tuple[PlayerRef, ...]:
    lineups = raw_game.get("lineups") if isinstance(raw_game.get("lineups"), dict) else {}
    players = []
    for raw in lineups.get(key) or []:
        ref = _player_ref(raw)
        if ref is not None:
            players.append(ref)
    return tuple(players)


def _game_id(raw_game: Dict[str, Any]) -> int:
    game_id = _safe_int(raw_game.get("gamePk"))
    if game_id is None:
        raise MalformedGameError("missing gamePk")
    return game_id


def _venue(raw_game: Dict[str, Any]) -> str:
    venue = raw_game.get("venue") if isinstance(raw_game.get("venue"), dict) else {}
    return venue.get("name") or UNKNOWN_VENUE


def _final_runs(raw_side: Dict[str, Any], line_side: Dict[str, Any], innings_total: int) -> int:
    for candidate in (raw_side.get("score"), line_side.get("runs")):
        runs = _safe_int(candidate)
        if runs is not None:
            return runs
    return innings_total


def _build_completed_game(raw_game: Dict[str, Any]) -> Game:
    game_id = _game_id(raw_game)
    teams = _require(raw_game, "teams", "teams")
    raw_away = _require(teams, AWAY, "away side")
    raw_home = _require(teams, HOME, "home side")
    away_id, away_name = _team_basics(raw_away, AWAY)
    home_id, home_name = _team_basics(raw_home, HOME)

    linescore = raw_game.get("linescore") if isinstance(raw_game.get("linescore"), dict) else {}
    line_teams = linescore.get("teams") if isinstance(linescore.get("teams"), dict) else {}
    line_away = line_teams.get(AWAY) if isinstance(line_teams.get(AWAY), dict) else {}
    line_home = line_teams.get(HOME) if isinstance(line_teams.get(HOME), dict) else {}

    innings = _raw_innings(linescore)
    away_runs = _final_runs(raw_away, line_away, sum(a or 0 for _, a, _ in innings))
    home_runs = _final_runs(raw_home, line_home, sum(h or 0 for _, _, h in innings))

    total_runs = away_runs + home_runs
    run_difference = abs(away_runs - home_runs)
    max_lead, max_lead_side, comeback_side = find_max_lead_and_comeback(
        innings, away_runs, home_runs
    )

    def side(raw_side, line_side, team_id, name, runs) -> TeamSide:
        record = raw_side.get("leagueRecord") if isinstance(raw_side.get("leagueRecord"), dict) else {}
        return TeamSide(
            team_id=team_id,
            name=name,
            logo_url=team_logo_url(team_id),
            runs=runs,
            hits=_safe_int(line_side.get("hits")) or 0,
            errors=_safe_int(line_side.get("errors")) or 0,
            wins=_safe_int(record.get("wins")),
            losses=_safe_int(record.get("losses")),
            pitcher=_player_ref(raw_side.get("probablePitcher")),
        )

    status = _require(raw_game, "status", "status")

    return Game(
        game_id=game_id,
        game_date=str(raw_game.get("gameDate") or ""),
        status=str(status.get("detailedState") or status.get("abstractGameState") or ""),
        venue=_venue(raw_game),
        away=side(raw_away, line_away, away_id, away_name, away_runs),
        home=side(raw_home, line_home, home_id, home_name, home_runs),
        inning_scores=tuple(InningScore(num, a or 0, h or 0) for num, a, h in innings),
        inning=_safe_int(linescore.get("currentInning")) or len(innings) or REGULATION_INNINGS,
        innings=len(innings),
        is_extra_innings=len(innings) > REGULATION_INNINGS,
        total_runs=total_runs,
        run_difference=run_difference,
        lead_changes=count_lead_changes(innings),
        last_lead_change_inning=find_last_lead_change_inning(innings),
        is_walkoff=is_walkoff(innings, away_runs, home_runs),
        max_lead=max_lead,
        max_lead_side=max_lead_side,
        has_comeback_win=comeback_side is not None,
        comeback_side=comeback_side,
        is_close_game=run_difference <= 2,
        is_high_scoring=total_runs >= 10,
    )


def _build_future_game(raw_game: Dict[str, Any]) -> Game:
    game_id = _game_id(raw_game)
    teams = _require(raw_game, "teams", "teams")
    raw_away = _require(teams, AWAY, "away side")
    raw_home = _require(teams, HOME, "home side")
    status = _require(raw_game, "status", "status")

    def side(raw_side: Dict[str, Any], label: str, lineup_key: str) -> TeamSide:
        team_id, name = _team_basics(raw_side, label)
        record = raw_side.get("leagueRecord") if isinstance(raw_side.get("leagueRecord"), dict) else {}
        return TeamSide(
            team_id=team_id,
            name=name,
            logo_url=team_logo_url(team_id),
            wins=_safe_int(record.get("wins")),
            losses=_safe_int(record.get("losses")),
            pitcher=_player_ref(raw_side.get("probablePitcher"), placeholder=TBD),
            lineup=_lineup(raw_game, lineup_key),
        )

    game_date = str(raw_game.get("gameDate") or "")
    return Game(
        game_id=game_id,
        game_date=game_date,
        status=str(status.get("detailedState") or status.get("abstractGameState") or ""),
        venue=_venue(raw_game),
        away=side(raw_away, AWAY, "awayPlayers"),
        home=side(raw_home, HOME, "homePlayers"),
        is_future=True,
        game_time=to_local_time(game_date),
    )


# ----------------------------------------------------------------------
# Batches
# ----------------------------------------------------------------------

def _iter_raw_games(payload: Dict[str, Any] | None) -> Iterable[Dict[str, Any]]:
    if not isinstance(payload, dict):
        return
    for bucket in payload.get("dates") or []:
        if not isinstance(bucket, dict):
            continue
        for raw_game in bucket.get("games") or []:
            yield raw_game


def _abstract_state(raw_game: Any) -> Optional[str]:
    if not isinstance(raw_game, dict):
        return None
    status = raw_game.get("status")
    if not isinstance(status, dict):
        return None
    return status.get("abstractGameState")


def _normalize_batch(payload, states, build, label: str) -> List[Game]:
    games: List[Game] = []
    skipped = 0
    for raw_game in _iter_raw_games(payload):
        state = _abstract_state(raw_game)
        if state is None:
            skipped += 1
            pk = raw_game.get("gamePk") if isinstance(raw_game, dict) else None
            _log(f"[ERROR] skipping record {pk}: missing status")
            continue
        if state not in states:
            continue
        try:
            games.append(build(raw_game))
        except (MalformedGameError, KeyError, TypeError, ValueError) as e:
            skipped += 1
            _log(f"[ERROR] skipping {label} game {raw_game.get('gamePk')}: {e}")

    deduped = dedupe_games(games)
    _log(
        f"[INFO] {len(deduped)} {label} games "
        f"({len(games) - len(deduped)} duplicates, {skipped} malformed)"
    )
    return deduped


def normalize(payload: Dict[str, Any] | None) -> List[Game]:
    """Completed games only."""
    return _normalize_batch(payload, FINAL_STATES, _build_completed_game, "completed")


def normalize_future(payload: Dict[str, Any] | None) -> List[Game]:
    """Games that have not started yet."""
    return _normalize_batch(payload, FUTURE_STATES, _build_future_game, "future")


def dedupe_games(games: Iterable[Game]) -> List[Game]:
    """
    One game per (day, unordered team pair). The higher total_runs record
    wins; on a tie the first one seen stays. Output keeps first-seen order.
    """
    kept: Dict[Tuple[str, frozenset], Game] = {}
    for game in games:
        key = (game.day, frozenset((game.away.team_id, game.home.team_id)))
        current = kept.get(key)
        if current is None or game.total_runs > current.total_runs:
            kept[key] = game
    return list(kept.values())
