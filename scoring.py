# scoring.py
# Excitement Score for MLB games.
#
# Each factor returns a sub-score in [0, 1]. The game score is
#
#   100 * sum(sub * weight) / sum(weight)
#
# taken over the factors that are enabled AND apply to the game (extra
# innings only applies to games that went past the 9th). Turning factors off
# therefore never caps the score below 100.
#
# Stars for display:
#   stars = round_half_up((1 + score / 100 * 4) * 2) / 2, clamped to [1, 5]

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Dict, Final, FrozenSet, Iterable, List, Mapping, Optional, Tuple

from models import Game, Rivalry, TeamSide

DEFAULT_DIVISION_RANK: Final[int] = 5
LATE_SEASON_MONTH: Final[int] = 9  # September

# Capped counts (lead changes, extra innings) in steps of 0.2.
FIFTHS: Final[Tuple[float, ...]] = (0.0, 0.2, 0.4, 0.6, 0.8, 1.0)


class Factor(str, Enum):
    CLOSE_GAME = "close_game"
    LEAD_CHANGES = "lead_changes"
    LATE_GAME_DRAMA = "late_game_drama"
    COMEBACK_WIN = "comeback_win"
    EXTRA_INNINGS = "extra_innings"
    HIGH_SCORING = "high_scoring"
    TEAM_RANKINGS = "team_rankings"
    HITS = "hits"
    ERRORS = "errors"
    SCORING_DISTRIBUTION = "scoring_distribution"
    RIVALRY = "rivalry"
    PLAYER_MILESTONES = "player_milestones"
    SEASONAL_CONTEXT = "seasonal_context"


WEIGHTS: Final[Dict[Factor, int]] = {
    Factor.CLOSE_GAME: 20,
    Factor.LEAD_CHANGES: 15,
    Factor.LATE_GAME_DRAMA: 20,
    Factor.COMEBACK_WIN: 10,
    Factor.EXTRA_INNINGS: 10,
    Factor.HIGH_SCORING: 10,
    Factor.TEAM_RANKINGS: 5,
    Factor.HITS: 5,
    Factor.ERRORS: 5,
    Factor.SCORING_DISTRIBUTION: 10,
    Factor.RIVALRY: 10,
    Factor.PLAYER_MILESTONES: 5,
    Factor.SEASONAL_CONTEXT: 5,
}

# Flag names used by the old filter panel.
FLAG_ALIASES: Final[Dict[str, Factor]] = {
    "closeGames": Factor.CLOSE_GAME,
    "leadChanges": Factor.LEAD_CHANGES,
    "lateGameDrama": Factor.LATE_GAME_DRAMA,
    "comebackWins": Factor.COMEBACK_WIN,
    "extraInnings": Factor.EXTRA_INNINGS,
    "highScoring": Factor.HIGH_SCORING,
    "teamRankings": Factor.TEAM_RANKINGS,
    "hits": Factor.HITS,
    "errors": Factor.ERRORS,
    "scoringDistribution": Factor.SCORING_DISTRIBUTION,
    "rivalryGame": Factor.RIVALRY,
    "playerMilestones": Factor.PLAYER_MILESTONES,
    "seasonalContext": Factor.SEASONAL_CONTEXT,
}


def _log(msg: str) -> None:
    print(f"[RANK] {msg}", flush=True)


def parse_factor(name: str) -> Optional[Factor]:
    """Enum value, enum name or old flag name -> Factor (None if unknown)."""
    if name in FLAG_ALIASES:
        return FLAG_ALIASES[name]
    key = name.strip().lower().replace("-", "_")
    try:
        return Factor(key)
    except ValueError:
        return None


@dataclass(frozen=True)
class EnabledFactors:
    factors: FrozenSet[Factor] = frozenset(Factor)

    @classmethod
    def all(cls) -> "EnabledFactors":
        return cls(frozenset(Factor))

    @classmethod
    def none(cls) -> "EnabledFactors":
        return cls(frozenset())

    @classmethod
    def only(cls, *factors: Factor) -> "EnabledFactors":
        return cls(frozenset(factors))

    @classmethod
    def from_flags(cls, flags: Mapping[str, bool]) -> "EnabledFactors":
        """{'close_game': True, 'rivalryGame': False, 'bogus': True} -> enabled set. Unknown keys are ignored."""
        enabled = set()
        for name, on in flags.items():
            factor = parse_factor(str(name))
            if factor is not None and on:
                enabled.add(factor)
        return cls(frozenset(enabled))

    def without(self, *factors: Factor) -> "EnabledFactors":
        return EnabledFactors(self.factors - frozenset(factors))

    def __contains__(self, factor: object) -> bool:
        return factor in self.factors

    def as_flags(self) -> Dict[str, bool]:
        return {f.value: f in self.factors for f in Factor}


ALL_FACTORS = EnabledFactors.all()


# ----------------------------------------------------------------------
# Sub-scores
# ----------------------------------------------------------------------

def close_game_score(game: Game) -> float:
    diff = game.run_difference
    if diff == 0:
        return 1.0
    if diff == 1:
        return 0.85
    if diff == 2:
        return 0.65
    if diff == 3:
        return 0.4
    return max(0.0, 0.2 - 0.1 * (diff - 4))


def lead_changes_score(game: Game) -> float:
    score = FIFTHS[min(game.lead_changes, 5)]
    if game.last_lead_change_inning >= 7:
        score *= 1.2
    return min(1.0, score)


def late_game_drama_score(game: Game) -> float:
    score = 0.0
    if game.run_difference <= 1 and game.inning >= 8:
        score += 0.7
    elif game.run_difference <= 2 and game.inning >= 7:
        score += 0.4

    if game.last_lead_change_inning >= 8:
        score += 0.5
    elif game.last_lead_change_inning >= 7:
        score += 0.3

    if game.is_walkoff:
        score += 0.5
    return min(1.0, score)


def comeback_score(game: Game) -> float:
    if not game.has_comeback_win:
        return 0.0
    if game.max_lead >= 6:
        return 1.0
    if game.max_lead >= 5:
        return 0.85
    if game.max_lead >= 4:
        return 0.7
    if game.max_lead >= 3:
        return 0.5
    return 0.0


def extra_innings_score(game: Game) -> float:
    if not game.is_extra_innings:
        return 0.0
    extra = game.innings - 9
    return FIFTHS[min(extra, 5)] if extra > 0 else 0.0


def high_scoring_score(game: Game) -> float:
    runs = game.total_runs
    if runs >= 15:
        score = 1.0
    elif runs >= 12:
        score = 0.7
    elif runs >= 10:
        score = 0.5
    elif runs >= 8:
        score = 0.3
    elif runs >= 6:
        score = 0.1
    else:
        score = 0.0

    if runs >= 10 and game.run_difference <= 2:
        score *= 1.2
    return min(1.0, score)


def _division_rank(team: TeamSide) -> int:
    if team.ranking is not None and team.ranking.division_rank:
        return team.ranking.division_rank
    return DEFAULT_DIVISION_RANK


def rankings_score(game: Game) -> float:
    away_rank = _division_rank(game.away)
    home_rank = _division_rank(game.home)
    score = max(0.0, (5 - (away_rank + home_rank) / 2) / 4)

    if away_rank <= 2 and home_rank <= 2:
        score += 0.2
    elif away_rank <= 3 and home_rank <= 3:
        score += 0.1
    return min(1.0, score)


def hits_score(game: Game) -> float:
    total = (game.away.hits or 0) + (game.home.hits or 0)
    if total >= 25:
        return 1.0
    if total >= 20:
        return 0.8
    if total >= 15:
        return 0.6
    if total >= 10:
        return 0.4
    if total >= 5:
        return 0.2
    return 0.0


def errors_score(game: Game) -> float:
    total = (game.away.errors or 0) + (game.home.errors or 0)
    return min(total, 4) * 0.25


def scoring_innings(game: Game) -> int:
    return sum(1 for inning in game.inning_scores if inning.has_scoring)


SCORING_DISTRIBUTION_BANDS: Final[Tuple[Tuple[float, float], ...]] = (
    (0.9, 1.0),
    (0.8, 0.9),
    (0.7, 0.8),
    (0.6, 0.65),
    (0.5, 0.5),
    (0.4, 0.3),
    (0.3, 0.2),
)


def scoring_distribution_score(game: Game) -> float:
    if not game.innings:
        return 0.0
    ratio = scoring_innings(game) / game.innings
    for floor, value in SCORING_DISTRIBUTION_BANDS:
        if ratio >= floor:
            return value
    return 0.1


def rivalry_score(game: Game) -> float:
    if game.rivalry == Rivalry.ICONIC:
        return 1.0
    if game.rivalry == Rivalry.RECENT:
        return 0.7
    return 0.0


def _multi_hr_value(hitters) -> float:
    top = max(p.home_runs for p in hitters)
    if top >= 4:
        return 0.9
    if top == 3:
        return 0.8
    if len(hitters) > 1:
        return 0.7
    return 0.6


def _high_rbi_value(hitters) -> float:
    top = max(p.rbi for p in hitters)
    if top >= 8:
        return 0.85
    if top >= 7:
        return 0.75
    if top >= 6:
        return 0.65
    return 0.55


def _high_k_value(top: int) -> float:
    if top >= 15:
        return 0.9
    if top >= 13:
        return 0.8
    if top >= 11:
        return 0.7
    return 0.6


def milestones_score(game: Game) -> float:
    m = game.milestones
    if m is None:
        # Box score never arrived: only a hitless line is visible.
        return 1.0 if game.away.hits == 0 or game.home.hits == 0 else 0.0

    sides = m.sides()
    if any(s.perfect_game for s in sides):
        return 1.0
    if any(s.no_hitter for s in sides):
        return 0.95

    score = 0.0
    if any(s.cycle_hitter is not None for s in sides):
        score = max(score, 0.9)

    multi_hr = [p for s in sides for p in s.multi_home_run_hitters]
    if multi_hr:
        score = max(score, _multi_hr_value(multi_hr))

    high_rbi = [p for s in sides for p in s.high_rbi_hitters]
    if high_rbi:
        score = max(score, _high_rbi_value(high_rbi))

    top_k = [s.high_strikeout_pitcher.strike_outs for s in sides if s.high_strikeout_pitcher]
    if top_k:
        score = max(score, _high_k_value(max(top_k)))

    return score


def is_late_season(game: Game) -> bool:
    return game.month >= LATE_SEASON_MONTH


def _in_wild_card_race(r) -> bool:
    return r.is_in_wild_card or (r.wild_card_games_back is not None and r.wild_card_games_back <= 5)


def seasonal_context_score(game: Game) -> float:
    late = is_late_season(game)
    away_d = game.away.detailed_ranking
    home_d = game.home.detailed_ranking
    score = 0.0

    if away_d is not None and home_d is not None:
        if away_d.is_in_first_place and home_d.is_in_first_place:
            score += 0.7 + (0.2 if late else 0.0)

        if _in_wild_card_race(away_d) and _in_wild_card_race(home_d):
            score += 0.5 + (0.2 if late else 0.0)

        if away_d.division_name == home_d.division_name:
            closest = min(away_d.games_back, home_d.games_back)
            if closest <= 2:
                score += 0.6 + (0.2 if late else 0.0)
            elif closest <= 5:
                score += 0.4 + (0.2 if late else 0.0)

        if late and any(
            r.elimination_number is not None and r.elimination_number <= 1
            for r in (away_d, home_d)
        ):
            score += 0.8
        return min(1.0, score)

    away_r = game.away.ranking
    home_r = game.home.ranking
    if away_r is None or home_r is None:
        return 0.0

    both_close = away_r.games_back <= 5 and home_r.games_back <= 5
    if both_close and away_r.division_name == home_r.division_name:
        score += 0.7 + (0.3 if late else 0.0)
    if both_close:
        score += 0.5 + (0.2 if late else 0.0)
    return min(1.0, score)


SUB_SCORES: Final[Dict[Factor, Callable[[Game], float]]] = {
    Factor.CLOSE_GAME: close_game_score,
    Factor.LEAD_CHANGES: lead_changes_score,
    Factor.LATE_GAME_DRAMA: late_game_drama_score,
    Factor.COMEBACK_WIN: comeback_score,
    Factor.EXTRA_INNINGS: extra_innings_score,
    Factor.HIGH_SCORING: high_scoring_score,
    Factor.TEAM_RANKINGS: rankings_score,
    Factor.HITS: hits_score,
    Factor.ERRORS: errors_score,
    Factor.SCORING_DISTRIBUTION: scoring_distribution_score,
    Factor.RIVALRY: rivalry_score,
    Factor.PLAYER_MILESTONES: milestones_score,
    Factor.SEASONAL_CONTEXT: seasonal_context_score,
}


def _applies(factor: Factor, game: Game) -> bool:
    if factor is Factor.EXTRA_INNINGS:
        return game.is_extra_innings
    return True


# ----------------------------------------------------------------------
# Game score, breakdown, ranking
# ----------------------------------------------------------------------

def score_game(game: Game, enabled: EnabledFactors = ALL_FACTORS) -> float:
    """Excitement score in [0, 100]."""
    total = 0.0
    weight_sum = 0
    for factor in Factor:
        if factor not in enabled or not _applies(factor, game):
            continue
        weight = WEIGHTS[factor]
        total += SUB_SCORES[factor](game) * weight
        weight_sum += weight

    if weight_sum == 0:
        return 0.0
    return max(0.0, min(100.0, total / weight_sum * 100.0))


@dataclass(frozen=True)
class FactorScore:
    factor: Factor
    raw: float
    weight: int
    description: str

    @property
    def weighted(self) -> float:
        return self.raw * self.weight


def describe(factor: Factor, game: Game) -> str:
    if factor is Factor.CLOSE_GAME:
        diff = game.run_difference
        if diff == 0:
            return "Tie game"
        return f"{diff}-run game" + (" (close)" if diff <= 2 else "")
    if factor is Factor.LEAD_CHANGES:
        return f"{game.lead_changes} lead changes, last in inning #{game.last_lead_change_inning}"
    if factor is Factor.LATE_GAME_DRAMA:
        parts = []
        if game.run_difference <= 1 and game.last_lead_change_inning >= 8:
            parts.append("Very close late-game lead change")
        elif game.run_difference <= 2 and game.last_lead_change_inning >= 7:
            parts.append("Close late-game lead change")
        if game.is_walkoff:
            parts.append("Walk-off victory")
        return ", ".join(parts) or "No significant late-game drama"
    if factor is Factor.COMEBACK_WIN:
        return f"Comeback from {game.max_lead}-run deficit" if game.has_comeback_win else "No comeback"
    if factor is Factor.EXTRA_INNINGS:
        return f"{game.innings - 9} extra innings played" if game.is_extra_innings else "No extra innings"
    if factor is Factor.HIGH_SCORING:
        return f"{game.total_runs} total runs scored"
    if factor is Factor.TEAM_RANKINGS:
        return (
            f"Away team division rank: {_division_rank(game.away)}, "
            f"Home team division rank: {_division_rank(game.home)}"
        )
    if factor is Factor.HITS:
        return f"{(game.away.hits or 0) + (game.home.hits or 0)} total hits"
    if factor is Factor.ERRORS:
        return f"{(game.away.errors or 0) + (game.home.errors or 0)} total errors"
    if factor is Factor.SCORING_DISTRIBUTION:
        n = scoring_innings(game)
        pct = (n / game.innings * 100) if game.innings else 0.0
        return f"Scoring in {n} of {game.innings} innings ({pct:.1f}%)"
    if factor is Factor.RIVALRY:
        if game.rivalry == Rivalry.NONE:
            return "Not a notable rivalry"
        return f"{game.rivalry.value.capitalize()} rivalry matchup"
    if factor is Factor.PLAYER_MILESTONES:
        return _describe_milestones(game)
    return _describe_seasonal(game)


def _describe_milestones(game: Game) -> str:
    m = game.milestones
    if m is None:
        return "No milestone data available"
    sides = m.sides()
    parts = []
    if any(s.perfect_game for s in sides):
        parts.append("Perfect game")
    elif any(s.no_hitter for s in sides):
        parts.append("No-hitter")
    if any(s.cycle_hitter for s in sides):
        parts.append("Cycle")
    n_hr = sum(len(s.multi_home_run_hitters) for s in sides)
    if n_hr:
        parts.append(f"{n_hr} player(s) with multi-HR games")
    n_rbi = sum(len(s.high_rbi_hitters) for s in sides)
    if n_rbi:
        parts.append(f"{n_rbi} player(s) with 5+ RBIs")
    if any(s.high_strikeout_pitcher for s in sides):
        parts.append("10+ strikeout pitching performance")
    return ", ".join(parts) or "No notable player milestones"


def _describe_seasonal(game: Game) -> str:
    away_d = game.away.detailed_ranking
    home_d = game.home.detailed_ranking
    if away_d is None or home_d is None:
        return "No detailed rankings available"
    parts = []
    if away_d.division_name == home_d.division_name:
        parts.append("Division matchup")
    if away_d.is_in_first_place and home_d.is_in_first_place:
        parts.append("First-place teams matchup")
    if away_d.is_in_wild_card and home_d.is_in_wild_card:
        parts.append("Wild card teams matchup")
    if is_late_season(game):
        parts.append("Late season game")
    return ", ".join(parts) or "No significant playoff implications"


def score_breakdown(game: Game, enabled: EnabledFactors = ALL_FACTORS) -> List[FactorScore]:
    """Per-factor contributions for the factors that count toward the score."""
    out: List[FactorScore] = []
    for factor in Factor:
        if factor not in enabled or not _applies(factor, game):
            continue
        out.append(
            FactorScore(
                factor=factor,
                raw=SUB_SCORES[factor](game),
                weight=WEIGHTS[factor],
                description=describe(factor, game),
            )
        )
    return out


def rank_games(games: Iterable[Game], enabled: EnabledFactors = ALL_FACTORS) -> List[Game]:
    """
    Copies of the games carrying excitement_score, best first. The sort is
    stable, so equal scores keep their input order.
    """
    scored: List[Game] = []
    for game in games:
        try:
            value = score_game(game, enabled)
        except (AttributeError, TypeError, ValueError, ZeroDivisionError) as e:
            _log(f"[ERROR] could not score game {getattr(game, 'game_id', '?')}: {e}")
            value = 0.0
        scored.append(replace(game, excitement_score=value))
    return sorted(scored, key=lambda g: g.excitement_score, reverse=True)


def score_to_stars(score: float) -> float:
    """0 -> 1.0, 50 -> 3.0, 100 -> 5.0, in half-star steps."""
    raw = 1.0 + (float(score) / 100.0) * 4.0
    stars = math.floor(raw * 2.0 + 0.5) / 2.0
    return max(1.0, min(5.0, stars))


def star_symbols(stars: float) -> str:
    full = int(math.floor(stars))
    half = stars - full >= 0.5
    return "★" * full + ("½" if half else "")
