from dataclasses import replace

import pytest

from models import (
    DetailedRanking,
    Game,
    GameMilestones,
    InningScore,
    MilestonePlayer,
    Rivalry,
    SideMilestones,
    TeamRanking,
    TeamSide,
)
from scoring import (
    ALL_FACTORS,
    WEIGHTS,
    EnabledFactors,
    Factor,
    close_game_score,
    comeback_score,
    errors_score,
    extra_innings_score,
    high_scoring_score,
    hits_score,
    late_game_drama_score,
    lead_changes_score,
    milestones_score,
    parse_factor,
    rank_games,
    rankings_score,
    rivalry_score,
    score_breakdown,
    score_game,
    score_to_stars,
    scoring_distribution_score,
    seasonal_context_score,
    star_symbols,
)


def _side(team_id, name, runs, **kw):
    kw.setdefault("hits", 8)
    kw.setdefault("errors", 0)
    return TeamSide(team_id=team_id, name=name, logo_url="", runs=runs, **kw)


def _game(away_runs=3, home_runs=2, game_id=1, game_date="2025-07-04T23:05:00Z", **kw):
    away_kw = kw.pop("away_kw", {})
    home_kw = kw.pop("home_kw", {})
    diff = abs(away_runs - home_runs)
    fields = dict(
        game_id=game_id,
        game_date=game_date,
        status="Final",
        venue="Fenway Park",
        away=_side(147, "New York Yankees", away_runs, **away_kw),
        home=_side(111, "Boston Red Sox", home_runs, **home_kw),
        innings=9,
        inning=9,
        total_runs=away_runs + home_runs,
        run_difference=diff,
        is_close_game=diff <= 2,
        is_high_scoring=away_runs + home_runs >= 10,
    )
    fields.update(kw)
    return Game(**fields)


def _innings(scoring_count, total=9):
    return tuple(
        InningScore(n, 1 if n <= scoring_count else 0, 0) for n in range(1, total + 1)
    )


def _detailed(division, *, rank=1, gb=0.0, wc_rank=None, wc_gb=None, elim=None):
    return DetailedRanking(
        division_rank=rank,
        division_name=division,
        games_back=gb,
        wild_card_rank=wc_rank,
        wild_card_games_back=wc_gb,
        elimination_number=elim,
        is_in_first_place=rank == 1,
        is_in_wild_card=wc_rank is not None and wc_rank <= 3,
    )


# ----------------------------------------------------------------------
# Sub-scores
# ----------------------------------------------------------------------

@pytest.mark.parametrize(
    "diff, expected",
    [(0, 1.0), (1, 0.85), (2, 0.65), (3, 0.4), (4, 0.2), (5, 0.1), (6, 0.0), (9, 0.0)],
)
def test_close_game_bands(diff, expected):
    assert close_game_score(_game(diff, 0)) == pytest.approx(expected)


def test_lead_changes_late_bonus_and_cap():
    assert lead_changes_score(_game(lead_changes=3, last_lead_change_inning=5)) == pytest.approx(0.6)
    assert lead_changes_score(_game(lead_changes=3, last_lead_change_inning=8)) == pytest.approx(0.72)
    assert lead_changes_score(_game(lead_changes=9, last_lead_change_inning=9)) == 1.0
    assert lead_changes_score(_game(lead_changes=0)) == 0.0


def test_late_game_drama():
    walkoff = _game(4, 5, last_lead_change_inning=9, is_walkoff=True)
    assert late_game_drama_score(walkoff) == 1.0

    tight = _game(4, 2, last_lead_change_inning=7)
    assert late_game_drama_score(tight) == pytest.approx(0.7)

    blowout = _game(9, 1, last_lead_change_inning=1)
    assert late_game_drama_score(blowout) == 0.0


def test_comeback_bands():
    assert comeback_score(_game(has_comeback_win=True, max_lead=5)) == pytest.approx(0.85)
    assert comeback_score(_game(has_comeback_win=True, max_lead=7)) == 1.0
    assert comeback_score(_game(has_comeback_win=True, max_lead=3)) == pytest.approx(0.5)
    assert comeback_score(_game(has_comeback_win=False, max_lead=6)) == 0.0


def test_extra_innings_sub_score():
    assert extra_innings_score(_game(innings=12, is_extra_innings=True)) == pytest.approx(0.6)
    assert extra_innings_score(_game(innings=18, is_extra_innings=True)) == pytest.approx(1.0)
    assert extra_innings_score(_game()) == 0.0


def test_high_scoring_close_bonus():
    assert high_scoring_score(_game(6, 5)) == pytest.approx(0.6)
    assert high_scoring_score(_game(11, 5)) == 1.0
    assert high_scoring_score(_game(8, 2)) == pytest.approx(0.5)
    assert high_scoring_score(_game(3, 2)) == 0.0


def test_rankings_default_and_bonus():
    assert rankings_score(_game()) == 0.0

    def ranked(a, b):
        return _game(
            away_kw={"ranking": TeamRanking(a, "AL East")},
            home_kw={"ranking": TeamRanking(b, "AL East")},
        )

    assert rankings_score(ranked(1, 2)) == 1.0
    assert rankings_score(ranked(3, 3)) == pytest.approx(0.6)
    assert rankings_score(ranked(5, 5)) == 0.0


def test_hits_and_errors():
    assert hits_score(_game()) == pytest.approx(0.6)
    assert hits_score(_game(away_kw={"hits": 14}, home_kw={"hits": 12})) == 1.0
    assert hits_score(_game(away_kw={"hits": 1}, home_kw={"hits": 2})) == 0.0

    assert errors_score(_game(home_kw={"errors": 1})) == pytest.approx(0.25)
    assert errors_score(_game(away_kw={"errors": 3}, home_kw={"errors": 3})) == 1.0


def test_scoring_distribution():
    assert scoring_distribution_score(_game(inning_scores=_innings(5))) == pytest.approx(0.5)
    assert scoring_distribution_score(_game(inning_scores=_innings(9))) == 1.0
    assert scoring_distribution_score(_game(inning_scores=_innings(1))) == pytest.approx(0.1)
    assert scoring_distribution_score(_game(innings=0)) == 0.0


def test_rivalry_levels():
    assert rivalry_score(_game(rivalry=Rivalry.ICONIC)) == 1.0
    assert rivalry_score(_game(rivalry=Rivalry.RECENT)) == pytest.approx(0.7)
    assert rivalry_score(_game()) == 0.0


def _with_milestones(**side):
    return _game(milestones=GameMilestones(home=SideMilestones(**side)))


def test_milestones_fallback_without_box_score():
    assert milestones_score(_game()) == 0.0
    assert milestones_score(_game(home_kw={"hits": 0})) == 1.0


def test_milestone_priorities():
    assert milestones_score(_with_milestones(no_hitter=True, perfect_game=True)) == 1.0
    assert milestones_score(_with_milestones(no_hitter=True)) == pytest.approx(0.95)
    assert milestones_score(_with_milestones(cycle_hitter=MilestonePlayer(1, "C"))) == pytest.approx(0.9)

    one = (MilestonePlayer(2, "Two", home_runs=2),)
    two = one + (MilestonePlayer(3, "Also Two", home_runs=2),)
    assert milestones_score(_with_milestones(multi_home_run_hitters=one)) == pytest.approx(0.6)
    assert milestones_score(_with_milestones(multi_home_run_hitters=two)) == pytest.approx(0.7)

    rbi = (MilestonePlayer(4, "Slugger", rbi=8),)
    assert milestones_score(_with_milestones(high_rbi_hitters=rbi)) == pytest.approx(0.85)

    ace = MilestonePlayer(5, "Ace", strike_outs=13)
    assert milestones_score(_with_milestones(high_strikeout_pitcher=ace)) == pytest.approx(0.8)

    # strongest single milestone counts, not the sum
    both = _with_milestones(multi_home_run_hitters=one, high_strikeout_pitcher=ace)
    assert milestones_score(both) == pytest.approx(0.8)

    assert milestones_score(_game(milestones=GameMilestones())) == 0.0


def test_seasonal_context_detailed():
    leaders = _game(
        away_kw={"detailed_ranking": _detailed("AL East")},
        home_kw={"detailed_ranking": _detailed("NL West")},
    )
    assert seasonal_context_score(leaders) == pytest.approx(0.7)
    assert seasonal_context_score(replace(leaders, game_date="2025-09-20T23:05:00Z")) == pytest.approx(0.9)

    race = _game(
        away_kw={"detailed_ranking": _detailed("AL East")},
        home_kw={"detailed_ranking": _detailed("AL East", rank=2, gb=1.5)},
    )
    assert seasonal_context_score(race) == pytest.approx(0.6)

    late_elim = _game(
        game_date="2025-09-25T23:05:00Z",
        away_kw={"detailed_ranking": _detailed("AL East", rank=4, gb=20.0, elim=1)},
        home_kw={"detailed_ranking": _detailed("NL West", rank=3, gb=12.0)},
    )
    assert seasonal_context_score(late_elim) == pytest.approx(0.8)
    assert seasonal_context_score(replace(late_elim, game_date="2025-07-25T23:05:00Z")) == 0.0

    wild_card = _game(
        away_kw={"detailed_ranking": _detailed("AL East", rank=2, gb=6.0, wc_rank=1, wc_gb=-2.0)},
        home_kw={"detailed_ranking": _detailed("AL West", rank=3, gb=9.0, wc_rank=5, wc_gb=3.0)},
    )
    assert seasonal_context_score(wild_card) == pytest.approx(0.5)


def test_seasonal_context_coarse_fallback():
    def ranked(div_a, gb_a, div_b, gb_b, date="2025-07-04T23:05:00Z"):
        return _game(
            game_date=date,
            away_kw={"ranking": TeamRanking(1, div_a, games_back=gb_a)},
            home_kw={"ranking": TeamRanking(2, div_b, games_back=gb_b)},
        )

    assert seasonal_context_score(ranked("AL East", 0.0, "AL East", 3.0)) == 1.0
    assert seasonal_context_score(ranked("AL East", 0.0, "NL East", 3.0)) == pytest.approx(0.5)
    late = ranked("AL East", 0.0, "NL East", 3.0, date="2025-09-04T23:05:00Z")
    assert seasonal_context_score(late) == pytest.approx(0.7)
    assert seasonal_context_score(ranked("AL East", 8.0, "NL East", 3.0)) == 0.0
    assert seasonal_context_score(_game()) == 0.0


# ----------------------------------------------------------------------
# Game score
# ----------------------------------------------------------------------

def test_single_factor_can_reach_100():
    tie = _game(4, 4)
    assert score_game(tie, EnabledFactors.only(Factor.CLOSE_GAME)) == pytest.approx(100.0)


def test_score_renormalizes_over_enabled_weights():
    tie = _game(4, 4)
    enabled = EnabledFactors.only(Factor.CLOSE_GAME, Factor.ERRORS)
    assert score_game(tie, enabled) == pytest.approx(80.0)


def test_nothing_enabled_scores_zero():
    assert score_game(_game(), EnabledFactors.none()) == 0.0


def test_extra_innings_weight_skipped_for_nine_inning_games():
    tie = _game(4, 4)
    enabled = EnabledFactors.only(Factor.CLOSE_GAME, Factor.EXTRA_INNINGS)
    assert score_game(tie, enabled) == pytest.approx(100.0)
    assert score_game(tie, EnabledFactors.only(Factor.EXTRA_INNINGS)) == 0.0

    long_tie = replace(tie, innings=14, is_extra_innings=True)
    assert score_game(long_tie, enabled) == pytest.approx(100.0)


def test_score_is_bounded_and_deterministic():
    games = [
        _game(),
        _game(15, 14, lead_changes=7, last_lead_change_inning=9, is_walkoff=True,
              rivalry=Rivalry.ICONIC, inning_scores=_innings(9)),
        _game(0, 12, away_kw={"hits": 0, "errors": 4}),
    ]
    for game in games:
        value = score_game(game)
        assert 0.0 <= value <= 100.0
        assert score_game(game) == value


def test_breakdown_matches_score():
    game = _game(5, 4, lead_changes=2, last_lead_change_inning=8, inning_scores=_innings(4))
    parts = score_breakdown(game)

    assert Factor.EXTRA_INNINGS not in {p.factor for p in parts}
    total = sum(p.weighted for p in parts)
    weight = sum(p.weight for p in parts)
    assert total / weight * 100 == pytest.approx(score_game(game))

    close = next(p for p in parts if p.factor is Factor.CLOSE_GAME)
    assert close.description == "1-run game (close)"
    assert close.weight == WEIGHTS[Factor.CLOSE_GAME]


# ----------------------------------------------------------------------
# Factor selection
# ----------------------------------------------------------------------

def test_parse_factor_accepts_values_names_and_aliases():
    assert parse_factor("late-game-drama") is Factor.LATE_GAME_DRAMA
    assert parse_factor("LEAD_CHANGES") is Factor.LEAD_CHANGES
    assert parse_factor("rivalryGame") is Factor.RIVALRY
    assert parse_factor("nope") is None


def test_from_flags_ignores_unknown_keys():
    enabled = EnabledFactors.from_flags(
        {"close_game": True, "rivalryGame": True, "bogus": True, "hits": False}
    )
    assert enabled.factors == frozenset({Factor.CLOSE_GAME, Factor.RIVALRY})
    assert enabled.as_flags()["hits"] is False


def test_without_and_membership():
    enabled = ALL_FACTORS.without(Factor.RIVALRY)
    assert Factor.RIVALRY not in enabled
    assert Factor.CLOSE_GAME in enabled
    assert len(enabled.factors) == len(WEIGHTS) - 1


# ----------------------------------------------------------------------
# Ranking and stars
# ----------------------------------------------------------------------

def test_rank_games_sorts_best_first_and_keeps_ties_in_order():
    dull = _game(9, 0, game_id=1)
    first_tie = _game(3, 3, game_id=2)
    second_tie = _game(3, 3, game_id=3)

    ranked = rank_games([dull, first_tie, second_tie])

    assert [g.game_id for g in ranked] == [2, 3, 1]
    assert ranked[0].excitement_score == ranked[1].excitement_score
    assert dull.excitement_score is None


def test_rank_games_is_idempotent():
    games = [_game(game_id=i, lead_changes=i) for i in range(1, 4)]
    once = rank_games(games)
    twice = rank_games(once)
    assert [(g.game_id, g.excitement_score) for g in once] == [
        (g.game_id, g.excitement_score) for g in twice
    ]


@pytest.mark.parametrize(
    "score, stars",
    [(0, 1.0), (50, 3.0), (100, 5.0), (12.5, 1.5), (6.25, 1.5), (-10, 1.0), (140, 5.0)],
)
def test_score_to_stars(score, stars):
    assert score_to_stars(score) == stars


def test_star_symbols():
    assert star_symbols(3.5) == "★★★½"
    assert star_symbols(5.0) == "★★★★★"


@pytest.mark.parametrize("n, expected", [(1, 0.2), (3, 0.6), (4, 0.8), (7, 1.0)])
def test_capped_count_scores_are_exact(n, expected):
    assert lead_changes_score(_game(lead_changes=n, last_lead_change_inning=2)) == expected
    extra = _game(innings=9 + n, is_extra_innings=True)
    assert extra_innings_score(extra) == expected
