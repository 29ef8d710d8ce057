# enrichment.py
# Attach optional context to normalized games: standings snapshots,
# box-score milestones and rivalry class.
#
# Enrichment only ever adds. A game whose box score cannot be fetched or read
# keeps milestones=None and the scorer falls back to its coarse rules.

from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional

from milestones import MalformedBoxScoreError, extract_milestones
from mlb_adapter import fetch_detailed_box_score
from models import DetailedRanking, Game, TeamRanking
from rivalries import EMPTY_TABLE, RivalryTable, classify_rivalry
from standings import extract_seasonal_context, parse_team_rankings

ENRICH_WORKERS: int = int(os.getenv("ENRICH_WORKERS", "6"))

BoxScoreFetcher = Callable[[int], Dict[str, Any]]


def _log(msg: str) -> None:
    print(f"[ENRICH] {msg}", flush=True)


def attach_rankings(games: List[Game], rankings: Dict[int, TeamRanking]) -> List[Game]:
    """Division snapshot per side; teams missing from the standings stay None."""
    out = []
    for game in games:
        out.append(
            replace(
                game,
                away=replace(game.away, ranking=rankings.get(game.away.team_id)),
                home=replace(game.home, ranking=rankings.get(game.home.team_id)),
            )
        )
    return out


def enrich(
    game: Game,
    *,
    box_score: Optional[Dict[str, Any]] = None,
    seasonal: Optional[Dict[int, DetailedRanking]] = None,
    rivalry_table: RivalryTable = EMPTY_TABLE,
) -> Game:
    """Return a copy of game with whatever enrichment the inputs allow."""
    updates: Dict[str, Any] = {
        "rivalry": classify_rivalry(game.away.name, game.home.name, rivalry_table),
    }

    if box_score is not None:
        try:
            updates["milestones"] = extract_milestones(box_score)
        except MalformedBoxScoreError as e:
            _log(f"[WARN] game {game.game_id}: unreadable box score ({e})")

    if seasonal:
        updates["away"] = replace(game.away, detailed_ranking=seasonal.get(game.away.team_id))
        updates["home"] = replace(game.home, detailed_ranking=seasonal.get(game.home.team_id))

    return replace(game, **updates)


def _fetch_box_scores(
    games: List[Game],
    fetch_box_score: BoxScoreFetcher,
    max_workers: int,
) -> Dict[int, Dict[str, Any]]:
    targets = [g.game_id for g in games if not g.is_future]
    if not targets:
        return {}

    box_scores: Dict[int, Dict[str, Any]] = {}
    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as pool:
        futures = {pool.submit(fetch_box_score, game_id): game_id for game_id in targets}
        for future in as_completed(futures):
            game_id = futures[future]
            try:
                box_scores[game_id] = future.result()
            except Exception as e:
                # One game's box score must not take the others down.
                _log(f"[WARN] box score fetch failed for game {game_id}: {e}")
    _log(f"[INFO] box scores: {len(box_scores)}/{len(targets)} fetched")
    return box_scores


def enrich_games(
    games: List[Game],
    *,
    standings_payload: Optional[Dict[str, Any]] = None,
    rivalry_table: RivalryTable = EMPTY_TABLE,
    fetch_box_score: Optional[BoxScoreFetcher] = fetch_detailed_box_score,
    max_workers: int = ENRICH_WORKERS,
) -> List[Game]:
    """
    Enrich a day's games. Box scores are fetched in parallel (pass
    fetch_box_score=None to skip them); output order matches input order.
    """
    rankings = parse_team_rankings(standings_payload)
    seasonal = extract_seasonal_context(standings_payload)
    games = attach_rankings(games, rankings)

    box_scores: Dict[int, Dict[str, Any]] = {}
    if fetch_box_score is not None:
        box_scores = _fetch_box_scores(games, fetch_box_score, max_workers)

    return [
        enrich(
            game,
            box_score=box_scores.get(game.game_id),
            seasonal=seasonal,
            rivalry_table=rivalry_table,
        )
        for game in games
    ]
