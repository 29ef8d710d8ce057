# models.py
# Canonical game records for Great Games (MLB).
#
# Everything here is a frozen dataclass. A Game is built once by game_parser,
# then enrichment and ranking hand back copies via dataclasses.replace, so the
# normalized fields are never rewritten.

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

AWAY = "away"
HOME = "home"


class Rivalry(str, Enum):
    NONE = "none"
    RECENT = "recent"
    ICONIC = "iconic"


@dataclass(frozen=True)
class PlayerRef:
    player_id: Optional[int]
    name: str
    position: Optional[str] = None


@dataclass(frozen=True)
class InningScore:
    number: int
    away_runs: int = 0
    home_runs: int = 0

    @property
    def has_scoring(self) -> bool:
        return self.away_runs > 0 or self.home_runs > 0


@dataclass(frozen=True)
class TeamRanking:
    """Division snapshot from the standings feed."""

    division_rank: int
    division_name: str
    win_percentage: Optional[float] = None
    games_back: float = 0.0


@dataclass(frozen=True)
class DetailedRanking:
    division_rank: int
    division_name: str
    games_back: float = 0.0
    wild_card_rank: Optional[int] = None
    wild_card_games_back: Optional[float] = None
    elimination_number: Optional[int] = None
    wins: int = 0
    losses: int = 0
    is_in_first_place: bool = False
    is_in_wild_card: bool = False


@dataclass(frozen=True)
class TeamSide:
    team_id: int
    name: str
    logo_url: str
    runs: Optional[int] = None
    hits: Optional[int] = None
    errors: Optional[int] = None
    wins: Optional[int] = None
    losses: Optional[int] = None
    pitcher: Optional[PlayerRef] = None
    lineup: Tuple[PlayerRef, ...] = ()
    ranking: Optional[TeamRanking] = None
    detailed_ranking: Optional[DetailedRanking] = None

    @property
    def record(self) -> str:
        if self.wins is None or self.losses is None:
            return ""
        return f"{self.wins}-{self.losses}"


@dataclass(frozen=True)
class MilestonePlayer:
    player_id: Optional[int]
    name: str
    home_runs: int = 0
    rbi: int = 0
    strike_outs: int = 0


@dataclass(frozen=True)
class SideMilestones:
    no_hitter: bool = False
    perfect_game: bool = False
    cycle_hitter: Optional[MilestonePlayer] = None
    multi_home_run_hitters: Tuple[MilestonePlayer, ...] = ()
    high_rbi_hitters: Tuple[MilestonePlayer, ...] = ()
    high_strikeout_pitcher: Optional[MilestonePlayer] = None


@dataclass(frozen=True)
class GameMilestones:
    away: SideMilestones = field(default_factory=SideMilestones)
    home: SideMilestones = field(default_factory=SideMilestones)

    def sides(self) -> Tuple[SideMilestones, SideMilestones]:
        return (self.away, self.home)


@dataclass(frozen=True)
class Game:
    game_id: int
    game_date: str
    status: str
    venue: str
    away: TeamSide
    home: TeamSide
    inning_scores: Tuple[InningScore, ...] = ()
    inning: int = 9
    is_future: bool = False
    game_time: str = ""

    # Derived at normalization time.
    innings: int = 0
    is_extra_innings: bool = False
    total_runs: int = 0
    run_difference: int = 0
    lead_changes: int = 0
    last_lead_change_inning: int = 0
    is_walkoff: bool = False
    max_lead: int = 0
    max_lead_side: Optional[str] = None
    has_comeback_win: bool = False
    comeback_side: Optional[str] = None
    is_close_game: bool = False
    is_high_scoring: bool = False

    # Enrichment (additive only).
    milestones: Optional[GameMilestones] = None
    rivalry: Rivalry = Rivalry.NONE

    excitement_score: Optional[float] = None

    @property
    def day(self) -> str:
        """Calendar day (YYYY-MM-DD) of the game timestamp."""
        return (self.game_date or "")[:10]

    @property
    def month(self) -> int:
        try:
            return int(self.day[5:7])
        except ValueError:
            return 0

    @property
    def matchup(self) -> str:
        return f"{self.away.name} @ {self.home.name}"

    def side(self, key: str) -> TeamSide:
        return self.away if key == AWAY else self.home
