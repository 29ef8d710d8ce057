import os
from datetime import datetime
from zoneinfo import ZoneInfo

from models import TeamSide

# Timezone used for the "game day" and for local first-pitch times.
GAME_DAY_TZ = ZoneInfo(os.getenv("GAME_DAY_TZ", "America/Los_Angeles"))


def to_weekday_mm_d_yy(date_iso: str) -> str:
    """
    Input: 'YYYY-MM-DD'
    Output: 'Tue · 7/4/25' (weekday abbreviated; no leading zeros)
    """
    d = datetime.strptime(date_iso, "%Y-%m-%d")
    pretty = d.strftime("%a · %m/%d/%y")
    # '/0X' -> '/X'; the month needs its own pass since it follows the dot.
    pretty = pretty.replace("/0", "/").replace("· 0", "· ")
    return pretty


def to_local_time(game_date_iso: str, tz: ZoneInfo = GAME_DAY_TZ) -> str:
    """'2025-07-04T23:05:00Z' -> '16:05' in the game-day timezone ('' if unparseable)."""
    if not game_date_iso:
        return ""
    try:
        when = datetime.fromisoformat(game_date_iso.replace("Z", "+00:00"))
    except ValueError:
        return ""
    if when.tzinfo is None:
        return when.strftime("%H:%M")
    return when.astimezone(tz).strftime("%H:%M")


def inning_ordinal(n: int) -> str:
    """1 -> '1st', 2 -> '2nd', 11 -> '11th', 23 -> '23rd'."""
    n = int(n)
    if 11 <= n % 100 <= 13:
        return f"{n}th"
    suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def _games_back(gb: float) -> str:
    return f"{gb:g}"


def standing_line(team: TeamSide) -> str:
    """
    One-line standings summary, e.g.
      '90-60, 1st in AL East, Wild Card #1'
      '70-80, 3rd in NL West, 12.5 GB, 4.5 GB of Wild Card'
    """
    r = team.detailed_ranking
    if r is None:
        return "No ranking data available"

    info = f"{r.wins}-{r.losses}"
    if r.is_in_first_place:
        info += f", 1st in {r.division_name}"
    else:
        info += (
            f", {inning_ordinal(r.division_rank)} in {r.division_name}, "
            f"{_games_back(r.games_back)} GB"
        )

    if r.is_in_wild_card:
        info += f", Wild Card #{r.wild_card_rank}"
    elif r.wild_card_games_back is not None and r.wild_card_games_back <= 5:
        info += f", {_games_back(r.wild_card_games_back)} GB of Wild Card"
    return info
