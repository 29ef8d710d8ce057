# vibe_tags.py
# Short, deterministic tier labels by Excitement Score.
# 80+ elite; 60s-70s great; 40s-50s good; 20s-30s average; under 20 below average.

from typing import Final

TIER_TAGS: Final[dict[int, str]] = {
    80: "Elite game",
    60: "Great game",
    40: "Good game",
    20: "Average game",
    0: "Below average game",
}


def pick_vibe(score: float) -> str:
    """Return the tier label for an Excitement Score (0-100)."""
    s = max(0.0, min(100.0, float(score)))
    for floor in sorted(TIER_TAGS, reverse=True):
        if s >= floor:
            return TIER_TAGS[floor]
    return TIER_TAGS[0]
