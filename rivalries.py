# rivalries.py
# Rivalry reference table and classification.
#
# The table is a plain value handed to classify_rivalry; load it once per
# session with load_rivalry_table() and pass it along.

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List

from models import Rivalry

DEFAULT_TABLE_PATH: str = os.getenv(
    "RIVALRY_TABLE_PATH",
    str(Path(__file__).resolve().parent / "data" / "rivalries.json"),
)

Pair = FrozenSet[str]


def _pair(a: str, b: str) -> Pair:
    return frozenset((a.strip().lower(), b.strip().lower()))


@dataclass(frozen=True)
class RivalryTable:
    iconic: FrozenSet[Pair] = frozenset()
    recent: FrozenSet[Pair] = frozenset()

    @classmethod
    def from_pairs(
        cls,
        iconic: Iterable[Iterable[str]] = (),
        recent: Iterable[Iterable[str]] = (),
    ) -> "RivalryTable":
        def build(rows) -> FrozenSet[Pair]:
            out = set()
            for row in rows:
                names = list(row)
                if len(names) != 2:
                    raise ValueError(f"rivalry entry needs exactly two teams: {names!r}")
                out.add(_pair(names[0], names[1]))
            return frozenset(out)

        return cls(iconic=build(iconic), recent=build(recent))


EMPTY_TABLE = RivalryTable()


def load_rivalry_table(path: str | None = None) -> RivalryTable:
    """
    Read {"iconic": [[a, b], ...], "recent": [[a, b], ...]} from JSON.
    Team names are matched case-insensitively.
    """
    path = path or DEFAULT_TABLE_PATH
    with open(path, "r", encoding="utf-8") as f:
        data: Dict[str, List[List[str]]] = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"rivalry table {path} must be a JSON object")
    table = RivalryTable.from_pairs(data.get("iconic") or [], data.get("recent") or [])
    print(
        f"[RIVALRY] loaded {len(table.iconic)} iconic / {len(table.recent)} recent pairs",
        flush=True,
    )
    return table


def classify_rivalry(away_name: str, home_name: str, table: RivalryTable) -> Rivalry:
    if not away_name or not home_name:
        return Rivalry.NONE
    key = _pair(away_name, home_name)
    if key in table.iconic:
        return Rivalry.ICONIC
    if key in table.recent:
        return Rivalry.RECENT
    return Rivalry.NONE
