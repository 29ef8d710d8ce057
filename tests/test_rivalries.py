import json

import pytest

from models import Rivalry
from rivalries import EMPTY_TABLE, RivalryTable, classify_rivalry, load_rivalry_table


def test_classify_is_order_and_case_insensitive():
    table = RivalryTable.from_pairs(iconic=[["New York Yankees", "Boston Red Sox"]])

    assert classify_rivalry("Boston Red Sox", "New York Yankees", table) is Rivalry.ICONIC
    assert classify_rivalry("new york yankees", "BOSTON RED SOX", table) is Rivalry.ICONIC
    assert classify_rivalry("New York Yankees", "Chicago Cubs", table) is Rivalry.NONE


def test_iconic_wins_over_recent():
    pair = ["Houston Astros", "Texas Rangers"]
    table = RivalryTable.from_pairs(iconic=[pair], recent=[pair])
    assert classify_rivalry(*pair, table) is Rivalry.ICONIC


def test_missing_names_are_never_rivals():
    table = RivalryTable.from_pairs(recent=[["A", "B"]])
    assert classify_rivalry("", "B", table) is Rivalry.NONE
    assert classify_rivalry("A", "B", EMPTY_TABLE) is Rivalry.NONE


def test_bad_entry_is_rejected():
    with pytest.raises(ValueError):
        RivalryTable.from_pairs(iconic=[["Only One"]])


def test_load_table_from_file(tmp_path):
    path = tmp_path / "rivals.json"
    path.write_text(json.dumps({"iconic": [["A", "B"]], "recent": [["C", "D"], ["A", "C"]]}))

    table = load_rivalry_table(str(path))

    assert len(table.iconic) == 1
    assert len(table.recent) == 2
    assert classify_rivalry("D", "C", table) is Rivalry.RECENT


def test_bundled_table_loads():
    table = load_rivalry_table()
    assert classify_rivalry("New York Yankees", "Boston Red Sox", table) is Rivalry.ICONIC
    assert classify_rivalry("Baltimore Orioles", "New York Yankees", table) is Rivalry.RECENT


@pytest.mark.parametrize("body", ["[]", "{not json"])
def test_unreadable_table_raises_value_error(tmp_path, body):
    path = tmp_path / "rivals.json"
    path.write_text(body)
    with pytest.raises(ValueError):
        load_rivalry_table(str(path))
