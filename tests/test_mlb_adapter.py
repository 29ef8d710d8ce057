import pytest
import requests

import mlb_adapter
from mlb_adapter import (
    MLBFetchError,
    fetch_detailed_box_score,
    fetch_player_season_stats,
    fetch_schedule_for_date,
    fetch_standings_for_date,
    fetch_team_roster,
    team_logo_url,
)


class FakeResp:
    def __init__(self, status_code=200, payload=None, bad_json=False):
        self.status_code = status_code
        self.ok = 200 <= status_code < 400
        self._payload = payload if payload is not None else {}
        self._bad_json = bad_json

    def json(self):
        if self._bad_json:
            raise ValueError("not json")
        return self._payload


class _Calls(list):
    pass


@pytest.fixture
def http(monkeypatch):
    log = _Calls()
    log.responses = []

    def fake_get(url, headers=None, params=None, timeout=None):
        log.append({"url": url, "params": params, "timeout": timeout})
        return log.responses.pop(0) if log.responses else FakeResp(payload={"dates": []})

    monkeypatch.setattr(mlb_adapter.requests, "get", fake_get)
    return log


def test_schedule_request_shape(http):
    fetch_schedule_for_date("2025-07-04")

    call = http[0]
    assert call["url"].endswith("/schedule")
    assert call["params"]["sportId"] == 1
    assert call["params"]["date"] == "2025-07-04"
    assert "linescore" in call["params"]["hydrate"]
    assert call["timeout"] == mlb_adapter.TIMEOUT


def test_standings_request_uses_season_from_date(http):
    fetch_standings_for_date("2024-09-15")
    params = http[0]["params"]
    assert params["season"] == "2024"
    assert params["leagueId"] == "103,104"
    assert http[0]["url"].endswith("/standings")


def test_box_roster_and_stats_endpoints(http):
    fetch_detailed_box_score(745123)
    fetch_team_roster(147, 2025)
    fetch_player_season_stats(543037, 2025)

    assert http[0]["url"].endswith("/game/745123/boxscore")
    assert http[1]["url"].endswith("/teams/147/roster")
    assert http[1]["params"] == {"rosterType": "active", "season": 2025}
    assert http[2]["url"].endswith("/people/543037/stats")
    assert http[2]["params"]["group"] == "pitching"


@pytest.mark.parametrize("bad", ["07/04/2025", "2025-7-4", "", "yesterday"])
def test_bad_date_is_rejected_before_any_request(http, bad):
    with pytest.raises(ValueError):
        fetch_schedule_for_date(bad)
    assert http == []


def test_http_error_carries_status(http):
    http.responses.append(FakeResp(status_code=503))
    with pytest.raises(MLBFetchError) as exc:
        fetch_schedule_for_date("2025-07-04")
    assert exc.value.status == 503
    assert exc.value.endpoint == "/schedule"


def test_invalid_json_is_a_fetch_error(http):
    http.responses.append(FakeResp(bad_json=True))
    with pytest.raises(MLBFetchError):
        fetch_detailed_box_score(1)


def test_non_object_payload_is_a_fetch_error(http):
    http.responses.append(FakeResp(payload=["not", "a", "dict"]))
    with pytest.raises(MLBFetchError):
        fetch_detailed_box_score(1)


def test_network_error_is_wrapped(monkeypatch):
    def boom(*args, **kwargs):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(mlb_adapter.requests, "get", boom)
    with pytest.raises(MLBFetchError) as exc:
        fetch_standings_for_date("2025-07-04")
    assert exc.value.status is None
    assert isinstance(exc.value.__cause__, requests.ConnectionError)


def test_team_logo_url():
    assert team_logo_url(147) == "https://www.mlbstatic.com/team-logos/147.svg"
