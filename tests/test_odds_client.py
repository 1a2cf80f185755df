"""
tests/test_odds_client.py — Propline
=====================================
Unit tests for propline/odds_client.py.

These tests do NOT make real API calls — all network calls are mocked
through the session= parameter.
Run: pytest tests/test_odds_client.py -v
"""

from unittest.mock import MagicMock

import pytest
import requests

import propline.odds_client as oc
from propline.models import Game, OddsResponse
from propline.odds_client import (
    PLAYER_MARKETS,
    AuthError,
    MarketUnavailable,
    OddsApiError,
    QuotaTracker,
    RateLimited,
    TransportError,
    discover_player_markets,
    fetch_available_markets,
    fetch_events,
    fetch_market_odds,
    redact,
)


def _response(data=None, status_code: int = 200, headers=None) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = data
    resp.text = ""
    resp.headers = headers or {
        "x-requests-remaining": "490",
        "x-requests-used": "10",
        "x-requests-last": "1",
    }
    return resp


def _session(resp) -> MagicMock:
    session = MagicMock()
    session.get.return_value = resp
    return session


def _odds_payload(market="player_points") -> dict:
    return {
        "id": "evt_1",
        "home_team": "Boston Celtics",
        "away_team": "New York Knicks",
        "bookmakers": [{
            "key": "draftkings",
            "title": "DraftKings",
            "markets": [{
                "key": market,
                "outcomes": [{"name": "Over", "description": "A", "point": 20.5, "price": -110}],
            }],
        }],
    }


# ---------------------------------------------------------------------------
# QuotaTracker
# ---------------------------------------------------------------------------
class TestQuotaTracker:
    def test_initial_state(self):
        qt = QuotaTracker()
        assert qt.used == 0
        assert qt.remaining is None

    def test_update_from_headers(self):
        qt = QuotaTracker()
        qt.update({"x-requests-remaining": "450", "x-requests-used": "50", "x-requests-last": "1"})
        assert qt.remaining == 450
        assert qt.used == 50
        assert qt.last_cost == 1

    def test_update_ignores_malformed(self):
        qt = QuotaTracker()
        qt.update({"x-requests-remaining": "n/a"})
        assert qt.remaining is None

    def test_is_low(self):
        qt = QuotaTracker()
        assert qt.is_low() is False
        qt.update({"x-requests-remaining": "10", "x-requests-used": "490"})
        assert qt.is_low(threshold=50) is True

    def test_one_malformed_header_keeps_the_rest(self):
        qt = QuotaTracker()
        qt.update({"x-requests-remaining": "n/a", "x-requests-used": "12", "x-requests-last": "1"})
        assert qt.remaining is None
        assert qt.used == 12
        assert qt.last_cost == 1

    def test_low_credit_warning_logged_once(self, caplog):
        qt = QuotaTracker(low_threshold=20)
        with caplog.at_level("WARNING", logger="propline.odds_client"):
            qt.update({"x-requests-remaining": "15"})
            qt.update({"x-requests-remaining": "14"})
        warnings = [r for r in caplog.records if "credits low" in r.getMessage()]
        assert len(warnings) == 1

    def test_low_credit_warning_rearms_after_recovery(self, caplog):
        qt = QuotaTracker(low_threshold=20)
        with caplog.at_level("WARNING", logger="propline.odds_client"):
            qt.update({"x-requests-remaining": "15"})
            qt.update({"x-requests-remaining": "500"})
            qt.update({"x-requests-remaining": "10"})
        warnings = [r for r in caplog.records if "credits low" in r.getMessage()]
        assert len(warnings) == 2

    def test_report(self):
        qt = QuotaTracker()
        assert "?" in qt.report()
        qt.update({"x-requests-remaining": "400", "x-requests-used": "100", "x-requests-last": "1"})
        report = qt.report()
        assert "400 left" in report
        assert "100 used" in report


# ---------------------------------------------------------------------------
# HTTP status mapping
# ---------------------------------------------------------------------------
class TestStatusMapping:
    @pytest.mark.parametrize("status,exc", [
        (401, AuthError),
        (429, RateLimited),
        (404, MarketUnavailable),
        (422, MarketUnavailable),
        (500, TransportError),
        (503, TransportError),
    ])
    def test_status_raises(self, status, exc):
        with pytest.raises(exc) as info:
            fetch_events("key", session=_session(_response(status_code=status)))
        assert info.value.status_code == status

    def test_all_errors_share_base(self):
        for exc in (AuthError, RateLimited, MarketUnavailable, TransportError):
            assert issubclass(exc, OddsApiError)

    def test_timeout_is_transport_error(self):
        session = MagicMock()
        session.get.side_effect = requests.exceptions.Timeout()
        with pytest.raises(TransportError):
            fetch_events("key", session=session)

    def test_connection_error_is_transport_error(self):
        session = MagicMock()
        session.get.side_effect = requests.exceptions.ConnectionError("down")
        with pytest.raises(TransportError):
            fetch_events("key", session=session)

    def test_bad_json_is_transport_error(self):
        resp = _response()
        resp.json.side_effect = ValueError("bad json")
        with pytest.raises(TransportError):
            fetch_events("key", session=_session(resp))

    def test_auth_message(self):
        with pytest.raises(AuthError, match="Invalid API Key"):
            fetch_events("key", session=_session(_response(status_code=401)))

    def test_single_attempt_no_retry(self):
        session = _session(_response(status_code=500))
        with pytest.raises(TransportError):
            fetch_events("key", session=session)
        assert session.get.call_count == 1


# ---------------------------------------------------------------------------
# fetch_events
# ---------------------------------------------------------------------------
class TestFetchEvents:
    def test_returns_games(self):
        data = [{
            "id": "evt_1",
            "home_team": "Boston Celtics",
            "away_team": "New York Knicks",
            "commence_time": "2026-10-20T23:30:00Z",
        }]
        games = fetch_events("key", session=_session(_response(data)))
        assert games == [Game("evt_1", "Boston Celtics", "New York Knicks", "2026-10-20T23:30:00Z")]
        assert games[0].matchup == "New York Knicks @ Boston Celtics"

    def test_api_key_sent_as_param(self):
        session = _session(_response([]))
        fetch_events("secret_key", session=session, timeout=5)
        _, kwargs = session.get.call_args
        assert kwargs["params"]["apiKey"] == "secret_key"
        assert kwargs["timeout"] == 5

    def test_non_list_payload(self):
        with pytest.raises(TransportError):
            fetch_events("key", session=_session(_response({"message": "?"})))

    def test_quota_updated(self):
        resp = _response([], headers={"x-requests-remaining": "300", "x-requests-used": "200"})
        fetch_events("key", session=_session(resp))
        assert oc.quota.remaining == 300


# ---------------------------------------------------------------------------
# fetch_available_markets / discover_player_markets
# ---------------------------------------------------------------------------
class TestMarketDiscovery:
    def test_nested_bookmaker_markets_flattened(self):
        data = {"bookmakers": [
            {"key": "dk", "markets": [{"key": "player_points"}, {"key": "h2h"}]},
            {"key": "fd", "markets": [{"key": "player_points"}, {"key": "player_assists"}]},
        ]}
        markets = fetch_available_markets("key", "evt_1", session=_session(_response(data)))
        assert [m.key for m in markets] == ["player_points", "h2h", "player_assists"]
        assert [m.group for m in markets] == ["player", "game", "player"]

    def test_flat_list_accepted(self):
        data = [{"key": "player_threes", "group": "player"}]
        markets = fetch_available_markets("key", "evt_1", session=_session(_response(data)))
        assert markets[0].key == "player_threes"

    def test_discover_filters_player_markets(self):
        data = {"bookmakers": [{"key": "dk", "markets": [
            {"key": "h2h"}, {"key": "player_rebounds"}, {"key": "player_points"},
        ]}]}
        keys = discover_player_markets("key", "evt_1", session=_session(_response(data)))
        assert keys == ["player_rebounds", "player_points"]

    def test_discover_falls_back_when_empty(self):
        data = {"bookmakers": [{"key": "dk", "markets": [{"key": "h2h"}]}]}
        keys = discover_player_markets("key", "evt_1", session=_session(_response(data)))
        assert keys == PLAYER_MARKETS

    @pytest.mark.parametrize("status", [404, 429, 500])
    def test_discover_falls_back_on_error(self, status):
        keys = discover_player_markets("key", "evt_1", session=_session(_response(status_code=status)))
        assert keys == PLAYER_MARKETS

    def test_discover_propagates_auth_error(self):
        with pytest.raises(AuthError):
            discover_player_markets("key", "evt_1", session=_session(_response(status_code=401)))

    def test_fallback_is_a_copy(self):
        keys = discover_player_markets("key", "evt_1", session=_session(_response(status_code=404)))
        keys.append("player_x")
        assert "player_x" not in PLAYER_MARKETS


# ---------------------------------------------------------------------------
# fetch_market_odds
# ---------------------------------------------------------------------------
class TestFetchMarketOdds:
    def test_returns_odds_response(self):
        session = _session(_response(_odds_payload()))
        odds = fetch_market_odds("key", "evt_1", "player_points", session=session)
        assert isinstance(odds, OddsResponse)
        assert odds.bookmakers[0].title == "DraftKings"

    def test_exactly_one_market_requested(self):
        session = _session(_response(_odds_payload()))
        fetch_market_odds("key", "evt_1", "player_points", session=session)
        args, kwargs = session.get.call_args
        assert args[0].endswith("/events/evt_1/odds")
        assert kwargs["params"]["markets"] == "player_points"
        assert kwargs["params"]["regions"] == "us"
        assert kwargs["params"]["oddsFormat"] == "american"

    def test_comma_rejected_before_request(self):
        session = _session(_response(_odds_payload()))
        with pytest.raises(ValueError):
            fetch_market_odds("key", "evt_1", "player_points,player_assists", session=session)
        session.get.assert_not_called()

    def test_market_absent_is_unavailable(self):
        session = _session(_response(_odds_payload(market="player_assists")))
        with pytest.raises(MarketUnavailable):
            fetch_market_odds("key", "evt_1", "player_points", session=session)

    def test_no_bookmakers_is_unavailable(self):
        session = _session(_response({"id": "evt_1", "bookmakers": []}))
        with pytest.raises(MarketUnavailable):
            fetch_market_odds("key", "evt_1", "player_points", session=session)

    def test_non_dict_payload(self):
        with pytest.raises(TransportError):
            fetch_market_odds("key", "evt_1", "player_points", session=_session(_response([])))


class TestRedact:
    def test_key_removed(self):
        assert "abc" not in redact("https://x?apiKey=abc", "abc")

    def test_empty_key_noop(self):
        assert redact("https://x", "") == "https://x"
