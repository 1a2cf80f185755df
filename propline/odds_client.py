"""
propline/odds_client.py — Propline
===================================
All Odds API calls live here. No pipeline math, no UI, no file I/O.

Responsibilities:
- List upcoming NBA events
- Discover which markets an event offers (cheap, no odds data)
- Fetch event odds for EXACTLY ONE market per call (quota safety)
- Track API quota across the session
- Map HTTP failures to a typed error taxonomy

API base URL: https://api.the-odds-api.com/v4/sports/basketball_nba
Regions: us | Format: american

Fail-fast: one attempt per request, no retry/backoff. Callers decide what to
do with an OddsApiError.

The API key is passed in by the caller and never logged.
"""

import logging
from typing import Optional

import requests

from propline.models import EventMarket, Game, OddsResponse

logger = logging.getLogger(__name__)

BASE_URL = "https://api.the-odds-api.com/v4/sports/basketball_nba"
REGION = "us"
ODDS_FORMAT = "american"
DEFAULT_TIMEOUT = 15.0

# Fallback when market discovery fails or returns no player markets
PLAYER_MARKETS: list[str] = [
    "player_points",
    "player_assists",
    "player_rebounds",
    "player_blocks",
    "player_steals",
    "player_threes",
]


# ---------------------------------------------------------------------------
# Error taxonomy
# ---------------------------------------------------------------------------

class OddsApiError(Exception):
    """Base class for Odds API failures."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthError(OddsApiError):
    """401: invalid or expired API key. Callers reset the stored key."""


class RateLimited(OddsApiError):
    """429: request quota or rate limit exhausted."""


class MarketUnavailable(OddsApiError):
    """The requested event/market has no data. Render 'market unavailable'."""


class TransportError(OddsApiError):
    """Network failure, unexpected HTTP status, or unparseable body."""


# ---------------------------------------------------------------------------
# Quota tracker
# ---------------------------------------------------------------------------

LOW_CREDIT_THRESHOLD = 50   # one market fetch = 1 credit


def _header_int(headers, name: str) -> Optional[int]:
    raw = headers.get(name)
    if raw is None:
        return None
    try:
        return int(raw)
    except (ValueError, TypeError):
        logger.debug("Ignoring malformed %s header: %r", name, raw)
        return None


class QuotaTracker:
    """
    Odds API credit usage, read from the x-requests-* response headers.

    Each header is parsed on its own; a malformed one leaves its field as it
    was. Crossing below low_threshold logs one warning until credits recover.
    """

    def __init__(self, low_threshold: int = LOW_CREDIT_THRESHOLD) -> None:
        self.used: int = 0
        self.remaining: Optional[int] = None
        self.last_cost: int = 0
        self.low_threshold = low_threshold
        self._low_warned = False

    def update(self, headers) -> None:
        remaining = _header_int(headers, "x-requests-remaining")
        used = _header_int(headers, "x-requests-used")
        if remaining is not None:
            self.remaining = remaining
        if used is not None:
            self.used = used
        self.last_cost = _header_int(headers, "x-requests-last") or 0

        if not self.is_low():
            self._low_warned = False
        elif not self._low_warned:
            logger.warning(
                "Odds API credits low: %d left (warning below %d)",
                self.remaining, self.low_threshold,
            )
            self._low_warned = True

    def report(self) -> str:
        left = "?" if self.remaining is None else str(self.remaining)
        return f"Odds API credits: {left} left · {self.used} used · last request {self.last_cost}"

    def is_low(self, threshold: Optional[int] = None) -> bool:
        if self.remaining is None:
            return False
        limit = self.low_threshold if threshold is None else threshold
        return self.remaining < limit


# Session-wide tracker, shown in the sidebar
quota = QuotaTracker()


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

def redact(url: str, api_key: str) -> str:
    """
    >>> redact("https://x/events?apiKey=abc123", "abc123")
    'https://x/events?apiKey=REDACTED'
    """
    if not api_key:
        return url
    return url.replace(api_key, "REDACTED")


def _get_json(
    path: str,
    api_key: str,
    params: Optional[dict] = None,
    session=None,
    timeout: float = DEFAULT_TIMEOUT,
):
    """
    Single GET against the Odds API. Returns the decoded JSON body.

    Raises:
        AuthError:         401
        RateLimited:       429
        MarketUnavailable: 404 / 422
        TransportError:    timeouts, connection errors, other statuses, bad JSON
    """
    url = f"{BASE_URL}{path}"
    query = {"apiKey": api_key, **(params or {})}
    requester = session or requests

    try:
        response = requester.get(url, params=query, timeout=timeout)
    except requests.exceptions.Timeout as exc:
        logger.warning("Timeout for %s", url)
        raise TransportError(f"Timeout fetching {path}") from exc
    except requests.exceptions.RequestException as exc:
        logger.warning("Request error for %s: %s", url, redact(str(exc), api_key))
        raise TransportError(f"Request failed for {path}") from exc

    status = response.status_code
    logger.info("[API CALL] %s -> HTTP %d", url, status)

    if status == 200:
        quota.update(response.headers)
        try:
            return response.json()
        except ValueError as exc:
            logger.error("JSON parse error for %s: %s", path, exc)
            raise TransportError(f"Invalid JSON from {path}", status) from exc
    if status == 401:
        logger.error("401 Unauthorized: check ODDS_API_KEY")
        raise AuthError("Invalid API Key", status)
    if status == 429:
        logger.warning("429 Rate limited on %s", path)
        raise RateLimited("Rate limit exceeded", status)
    if status in (404, 422):
        logger.warning("HTTP %d (no data) for %s", status, path)
        raise MarketUnavailable(f"No data for {path}", status)

    body = redact(getattr(response, "text", "") or "", api_key)[:200]
    logger.warning("HTTP %d for %s: %s", status, path, body)
    raise TransportError(f"HTTP {status} for {path}", status)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

def fetch_events(api_key: str, session=None, timeout: float = DEFAULT_TIMEOUT) -> list[Game]:
    """
    List upcoming NBA events (no odds, no quota cost).

    Returns:
        Games in provider order (chronological by commence_time).
    """
    data = _get_json("/events", api_key, session=session, timeout=timeout)
    if not isinstance(data, list):
        raise TransportError("Unexpected events payload")
    return [Game.from_dict(g) for g in data if isinstance(g, dict)]


def _market_group(key: str) -> str:
    """
    >>> _market_group("player_points_alternate")
    'player'
    >>> _market_group("h2h")
    'game'
    """
    return "player" if key.startswith("player_") else "game"


def fetch_available_markets(
    api_key: str,
    event_id: str,
    session=None,
    timeout: float = DEFAULT_TIMEOUT,
) -> list[EventMarket]:
    """
    Discover which markets are posted for one event.

    The provider nests markets per bookmaker; keys are flattened and
    de-duplicated in first-seen order. A flat list of {"key": ...} dicts is
    accepted as well.
    """
    data = _get_json(f"/events/{event_id}/markets", api_key, session=session, timeout=timeout)

    if isinstance(data, dict):
        raw_markets = [
            m for book in data.get("bookmakers", []) or [] for m in book.get("markets", []) or []
        ]
    elif isinstance(data, list):
        raw_markets = data
    else:
        raw_markets = []

    seen: set = set()
    markets: list[EventMarket] = []
    for m in raw_markets:
        key = m.get("key", "") if isinstance(m, dict) else ""
        if not key or key in seen:
            continue
        seen.add(key)
        markets.append(EventMarket(key=key, group=m.get("group") or _market_group(key)))
    return markets


def fetch_market_odds(
    api_key: str,
    event_id: str,
    market_key: str,
    session=None,
    timeout: float = DEFAULT_TIMEOUT,
) -> OddsResponse:
    """
    Fetch odds for EXACTLY ONE market of one event. Cost: 1 unit per call.

    Raises:
        ValueError:        market_key names more than one market (no request made).
        MarketUnavailable: provider has no bookmaker quoting this market.
        AuthError / RateLimited / TransportError: see _get_json().
    """
    if "," in market_key:
        raise ValueError("Quota safety: one market per request, got %r" % market_key)

    params = {
        "regions": REGION,
        "markets": market_key,
        "oddsFormat": ODDS_FORMAT,
    }
    data = _get_json(f"/events/{event_id}/odds", api_key, params, session=session, timeout=timeout)
    if not isinstance(data, dict):
        raise TransportError("Unexpected odds payload")

    odds = OddsResponse.from_dict(data)
    if not odds.has_market(market_key):
        raise MarketUnavailable(f"Market not available: {market_key}")

    logger.info("Fetched %s for %s | %s", market_key, event_id, quota.report())
    return odds


def discover_player_markets(
    api_key: str,
    event_id: str,
    session=None,
    timeout: float = DEFAULT_TIMEOUT,
) -> list[str]:
    """
    Player market keys for an event, falling back to PLAYER_MARKETS.

    Falls back on an empty discovery result or a MarketUnavailable /
    TransportError / RateLimited failure. AuthError propagates so the caller
    can reset the key.
    """
    try:
        markets = fetch_available_markets(api_key, event_id, session=session, timeout=timeout)
    except AuthError:
        raise
    except OddsApiError as exc:
        logger.warning("Market discovery failed for %s (%s), using defaults", event_id, exc)
        return list(PLAYER_MARKETS)

    keys = [m.key for m in markets if m.key.startswith("player_")]
    return keys or list(PLAYER_MARKETS)
