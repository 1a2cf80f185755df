"""
propline/models.py — Propline
==============================
Data model for the prop pipeline. No API calls, no UI, no file I/O.

Raw types (RawOutcome, RawMarket, RawBookmakerQuote, OddsResponse) mirror the
Odds API event-odds payload and are immutable. PlayerOffer and
PrimaryPlayerProp are derived per normalization pass and never persisted.

Provider JSON is coerced with from_dict() — missing keys become None/empty,
never an exception.
"""

from dataclasses import dataclass, field
from typing import Optional


# ---------------------------------------------------------------------------
# Labels
# ---------------------------------------------------------------------------

CONSENSUS_LOW: str = "Low"
CONSENSUS_MEDIUM: str = "Medium"
CONSENSUS_HIGH: str = "High"

ROLE_ANCHOR: str = "Anchor"
ROLE_SUPPORT: str = "Support"
ROLE_VOLATILE: str = "Volatile"
ROLES: tuple = (ROLE_ANCHOR, ROLE_SUPPORT, ROLE_VOLATILE)

LEAN_MORE: str = "MORE"
LEAN_LESS: str = "LESS"

LEVEL_LOWER: str = "Lower Miss Risk"
LEVEL_MODERATE: str = "Moderate Miss Risk"
LEVEL_ELEVATED: str = "Elevated Miss Risk"
LEVEL_HIGH: str = "High Miss Risk"

UNKNOWN_PLAYER: str = "Unknown"


def _as_float(value) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


# ---------------------------------------------------------------------------
# Raw provider types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RawOutcome:
    """One priced side of a bet from one bookmaker."""
    name: str                           # "Over" / "Under" for player props
    price: Optional[float] = None       # American odds; None = unpriced
    description: Optional[str] = None   # player name lives here
    point: Optional[float] = None       # line value
    team: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "RawOutcome":
        return cls(
            name=data.get("name", "") or "",
            price=_as_float(data.get("price")),
            description=data.get("description") or None,
            point=_as_float(data.get("point")),
            team=data.get("team") or None,
        )


@dataclass(frozen=True)
class RawMarket:
    key: str
    outcomes: tuple = ()
    last_update: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "RawMarket":
        return cls(
            key=data.get("key", "") or "",
            outcomes=tuple(RawOutcome.from_dict(o) for o in data.get("outcomes") or []),
            last_update=data.get("last_update", "") or "",
        )


@dataclass(frozen=True)
class RawBookmakerQuote:
    key: str
    title: str
    markets: tuple = ()

    @classmethod
    def from_dict(cls, data: dict) -> "RawBookmakerQuote":
        key = data.get("key", "") or ""
        return cls(
            key=key,
            title=data.get("title") or key,
            markets=tuple(RawMarket.from_dict(m) for m in data.get("markets") or []),
        )


@dataclass(frozen=True)
class OddsResponse:
    """Event odds for one event. Bookmaker order = provider order."""
    id: str
    sport_key: str = ""
    sport_title: str = ""
    commence_time: str = ""
    home_team: str = ""
    away_team: str = ""
    bookmakers: tuple = ()

    @classmethod
    def from_dict(cls, data: dict) -> "OddsResponse":
        """
        Build the whole quote tree from an Odds API event-odds dict.

        >>> OddsResponse.from_dict({"id": "e1"}).bookmakers
        ()
        """
        return cls(
            id=data.get("id", "") or "",
            sport_key=data.get("sport_key", "") or "",
            sport_title=data.get("sport_title", "") or "",
            commence_time=data.get("commence_time", "") or "",
            home_team=data.get("home_team", "") or "",
            away_team=data.get("away_team", "") or "",
            bookmakers=tuple(
                RawBookmakerQuote.from_dict(b) for b in data.get("bookmakers") or []
            ),
        )

    def has_market(self, market_key: str) -> bool:
        """True if any bookmaker quotes at least one outcome for market_key."""
        return any(
            m.key == market_key and m.outcomes
            for b in self.bookmakers
            for m in b.markets
        )


@dataclass(frozen=True)
class Game:
    id: str
    home_team: str
    away_team: str
    commence_time: str

    @classmethod
    def from_dict(cls, data: dict) -> "Game":
        return cls(
            id=data.get("id", "") or "",
            home_team=data.get("home_team", "") or "",
            away_team=data.get("away_team", "") or "",
            commence_time=data.get("commence_time", "") or "",
        )

    @property
    def matchup(self) -> str:
        return f"{self.away_team} @ {self.home_team}"


@dataclass(frozen=True)
class EventMarket:
    key: str
    group: str


# ---------------------------------------------------------------------------
# Derived types
# ---------------------------------------------------------------------------

@dataclass
class PlayerOffer:
    """One bookmaker's consolidated quote for one player at one line."""
    bookmaker: str
    bookmaker_title: str
    over_price: Optional[float] = None
    under_price: Optional[float] = None

    @property
    def is_two_sided(self) -> bool:
        return self.over_price is not None and self.under_price is not None


@dataclass
class PrimaryPlayerProp:
    """
    The unit the pipeline operates on: one player, one market, one line.

    consensus_strength / parlay_role / market_lean / is_notable are filled in
    by the pipeline stages after normalization.
    """
    player_name: str
    market_key: str
    line: float
    team: Optional[str] = None
    offers: list = field(default_factory=list)
    consensus_strength: str = CONSENSUS_LOW
    parlay_role: str = ROLE_SUPPORT
    market_lean: Optional[str] = None     # None = neutral / unavailable
    is_notable: bool = False

    @property
    def is_hook(self) -> bool:
        """Half-point (non-integer) line — cannot push."""
        return self.line % 1 != 0

    def offer_for(self, bookmaker_key: str) -> Optional[PlayerOffer]:
        return next((o for o in self.offers if o.bookmaker == bookmaker_key), None)


@dataclass(frozen=True)
class EMRResult:
    value: int          # percent, 10..85
    level: str
    is_hook: bool
