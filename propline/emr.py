"""
propline/emr.py — Estimated Miss Risk (EMR)
============================================
Scores how likely a prop's priced side misses, as a calibrated percentage.

Math:
  base         = 1 - implied_probability(over price at selected book)
                 (-110 baseline when the book has no over price)
  hook         = +0.04 on a half-point line
  disagreement = over-price spread across books: <10 → .01, <25 → .03, else .06
                 (0 with fewer than two over prices)
  role         = points markets only: line < 10 → .06, line < 18 → .03
  raw          = base + hook + disagreement + role
  shrunk       = 0.5 + 0.65 * (raw - 0.5)
  final        = clamp(shrunk, 0.10, 0.85)

Buckets: <.40 Lower, <=.55 Moderate, <=.65 Elevated, else High Miss Risk.

Total: never raises, always returns a value in [10, 85].
"""

from propline.models import (
    LEVEL_ELEVATED,
    LEVEL_HIGH,
    LEVEL_LOWER,
    LEVEL_MODERATE,
    EMRResult,
    PrimaryPlayerProp,
)
from propline.odds_math import BASELINE_PRICE, clamp, implied_probability, round_half_up


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
HOOK_ADJUSTMENT: float = 0.04
SHRINK_FACTOR: float = 0.65
EMR_FLOOR: float = 0.10
EMR_CEILING: float = 0.85

# (spread upper bound, adjustment); last tier catches everything above
DISAGREEMENT_TIERS: tuple = ((10, 0.01), (25, 0.03))
DISAGREEMENT_MAX: float = 0.06

# (line upper bound, adjustment); points markets only
ROLE_TIERS: tuple = ((10, 0.06), (18, 0.03))


# ---------------------------------------------------------------------------
# Adjustments
# ---------------------------------------------------------------------------

def disagreement_adjustment(over_prices: list) -> float:
    """
    >>> disagreement_adjustment([-110])
    0.0
    >>> disagreement_adjustment([-110, -115])
    0.01
    >>> disagreement_adjustment([-110, -130])
    0.03
    >>> disagreement_adjustment([-110, -140])
    0.06
    """
    if len(over_prices) < 2:
        return 0.0
    spread = max(over_prices) - min(over_prices)
    for bound, adjustment in DISAGREEMENT_TIERS:
        if spread < bound:
            return adjustment
    return DISAGREEMENT_MAX


def role_adjustment(market_key: str, line: float) -> float:
    """
    >>> role_adjustment("player_points", 8.5)
    0.06
    >>> role_adjustment("player_points", 17.5)
    0.03
    >>> role_adjustment("player_rebounds", 4.5)
    0.0
    """
    if "points" not in market_key:
        return 0.0
    for bound, adjustment in ROLE_TIERS:
        if line < bound:
            return adjustment
    return 0.0


def miss_risk_level(final_emr: float) -> str:
    if final_emr < 0.40:
        return LEVEL_LOWER
    if final_emr <= 0.55:
        return LEVEL_MODERATE
    if final_emr <= 0.65:
        return LEVEL_ELEVATED
    return LEVEL_HIGH


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------

def emr_breakdown(prop: PrimaryPlayerProp, bookmaker_key: str) -> dict:
    """
    Every intermediate term of the EMR calculation, for display.

    Keys: odds, base, hook, disagreement, role, raw, shrunk, final.
    """
    offer = prop.offer_for(bookmaker_key)
    odds = BASELINE_PRICE
    if offer is not None and offer.over_price is not None:
        odds = offer.over_price

    base = 1 - implied_probability(odds)
    hook = HOOK_ADJUSTMENT if prop.is_hook else 0.0
    over_prices = [o.over_price for o in prop.offers if o.over_price is not None]
    disagreement = disagreement_adjustment(over_prices)
    role = role_adjustment(prop.market_key, prop.line)

    raw = base + hook + disagreement + role
    shrunk = 0.5 + SHRINK_FACTOR * (raw - 0.5)

    return {
        "odds": odds,
        "base": base,
        "hook": hook,
        "disagreement": disagreement,
        "role": role,
        "raw": raw,
        "shrunk": shrunk,
        "final": clamp(shrunk, EMR_FLOOR, EMR_CEILING),
    }


def calculate_emr(prop: PrimaryPlayerProp, bookmaker_key: str) -> EMRResult:
    """
    Estimated Miss Risk for one prop at the selected bookmaker.

    >>> from propline.models import PrimaryPlayerProp, PlayerOffer
    >>> p = PrimaryPlayerProp("A", "player_points", 24.5,
    ...                       offers=[PlayerOffer("dk", "DK", -110, -110)])
    >>> calculate_emr(p, "dk")
    EMRResult(value=51, level='Moderate Miss Risk', is_hook=True)
    """
    final = emr_breakdown(prop, bookmaker_key)["final"]
    return EMRResult(
        value=round_half_up(final * 100),
        level=miss_risk_level(final),
        is_hook=prop.is_hook,
    )


def calculate_parlay_miss_rate(emrs: list) -> int:
    """
    Combined miss rate of a parlay from its legs' EMR percentages.

    Legs treated as independent: hit = prod(1 - emr/100).

    >>> calculate_parlay_miss_rate([])
    0
    >>> calculate_parlay_miss_rate([50])
    50
    >>> calculate_parlay_miss_rate([50, 50])
    75
    """
    if not emrs:
        return 0
    hit_prob = 1.0
    for emr in emrs:
        hit_prob *= 1 - emr / 100
    return round_half_up((1 - hit_prob) * 100)
