"""
propline/parlay_role.py — Parlay Role Classifier
=================================================
Assigns each prop a structural role for parlay construction.

  Volatile: low consensus, high line, or aggressive pricing
  Anchor:   high consensus, low line, moderate pricing
  Support:  everything else

Volatile is evaluated first and wins over Anchor.
"""

from propline.models import (
    CONSENSUS_HIGH,
    CONSENSUS_LOW,
    ROLE_ANCHOR,
    ROLE_SUPPORT,
    ROLE_VOLATILE,
)


# ---------------------------------------------------------------------------
# Thresholds
# ---------------------------------------------------------------------------
AGGRESSIVE_PLUS: int = 120       # avg price above +120 → aggressive
AGGRESSIVE_MINUS: int = -180     # avg price below -180 → aggressive
ANCHOR_MAX_JUICE: int = 150      # |avg price| ceiling for an Anchor

POINTS_VOLATILE_LINE: float = 26
POINTS_ANCHOR_LINE: float = 16
OTHER_VOLATILE_LINE: float = 10
OTHER_ANCHOR_LINE: float = 5


def is_aggressive_price(avg_juice: float) -> bool:
    """
    >>> is_aggressive_price(-110)
    False
    >>> is_aggressive_price(125)
    True
    >>> is_aggressive_price(-185)
    True
    """
    return avg_juice > AGGRESSIVE_PLUS or avg_juice < AGGRESSIVE_MINUS


def evaluate_parlay_role(
    line: float,
    market_key: str,
    consensus: str,
    avg_juice: float,
) -> str:
    """
    Classify a prop as Anchor, Support or Volatile.

    Args:
        line:       Primary line value.
        market_key: e.g. "player_points". Any key containing "points" uses
                    the points thresholds.
        consensus:  "Low" | "Medium" | "High".
        avg_juice:  Average favored-side price (signed American odds).

    >>> evaluate_parlay_role(12.5, "player_points", "High", -115)
    'Anchor'
    >>> evaluate_parlay_role(12.5, "player_points", "Low", -115)
    'Volatile'
    >>> evaluate_parlay_role(20.5, "player_points", "High", -115)
    'Support'
    """
    is_points = "points" in market_key

    if (
        consensus == CONSENSUS_LOW
        or (is_points and line > POINTS_VOLATILE_LINE)
        or (not is_points and line > OTHER_VOLATILE_LINE)
        or is_aggressive_price(avg_juice)
    ):
        return ROLE_VOLATILE

    low_line = (is_points and line < POINTS_ANCHOR_LINE) or (
        not is_points and line < OTHER_ANCHOR_LINE
    )
    if consensus == CONSENSUS_HIGH and low_line and abs(avg_juice) <= ANCHOR_MAX_JUICE:
        return ROLE_ANCHOR

    return ROLE_SUPPORT
