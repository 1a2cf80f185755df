"""
propline/odds_math.py — Propline
=================================
Small odds helpers shared by the pipeline. No API calls, no UI, no file I/O.
"""

import math
from typing import Optional

BASELINE_PRICE: int = -110   # neutral two-way price, 52.4% implied


def implied_probability(american_odds: float) -> float:
    """
    Convert American odds to raw (vig-inclusive) implied probability.

    Formula:
        Negative (favourite): |odds| / (|odds| + 100)
        Positive (underdog):  100 / (odds + 100)

    >>> round(implied_probability(-110), 4)
    0.5238
    >>> round(implied_probability(110), 4)
    0.4762
    """
    if american_odds < 0:
        return abs(american_odds) / (abs(american_odds) + 100)
    else:
        return 100 / (american_odds + 100)


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer, .5 away from negative infinity.

    Python's round() is banker's rounding; displayed percentages use the
    schoolbook rule.

    >>> round_half_up(52.5)
    53
    >>> round_half_up(-0.5)
    0
    """
    return int(math.floor(value + 0.5))


def mean(values: list) -> Optional[float]:
    """
    >>> mean([]) is None
    True
    >>> mean([-110, -120])
    -115.0
    """
    if not values:
        return None
    return sum(values) / len(values)


def clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)
