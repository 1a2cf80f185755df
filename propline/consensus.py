"""
propline/consensus.py — Consensus & Lean Estimator
===================================================
Aggregates the per-bookmaker offers on a player's primary line into:
- market lean: MORE / LESS (None = neutral or one-sided data)
- consensus strength: Low / Medium / High
- average over / under prices

Lower American odds = more favored side. avg_over < avg_under → MORE.

Rules:
  0 books → Low, no lean, averages at the -110 baseline
  1 book  → Low
  2 books → Medium
  3+      → High if juice-aligned, else Medium

Juice-aligned: every book quoting an over has it favored (< 0), or every book
quoting an under has it favored.
"""

from dataclasses import dataclass
from typing import Optional

from propline.models import (
    CONSENSUS_HIGH,
    CONSENSUS_LOW,
    CONSENSUS_MEDIUM,
    LEAN_LESS,
    LEAN_MORE,
    PlayerOffer,
)
from propline.odds_math import BASELINE_PRICE, mean


@dataclass(frozen=True)
class ConsensusResult:
    strength: str
    lean: Optional[str]
    avg_over_price: float
    avg_under_price: float
    over_quotes: int = 0
    under_quotes: int = 0

    @property
    def favored_price(self) -> float:
        """
        Average price of the side the market leans to.

        Neutral lean: whichever side is priced, else the -110 baseline.
        """
        if self.lean == LEAN_MORE:
            return self.avg_over_price
        if self.lean == LEAN_LESS:
            return self.avg_under_price
        if self.over_quotes:
            return self.avg_over_price
        if self.under_quotes:
            return self.avg_under_price
        return BASELINE_PRICE


def _juice_aligned(over_prices: list, under_prices: list) -> bool:
    overs_favored = bool(over_prices) and all(p < 0 for p in over_prices)
    unders_favored = bool(under_prices) and all(p < 0 for p in under_prices)
    return overs_favored or unders_favored


def consensus_strength(book_count: int, over_prices: list, under_prices: list) -> str:
    """
    >>> consensus_strength(1, [-110], [-110])
    'Low'
    >>> consensus_strength(2, [-110, -115], [-110, -105])
    'Medium'
    >>> consensus_strength(3, [-120, -125, -118], [100, 102, -102])
    'High'
    """
    if book_count < 2:
        return CONSENSUS_LOW
    if book_count == 2:
        return CONSENSUS_MEDIUM
    if _juice_aligned(over_prices, under_prices):
        return CONSENSUS_HIGH
    return CONSENSUS_MEDIUM


def estimate_consensus(offers: list[PlayerOffer]) -> ConsensusResult:
    """
    Compute lean, consensus strength and average prices for one primary line.

    Total over any offer list, including empty and one-sided ones.
    """
    book_count = len(offers)
    if book_count == 0:
        return ConsensusResult(CONSENSUS_LOW, None, BASELINE_PRICE, BASELINE_PRICE)

    over_prices = [o.over_price for o in offers if o.over_price is not None]
    under_prices = [o.under_price for o in offers if o.under_price is not None]

    avg_over = mean(over_prices)
    avg_under = mean(under_prices)

    lean: Optional[str] = None
    if avg_over is not None and avg_under is not None:
        lean = LEAN_MORE if avg_over < avg_under else LEAN_LESS

    return ConsensusResult(
        strength=consensus_strength(book_count, over_prices, under_prices),
        lean=lean,
        avg_over_price=avg_over if avg_over is not None else BASELINE_PRICE,
        avg_under_price=avg_under if avg_under is not None else BASELINE_PRICE,
        over_quotes=len(over_prices),
        under_quotes=len(under_prices),
    )
