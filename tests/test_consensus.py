"""
tests/test_consensus.py — Propline
===================================
Unit tests for propline/consensus.py.

Coverage:
  - estimate_consensus(): empty, one-sided, MORE / LESS lean, averages
  - consensus_strength(): book-count tiers, juice alignment
  - ConsensusResult.favored_price: lean side, neutral fallbacks
"""

import pytest

from propline.consensus import ConsensusResult, consensus_strength, estimate_consensus
from propline.models import PlayerOffer


def _offer(book: str, over=None, under=None) -> PlayerOffer:
    return PlayerOffer(bookmaker=book, bookmaker_title=book.upper(), over_price=over, under_price=under)


class TestEstimateConsensus:
    def test_no_offers_is_low_neutral_baseline(self):
        result = estimate_consensus([])
        assert result.strength == "Low"
        assert result.lean is None
        assert result.avg_over_price == -110
        assert result.avg_under_price == -110
        assert result.favored_price == -110

    def test_single_book_low(self):
        result = estimate_consensus([_offer("dk", -120, 100)])
        assert result.strength == "Low"
        assert result.lean == "MORE"

    def test_two_books_medium(self):
        result = estimate_consensus([_offer("dk", -110, -110), _offer("fd", -115, -105)])
        assert result.strength == "Medium"

    def test_averages(self):
        result = estimate_consensus([_offer("dk", -110, -110), _offer("fd", -120, 100)])
        assert result.avg_over_price == pytest.approx(-115.0)
        assert result.avg_under_price == pytest.approx(-5.0)
        assert result.lean == "MORE"

    def test_less_lean_when_under_cheaper(self):
        result = estimate_consensus([_offer("dk", -105, -115)])
        assert result.lean == "LESS"
        assert result.favored_price == -115

    def test_equal_averages_lean_less(self):
        assert estimate_consensus([_offer("dk", -110, -110)]).lean == "LESS"

    def test_one_sided_data_has_no_lean(self):
        result = estimate_consensus([_offer("dk", over=-130), _offer("fd", over=-120)])
        assert result.lean is None
        assert result.avg_over_price == pytest.approx(-125.0)
        assert result.avg_under_price == -110
        # Neutral lean falls back to the priced side
        assert result.favored_price == pytest.approx(-125.0)

    def test_under_only_favored_price(self):
        result = estimate_consensus([_offer("dk", under=140)])
        assert result.lean is None
        assert result.favored_price == 140

    def test_three_books_aligned_high(self):
        offers = [_offer("dk", -120, 100), _offer("fd", -125, 102), _offer("mgm", -118, -102)]
        assert estimate_consensus(offers).strength == "High"

    def test_three_books_unaligned_medium(self):
        offers = [_offer("dk", -110, -110), _offer("fd", 105, -125), _offer("mgm", -115, 100)]
        assert estimate_consensus(offers).strength == "Medium"

    def test_book_count_includes_one_sided_offers(self):
        offers = [_offer("dk", -110, -110), _offer("fd", over=-115), _offer("mgm", under=-105)]
        # overs all favored → aligned
        assert estimate_consensus(offers).strength == "High"


class TestConsensusStrength:
    @pytest.mark.parametrize("count,expected", [(0, "Low"), (1, "Low"), (2, "Medium")])
    def test_count_tiers(self, count, expected):
        assert consensus_strength(count, [-200] * count, [150] * count) == expected

    def test_unders_all_favored_is_aligned(self):
        assert consensus_strength(3, [100, -110, 105], [-120, -110, -125]) == "High"

    def test_empty_side_not_aligned(self):
        assert consensus_strength(3, [], [100, 110, -105]) == "Medium"


class TestFavoredPrice:
    def test_more_uses_over(self):
        r = ConsensusResult("High", "MORE", -130, 110, 3, 3)
        assert r.favored_price == -130

    def test_neutral_without_quotes_is_baseline(self):
        r = ConsensusResult("Low", None, -110, -110)
        assert r.favored_price == -110
