"""
tests/test_parlay_role.py — Propline
=====================================
Unit tests for propline/parlay_role.py.

Coverage:
  - Volatile: low consensus, high line, aggressive price
  - Anchor: high consensus, low line, juice within ANCHOR_MAX_JUICE
  - Support: everything else
  - Volatile precedence over Anchor
"""

import pytest

from propline.parlay_role import (
    ANCHOR_MAX_JUICE,
    evaluate_parlay_role,
    is_aggressive_price,
)


class TestAggressivePrice:
    @pytest.mark.parametrize("price,expected", [
        (-110, False),
        (120, False),
        (121, True),
        (-180, False),
        (-181, True),
    ])
    def test_bounds(self, price, expected):
        assert is_aggressive_price(price) is expected


class TestVolatile:
    def test_low_consensus_beats_anchor_shape(self):
        assert evaluate_parlay_role(12.5, "player_points", "Low", -115) == "Volatile"

    def test_high_points_line(self):
        assert evaluate_parlay_role(26.5, "player_points", "High", -110) == "Volatile"

    def test_points_line_at_threshold_not_volatile(self):
        assert evaluate_parlay_role(26, "player_points", "High", -110) == "Support"

    def test_high_other_line(self):
        assert evaluate_parlay_role(10.5, "player_rebounds", "High", -110) == "Volatile"

    def test_aggressive_plus_price(self):
        assert evaluate_parlay_role(3.5, "player_assists", "High", 130) == "Volatile"

    def test_aggressive_minus_price(self):
        assert evaluate_parlay_role(3.5, "player_assists", "High", -200) == "Volatile"


class TestAnchor:
    def test_points_anchor(self):
        assert evaluate_parlay_role(15.5, "player_points", "High", -120) == "Anchor"

    def test_other_market_anchor(self):
        assert evaluate_parlay_role(4.5, "player_rebounds", "High", -130) == "Anchor"

    def test_combo_points_market_uses_points_thresholds(self):
        assert evaluate_parlay_role(15.5, "player_points_rebounds", "High", -110) == "Anchor"

    def test_juice_ceiling_inclusive(self):
        assert evaluate_parlay_role(4.5, "player_rebounds", "High", -ANCHOR_MAX_JUICE) == "Anchor"

    def test_juice_above_ceiling_is_support(self):
        assert evaluate_parlay_role(4.5, "player_rebounds", "High", -160) == "Support"


class TestSupport:
    def test_medium_consensus_low_line(self):
        assert evaluate_parlay_role(12.5, "player_points", "Medium", -115) == "Support"

    def test_mid_points_line(self):
        assert evaluate_parlay_role(20.5, "player_points", "High", -115) == "Support"

    def test_other_line_between_thresholds(self):
        assert evaluate_parlay_role(7.5, "player_assists", "High", -110) == "Support"
