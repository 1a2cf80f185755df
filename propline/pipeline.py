"""
propline/pipeline.py — Prop analysis pipeline
==============================================
Runs the full chain for one (event, market, bookmaker) selection:

  raw odds → normalize → consensus/lean → parlay role → EMR → notable

Pure and idempotent: the UI re-runs analyze_market() on every change of
payload, market or bookmaker. No API calls, no UI, no file I/O.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Union

from propline.consensus import estimate_consensus
from propline.emr import calculate_emr, calculate_parlay_miss_rate
from propline.models import EMRResult, OddsResponse, PrimaryPlayerProp
from propline.normalizer import list_bookmakers, normalize_player_props
from propline.notable import select_notable
from propline.parlay_role import evaluate_parlay_role

logger = logging.getLogger(__name__)

UNKNOWN_TEAM: str = "Unknown Team"


@dataclass
class MarketAnalysis:
    """Everything the game-detail view renders for one market."""
    market_key: str
    bookmaker_key: str
    props: list = field(default_factory=list)        # list[PrimaryPlayerProp]
    emr: dict = field(default_factory=dict)          # player_name → EMRResult
    bookmakers: list = field(default_factory=list)   # [(key, title)]

    @property
    def notable_props(self) -> list[PrimaryPlayerProp]:
        return [p for p in self.props if p.is_notable]

    @property
    def notable_parlay_miss_rate(self) -> int:
        """Combined miss rate if every notable prop were one parlay."""
        return calculate_parlay_miss_rate(
            [self.emr[p.player_name].value for p in self.notable_props]
        )

    def emr_for(self, player_name: str) -> EMRResult:
        return self.emr[player_name]


def classify_props(props: list[PrimaryPlayerProp]) -> list[PrimaryPlayerProp]:
    """Attach consensus strength, market lean and parlay role to each prop."""
    classified: list[PrimaryPlayerProp] = []
    for prop in props:
        consensus = estimate_consensus(prop.offers)
        role = evaluate_parlay_role(
            prop.line, prop.market_key, consensus.strength, consensus.favored_price,
        )
        classified.append(replace(
            prop,
            consensus_strength=consensus.strength,
            market_lean=consensus.lean,
            parlay_role=role,
        ))
    return classified


def analyze_market(
    odds: Union[OddsResponse, dict, None],
    market_key: str,
    bookmaker_key: str,
) -> MarketAnalysis:
    """
    Full pipeline for one market at one bookmaker.

    Args:
        odds:          Event odds payload (OddsResponse or raw dict). None → empty.
        market_key:    e.g. "player_points".
        bookmaker_key: Book whose prices drive EMR and notable eligibility.

    Returns:
        MarketAnalysis with props sorted by player name.
    """
    props = classify_props(normalize_player_props(odds, market_key))
    emr = {p.player_name: calculate_emr(p, bookmaker_key) for p in props}
    props = select_notable(props, bookmaker_key, emr)

    logger.debug(
        "analyze_market %s @ %s: %d props, %d notable",
        market_key, bookmaker_key, len(props), sum(1 for p in props if p.is_notable),
    )
    return MarketAnalysis(
        market_key=market_key,
        bookmaker_key=bookmaker_key,
        props=props,
        emr=emr,
        bookmakers=list_bookmakers(odds),
    )


def group_by_team(props: list[PrimaryPlayerProp]) -> dict[str, list[PrimaryPlayerProp]]:
    """
    Group props by team, teams in first-seen order, props keep input order.

    Props without a team land under UNKNOWN_TEAM, always last.
    """
    groups: dict[str, list[PrimaryPlayerProp]] = {}
    unknown: list[PrimaryPlayerProp] = []
    for prop in props:
        if prop.team:
            groups.setdefault(prop.team, []).append(prop)
        else:
            unknown.append(prop)
    if unknown:
        groups[UNKNOWN_TEAM] = unknown
    return groups
