"""
propline/normalizer.py — Odds Normalizer
=========================================
Consolidates a raw event-odds payload (one market, many bookmakers) into one
PrimaryPlayerProp per player.

Steps:
1. Every (bookmaker, market, outcome) triple → key (player, market), line.
2. Group by key, then by exact line value (no rounding or binning).
3. Same-bookmaker Over/Under at the same line merge into one PlayerOffer;
   a repeated side takes the later price, unpriced outcomes fill nothing.
4. Primary line = line with the most two-sided offers.
   Ties → lowest line value (deterministic regardless of provider order).
5. Emit props sorted by player name.

Pure function of its input. An empty payload yields an empty list.
"""

import logging
from typing import Union

from propline.models import (
    UNKNOWN_PLAYER,
    OddsResponse,
    PlayerOffer,
    PrimaryPlayerProp,
)

logger = logging.getLogger(__name__)


def _coerce(odds: Union[OddsResponse, dict, None]) -> OddsResponse:
    if odds is None:
        return OddsResponse(id="")
    if isinstance(odds, OddsResponse):
        return odds
    return OddsResponse.from_dict(odds)


def _two_sided_count(offers: dict) -> int:
    return sum(1 for o in offers.values() if o.is_two_sided)


def select_primary_line(lines: dict) -> float:
    """
    Pick the line with the most fully two-sided bookmakers.

    Args:
        lines: {line: {bookmaker_key: PlayerOffer}} for one player/market.

    Returns:
        The chosen line. Ties go to the lowest line value.

    >>> a = PlayerOffer("dk", "DK", -110, -110)
    >>> b = PlayerOffer("fd", "FD", -115, None)
    >>> select_primary_line({22.0: {"fd": b}, 24.5: {"dk": a}})
    24.5
    """
    return min(lines, key=lambda line: (-_two_sided_count(lines[line]), line))


def normalize_player_props(
    odds: Union[OddsResponse, dict, None],
    market_key: str,
) -> list[PrimaryPlayerProp]:
    """
    Build the primary-line prop list for one market.

    Args:
        odds:       OddsResponse (or raw Odds API dict) for one event.
        market_key: Requested market, e.g. "player_points". Markets with any
                    other key in the payload are ignored.

    Returns:
        One PrimaryPlayerProp per player, sorted by player name (case-sensitive).
        consensus/role/lean are left at their defaults for later stages.
    """
    payload = _coerce(odds)

    # {(player, market): {line: {bookmaker_key: PlayerOffer}}}
    grouped: dict[tuple, dict] = {}
    teams: dict[tuple, str] = {}

    for book in payload.bookmakers:
        for market in book.markets:
            if market.key != market_key:
                continue
            for outcome in market.outcomes:
                player = outcome.description or UNKNOWN_PLAYER
                line = outcome.point if outcome.point is not None else 0.0
                key = (player, market.key)

                if outcome.team and key not in teams:
                    teams[key] = outcome.team

                by_book = grouped.setdefault(key, {}).setdefault(line, {})
                offer = by_book.get(book.key)
                if offer is None:
                    offer = PlayerOffer(bookmaker=book.key, bookmaker_title=book.title)
                    by_book[book.key] = offer

                # An unpriced outcome leaves its side empty; a later quote on
                # the same side replaces the earlier one
                if outcome.price is None:
                    continue
                if outcome.name == "Over":
                    offer.over_price = outcome.price
                elif outcome.name == "Under":
                    offer.under_price = outcome.price

    props: list[PrimaryPlayerProp] = []
    for (player, mkt), lines in grouped.items():
        primary = select_primary_line(lines)
        props.append(PrimaryPlayerProp(
            player_name=player,
            market_key=mkt,
            line=primary,
            team=teams.get((player, mkt)),
            offers=list(lines[primary].values()),
        ))

    props.sort(key=lambda p: p.player_name)
    logger.debug(
        "Normalized %s: %d bookmakers -> %d props",
        market_key, len(payload.bookmakers), len(props),
    )
    return props


def list_bookmakers(odds: Union[OddsResponse, dict, None]) -> list[tuple[str, str]]:
    """
    Return (key, title) for each bookmaker in provider order, deduplicated.

    >>> list_bookmakers({"id": "e", "bookmakers": [{"key": "dk", "title": "DraftKings"}]})
    [('dk', 'DraftKings')]
    """
    seen: set = set()
    books: list[tuple[str, str]] = []
    for book in _coerce(odds).bookmakers:
        if not book.key or book.key in seen:
            continue
        seen.add(book.key)
        books.append((book.key, book.title))
    return books
