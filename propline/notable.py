"""
propline/notable.py — Notable-Selection Ranker
===============================================
Picks up to NOTABLE_PER_ROLE "notable" props per parlay role.

Eligible: market lean present AND the selected book quotes both sides.
Stability: EMR value + 5 on a hook line (lower = more stable).
Per role: stable sort ascending by stability, keep the first two.

The notable flag is display metadata only; nothing downstream reads it.
"""

from dataclasses import replace
from typing import Optional

from propline.emr import calculate_emr
from propline.models import ROLES, PrimaryPlayerProp

NOTABLE_PER_ROLE: int = 2
HOOK_STABILITY_PENALTY: int = 5


def is_eligible(prop: PrimaryPlayerProp, bookmaker_key: str) -> bool:
    if prop.market_lean is None:
        return False
    offer = prop.offer_for(bookmaker_key)
    return offer is not None and offer.is_two_sided


def stability_score(prop: PrimaryPlayerProp, emr_value: int) -> int:
    return emr_value + (HOOK_STABILITY_PENALTY if prop.is_hook else 0)


def notable_selection(
    props: list[PrimaryPlayerProp],
    bookmaker_key: str,
    emr_lookup: Optional[dict] = None,
) -> dict[str, list[PrimaryPlayerProp]]:
    """
    Return {role: [props]} — at most NOTABLE_PER_ROLE per role, most stable first.

    Args:
        props:         Classified props for one market.
        bookmaker_key: Selected bookmaker.
        emr_lookup:    Optional {player_name: EMRResult} already computed for
                       this bookmaker; missing entries are computed here.
    """
    emr_lookup = emr_lookup or {}

    def _score(prop: PrimaryPlayerProp) -> int:
        emr = emr_lookup.get(prop.player_name) or calculate_emr(prop, bookmaker_key)
        return stability_score(prop, emr.value)

    eligible = [p for p in props if is_eligible(p, bookmaker_key)]
    selection: dict[str, list[PrimaryPlayerProp]] = {}
    for role in ROLES:
        group = [p for p in eligible if p.parlay_role == role]
        # sorted() is stable: ties keep input order
        selection[role] = sorted(group, key=_score)[:NOTABLE_PER_ROLE]
    return selection


def select_notable(
    props: list[PrimaryPlayerProp],
    bookmaker_key: str,
    emr_lookup: Optional[dict] = None,
) -> list[PrimaryPlayerProp]:
    """
    Return copies of props with is_notable set from the per-role selection.

    Input props are not mutated, so the ranker can be re-run on every
    bookmaker switch.
    """
    selection = notable_selection(props, bookmaker_key, emr_lookup)
    notable_names = {p.player_name for picks in selection.values() for p in picks}
    return [replace(p, is_notable=p.player_name in notable_names) for p in props]
