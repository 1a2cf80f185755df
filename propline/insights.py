"""
propline/insights.py — Propline
================================
Optional LLM augmentation: one short structural note per player.

The model sees only structural context (line, lean, consensus, role, offers).
EMR values and miss-risk labels are not part of the context, so the text
does not restate computed numbers.

Transport: Gemini generateContent REST endpoint via requests, JSON response
schema. Any failure (no key, HTTP error, bad JSON) is logged and returns [].
This module never raises into the UI.
"""

import json
import logging
from dataclasses import dataclass
from typing import Optional

import requests

from propline.models import PrimaryPlayerProp

logger = logging.getLogger(__name__)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"
DEFAULT_MODEL = "gemini-2.0-flash"
INSIGHT_TIMEOUT = 30.0
MAX_INSIGHT_WORDS = 20

RESPONSE_SCHEMA: dict = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "playerName": {"type": "STRING"},
            "insight": {"type": "STRING"},
        },
        "required": ["playerName", "insight"],
    },
}


@dataclass(frozen=True)
class Insight:
    player_name: str
    insight_text: str


# ---------------------------------------------------------------------------
# Context
# ---------------------------------------------------------------------------

def build_structural_context(props: list[PrimaryPlayerProp]) -> list[dict]:
    """
    Per-player structural context for the prompt.

    Keys: player_name, team, line, market_lean, consensus_strength,
    parlay_role, offers. No EMR fields.
    """
    context: list[dict] = []
    for prop in props:
        context.append({
            "player_name": prop.player_name,
            "team": prop.team,
            "line": prop.line,
            "market_lean": prop.market_lean,
            "consensus_strength": prop.consensus_strength,
            "parlay_role": prop.parlay_role,
            "offers": [
                {
                    "bookmaker": o.bookmaker_title or o.bookmaker,
                    "over": o.over_price,
                    "under": o.under_price,
                }
                for o in prop.offers
            ],
        })
    return context


def build_prompt(market_key: str, context: list[dict]) -> str:
    market_label = market_key.replace("player_", "").replace("_", " ")
    return (
        "You are an NBA player-prop market analyst. "
        f"Market: {market_label}.\n"
        "For each player below, write one neutral sentence "
        f"(max {MAX_INSIGHT_WORDS} words) describing the market structure: "
        "how books agree, which side the pricing leans to, and what the "
        "parlay role implies. Do not give picks, probabilities or percentages.\n\n"
        f"Data: {json.dumps(context, separators=(',', ':'))}"
    )


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------

def _extract_text(payload: dict) -> str:
    candidates = payload.get("candidates") or []
    if not candidates or not isinstance(candidates[0], dict):
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(p.get("text", "") for p in parts if isinstance(p, dict)).strip()


def parse_insights(text: str, known_players: Optional[set] = None) -> list[Insight]:
    """
    Parse the model's JSON array into Insight objects.

    Rows missing a name or text are skipped; names not in known_players
    (when given) are dropped. Malformed JSON → [].

    >>> parse_insights('[{"playerName": "A", "insight": "Books agree."}]')
    [Insight(player_name='A', insight_text='Books agree.')]
    >>> parse_insights("not json")
    []
    """
    try:
        rows = json.loads(text or "[]")
    except ValueError:
        logger.warning("Insight response was not valid JSON")
        return []
    if not isinstance(rows, list):
        return []

    insights: list[Insight] = []
    for row in rows:
        if not isinstance(row, dict):
            continue
        name = str(row.get("playerName", "")).strip()
        body = str(row.get("insight", "")).strip()
        if not name or not body:
            continue
        if known_players is not None and name not in known_players:
            continue
        insights.append(Insight(player_name=name, insight_text=body))
    return insights


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------

def generate_insights(
    market_key: str,
    context: list[dict],
    api_key: Optional[str],
    model: str = DEFAULT_MODEL,
    session=None,
    timeout: float = INSIGHT_TIMEOUT,
) -> list[Insight]:
    """
    Ask the LLM for one structural note per player in context.

    Returns [] when there is no key, no context, or any request/parse failure.
    """
    if not api_key:
        logger.info("No GEMINI_API_KEY configured; skipping insights")
        return []
    if not context:
        return []

    url = f"{GEMINI_BASE_URL}/{model}:generateContent"
    body = {
        "contents": [{"parts": [{"text": build_prompt(market_key, context)}]}],
        "generationConfig": {
            "responseMimeType": "application/json",
            "responseSchema": RESPONSE_SCHEMA,
        },
    }
    headers = {"x-goog-api-key": api_key, "Content-Type": "application/json"}
    requester = session or requests

    try:
        response = requester.post(url, headers=headers, json=body, timeout=timeout)
    except requests.exceptions.RequestException as exc:
        logger.error("Insight request failed: %s", type(exc).__name__)
        return []

    if response.status_code != 200:
        logger.error("Insight request HTTP %d for model %s", response.status_code, model)
        return []

    try:
        payload = response.json()
    except ValueError:
        logger.error("Insight response body was not JSON")
        return []
    if not isinstance(payload, dict):
        return []

    known = {row["player_name"] for row in context}
    insights = parse_insights(_extract_text(payload), known)
    logger.info("Generated %d insights for %s", len(insights), market_key)
    return insights
