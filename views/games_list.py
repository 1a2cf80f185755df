"""
views/games_list.py — upcoming NBA games

One card per event with local tip-off time. Selecting a game moves the view
model to GAME_DETAIL.

Events endpoint costs no quota; results cached for 60s per key.
"""

import logging
from datetime import datetime

import streamlit as st

from propline.models import Game
from propline.odds_client import AuthError, OddsApiError, fetch_events
from propline.view_state import clear_api_key, select_game
from views.components import (
    BORDER,
    CARD_BG,
    GRAY,
    esc,
    get_model,
    no_data_card,
    section_header,
    set_model,
)

logger = logging.getLogger(__name__)


@st.cache_data(ttl=60, show_spinner=False)
def _load_events(api_key: str, timeout: float) -> list[Game]:
    return fetch_events(api_key, timeout=timeout)


def _tipoff(commence_time: str) -> str:
    """ISO 8601 → 'Mon 19 Oct · 7:30 PM' in local time; raw string if unparseable."""
    try:
        dt = datetime.fromisoformat(commence_time.replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        return commence_time or "TBD"
    return dt.astimezone().strftime("%a %d %b · %I:%M %p")


def _game_card(game: Game) -> str:
    return f"""
    <div style="
        background:{CARD_BG}; border:1px solid {BORDER}; border-radius:8px;
        padding:12px 16px; margin-bottom:4px;
    ">
        <div style="font-size:0.6rem; color:{GRAY}; letter-spacing:0.1em;">
            {esc(_tipoff(game.commence_time))}
        </div>
        <div style="font-size:1.0rem; font-weight:700; color:#e5e7eb; margin-top:3px;">
            {esc(game.away_team)} <span style="color:{GRAY};">@</span> {esc(game.home_team)}
        </div>
    </div>
    """


def render(timeout: float) -> None:
    model = get_model()

    head_col, action_col = st.columns([5, 1])
    with head_col:
        section_header("Upcoming games", "NBA · select a game to inspect player props")
    with action_col:
        if st.button("Log out", use_container_width=True):
            set_model(clear_api_key(model))

    try:
        with st.spinner("Fetching events..."):
            games = _load_events(model.api_key, timeout)
    except AuthError:
        logger.warning("Events fetch rejected the API key")
        set_model(clear_api_key(model, "Invalid API key. Enter a new one."))
        return
    except OddsApiError as exc:
        st.error(f"Could not load games: {exc}")
        if st.button("Retry"):
            _load_events.clear()
            st.rerun()
        return

    if not games:
        no_data_card("No upcoming NBA games posted.")
        return

    for game in games:
        st.html(_game_card(game))
        if st.button("Open props →", key=f"open_{game.id}"):
            set_model(select_game(model, game))
