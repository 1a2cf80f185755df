"""
propline/view_state.py — Propline
==================================
Explicit view model for the Streamlit app:

    API_KEY_SETUP ──submit_api_key──▶ GAMES_LIST ──select_game──▶ GAME_DETAIL
          ▲                               ▲                            │
          └────────── clear_api_key ──────┴────── back_to_games ───────┘

Transitions are pure: each returns a new ViewModel. app.py keeps the current
model in st.session_state and dispatches on model.state.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from propline.config import DEFAULT_BOOKMAKER, DEFAULT_MARKET
from propline.models import Game


class ViewState(Enum):
    API_KEY_SETUP = "api_key_setup"
    GAMES_LIST = "games_list"
    GAME_DETAIL = "game_detail"


class InvalidTransition(Exception):
    """Transition not allowed from the current state."""


@dataclass(frozen=True)
class ViewModel:
    state: ViewState = ViewState.API_KEY_SETUP
    api_key: Optional[str] = None
    selected_game: Optional[Game] = None
    selected_market: str = DEFAULT_MARKET
    selected_bookmaker: str = DEFAULT_BOOKMAKER
    notice: str = ""


def initial_model(
    api_key: Optional[str] = None,
    market: str = DEFAULT_MARKET,
    bookmaker: str = DEFAULT_BOOKMAKER,
) -> ViewModel:
    """Start on the games list when a key is already configured."""
    if api_key:
        return ViewModel(
            state=ViewState.GAMES_LIST,
            api_key=api_key,
            selected_market=market,
            selected_bookmaker=bookmaker,
        )
    return ViewModel(selected_market=market, selected_bookmaker=bookmaker)


def _require(model: ViewModel, *states: ViewState) -> None:
    if model.state not in states:
        raise InvalidTransition(f"not allowed from {model.state.value}")


def submit_api_key(model: ViewModel, api_key: str) -> ViewModel:
    _require(model, ViewState.API_KEY_SETUP)
    key = (api_key or "").strip()
    if not key:
        raise ValueError("API key must not be blank")
    return replace(model, state=ViewState.GAMES_LIST, api_key=key, notice="")


def select_game(model: ViewModel, game: Game) -> ViewModel:
    _require(model, ViewState.GAMES_LIST)
    return replace(model, state=ViewState.GAME_DETAIL, selected_game=game, notice="")


def back_to_games(model: ViewModel) -> ViewModel:
    _require(model, ViewState.GAME_DETAIL)
    return replace(model, state=ViewState.GAMES_LIST, selected_game=None)


def clear_api_key(model: ViewModel, notice: str = "") -> ViewModel:
    """Forget the key from any state, e.g. after an AuthError."""
    return replace(
        model,
        state=ViewState.API_KEY_SETUP,
        api_key=None,
        selected_game=None,
        notice=notice,
    )


def select_market(model: ViewModel, market_key: str) -> ViewModel:
    _require(model, ViewState.GAME_DETAIL)
    return replace(model, selected_market=market_key)


def select_bookmaker(model: ViewModel, bookmaker_key: str) -> ViewModel:
    _require(model, ViewState.GAME_DETAIL)
    return replace(model, selected_bookmaker=bookmaker_key)
