"""
app.py — Propline Streamlit Entry Point

Single-page app driven by an explicit ViewModel (propline/view_state.py):
API_KEY_SETUP → GAMES_LIST → GAME_DETAIL. Each rerun dispatches on
model.state to one render() in views/.

Design principles:
- Dark terminal aesthetic: #0e1117 bg, amber accent (#f59e0b)
- st.html() for custom cards (not st.markdown — style tags sandboxed)
- Structural numbers only: consensus, lean, miss risk, parlay role

Run: streamlit run app.py
"""

import logging
import sys
from pathlib import Path

import streamlit as st

ROOT = Path(__file__).parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from propline.config import configure_logging, load_config  # noqa: E402
from propline.odds_client import quota  # noqa: E402
from propline.view_state import ViewState, initial_model  # noqa: E402
from views import api_key_setup, game_detail, games_list  # noqa: E402
from views.components import AMBER, GRAY, MODEL_KEY, get_model  # noqa: E402

# ---------------------------------------------------------------------------
# Config + logging
# ---------------------------------------------------------------------------
@st.cache_resource
def _init_logging(log_dir: str) -> None:
    """Once per process; basicConfig ignores repeat calls but handlers would leak."""
    configure_logging(log_dir)


config = load_config()
_init_logging(str(ROOT / config.log_dir))
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Page config — must be first Streamlit call
# ---------------------------------------------------------------------------
st.set_page_config(
    page_title="Propline",
    page_icon="🏀",
    layout="wide",
    initial_sidebar_state="expanded",
    menu_items={
        "Get Help": None,
        "Report a bug": None,
        "About": "Propline — NBA player-prop structure",
    },
)

if MODEL_KEY not in st.session_state:
    st.session_state[MODEL_KEY] = initial_model(
        config.odds_api_key, config.default_market, config.default_bookmaker
    )
    logger.info("Session started in %s", st.session_state[MODEL_KEY].state.value)

# ---------------------------------------------------------------------------
# Sidebar
# ---------------------------------------------------------------------------
with st.sidebar:
    st.html(f"""
    <div style="padding:8px 0 16px 0;">
        <div style="font-size:1.1rem; font-weight:800; color:{AMBER}; letter-spacing:0.1em;">
            PROPLINE
        </div>
        <div style="font-size:0.65rem; color:{GRAY}; margin-top:2px;">
            NBA player props · structure, not picks
        </div>
    </div>
    """)
    st.caption(quota.report())
    if quota.is_low():
        st.warning("Odds API quota is running low.")
    if not config.insights_enabled:
        st.caption("Insights disabled: set GEMINI_API_KEY to enable.")

# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------
model = get_model()
if model.state is ViewState.API_KEY_SETUP:
    api_key_setup.render()
elif model.state is ViewState.GAMES_LIST:
    games_list.render(config.request_timeout)
else:
    game_detail.render(config)
