"""
views/game_detail.py — player props for one game

Pipeline per rerun:
1. Discover player markets for the event (fallback: PLAYER_MARKETS)
2. Request the selected market through MarketFeed (cached per event/market,
   stale selections cancelled)
3. analyze_market() for the selected bookmaker
4. Render prop cards grouped by team, offers table, EMR chart, insights

Error handling:
- AuthError         → clear key, back to setup
- MarketUnavailable → "market unavailable" card, other markets still usable
- RateLimited / TransportError → error banner
"""

import logging
from concurrent.futures import TimeoutError as FutureTimeout

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from propline.config import AppConfig
from propline.emr import emr_breakdown
from propline.insights import build_structural_context, generate_insights
from propline.market_feed import MarketFeed
from propline.models import ROLES, PrimaryPlayerProp
from propline.normalizer import list_bookmakers
from propline.odds_client import (
    AuthError,
    MarketUnavailable,
    OddsApiError,
    discover_player_markets,
)
from propline.pipeline import MarketAnalysis, analyze_market, group_by_team
from propline.view_state import (
    back_to_games,
    clear_api_key,
    select_bookmaker,
    select_market,
)
from views.components import (
    AMBER,
    BORDER,
    CARD_BG,
    GRAY,
    LEVEL_COLORS,
    PLOTLY_BASE,
    ROLE_COLORS,
    badge,
    esc,
    fmt_line,
    fmt_price,
    get_model,
    market_label,
    no_data_card,
    section_header,
    set_model,
)

logger = logging.getLogger(__name__)

FEED_KEY = "market_feed"
INSIGHTS_KEY = "insights"


# ---------------------------------------------------------------------------
# Data access
# ---------------------------------------------------------------------------
@st.cache_data(ttl=300, show_spinner=False)
def _discover(api_key: str, event_id: str, timeout: float) -> list[str]:
    return discover_player_markets(api_key, event_id, timeout=timeout)


def _feed(api_key: str, timeout: float) -> MarketFeed:
    """One MarketFeed per session and key; replaced when the key changes."""
    feed = st.session_state.get(FEED_KEY)
    if feed is None or st.session_state.get(f"{FEED_KEY}_owner") != api_key:
        if feed is not None:
            feed.shutdown()
        feed = MarketFeed(api_key, timeout=timeout)
        st.session_state[FEED_KEY] = feed
        st.session_state[f"{FEED_KEY}_owner"] = api_key
    return feed


# ---------------------------------------------------------------------------
# Cards
# ---------------------------------------------------------------------------
def _prop_card(prop: PrimaryPlayerProp, analysis: MarketAnalysis, insight: str) -> str:
    offer = prop.offer_for(analysis.bookmaker_key)
    emr = analysis.emr_for(prop.player_name)
    role_color = ROLE_COLORS.get(prop.parlay_role, GRAY)
    level_color = LEVEL_COLORS.get(emr.level, GRAY)

    if offer is not None:
        odds_html = f"""
        <div style="display:flex; gap:14px;">
            <div><div style="font-size:0.6rem; color:{GRAY};">OVER</div>
                 <div style="font-weight:700; color:#e5e7eb;">{fmt_price(offer.over_price)}</div></div>
            <div><div style="font-size:0.6rem; color:{GRAY};">UNDER</div>
                 <div style="font-weight:700; color:#e5e7eb;">{fmt_price(offer.under_price)}</div></div>
        </div>"""
    else:
        odds_html = f'<div style="font-size:0.75rem; color:{GRAY};">no line</div>'

    lean_html = badge(prop.market_lean, AMBER) if prop.market_lean else badge("neutral", GRAY)
    notable_html = f'<span style="color:{AMBER}; margin-left:6px;">★</span>' if prop.is_notable else ""
    insight_html = (
        f'<div style="font-size:0.72rem; color:#9ca3af; margin-top:8px; '
        f'border-top:1px solid {BORDER}; padding-top:6px;">{esc(insight)}</div>'
        if insight else ""
    )

    return f"""
    <div style="
        background:{CARD_BG}; border:1px solid {BORDER};
        border-left:4px solid {role_color}; border-radius:8px;
        padding:12px 14px; margin-bottom:10px;
    ">
        <div style="display:flex; justify-content:space-between; align-items:flex-start;">
            <div>
                <div style="font-size:0.95rem; font-weight:700; color:#e5e7eb;">
                    {esc(prop.player_name)}{notable_html}
                </div>
                <div style="font-size:1.3rem; font-weight:800; color:#e5e7eb; margin-top:2px;">
                    {fmt_line(prop.line)}
                    <span style="font-size:0.65rem; color:{GRAY}; letter-spacing:0.08em;">
                        {esc(market_label(prop.market_key)).upper()}
                    </span>
                </div>
            </div>
            {odds_html}
        </div>
        <div style="margin-top:8px;">
            {badge(prop.parlay_role, role_color)}
            {badge(prop.consensus_strength + " consensus", GRAY)}
            {lean_html}
        </div>
        <div style="margin-top:8px; font-size:0.75rem;">
            <span style="font-weight:700; color:{level_color};">EMR {emr.value}%</span>
            <span style="color:{GRAY};"> · {esc(emr.level)}{' · hook' if emr.is_hook else ''}</span>
        </div>
        {insight_html}
    </div>
    """


# ---------------------------------------------------------------------------
# Tables and charts
# ---------------------------------------------------------------------------
def _offers_frame(analysis: MarketAnalysis) -> pd.DataFrame:
    rows = []
    for prop in analysis.props:
        for offer in prop.offers:
            rows.append({
                "Player": prop.player_name,
                "Line": fmt_line(prop.line),
                "Book": offer.bookmaker_title,
                "Over": fmt_price(offer.over_price),
                "Under": fmt_price(offer.under_price),
            })
    return pd.DataFrame(rows, columns=["Player", "Line", "Book", "Over", "Under"])


def _emr_math_frame(analysis: MarketAnalysis) -> pd.DataFrame:
    rows = []
    for prop in analysis.props:
        b = emr_breakdown(prop, analysis.bookmaker_key)
        rows.append({
            "Player": prop.player_name,
            "Price": fmt_price(b["odds"]),
            "Base": f"{b['base']:.3f}",
            "Hook": f"{b['hook']:+.2f}",
            "Spread": f"{b['disagreement']:+.2f}",
            "Role": f"{b['role']:+.2f}",
            "Raw": f"{b['raw']:.3f}",
            "Shrunk": f"{b['shrunk']:.3f}",
            "EMR": f"{analysis.emr_for(prop.player_name).value}%",
        })
    return pd.DataFrame(rows)


def _emr_chart(analysis: MarketAnalysis):
    if not analysis.props:
        return None
    ordered = sorted(analysis.props, key=lambda p: analysis.emr_for(p.player_name).value)
    values = [analysis.emr_for(p.player_name).value for p in ordered]
    colors = [ROLE_COLORS.get(p.parlay_role, GRAY) for p in ordered]

    fig = go.Figure()
    fig.add_trace(go.Bar(
        x=[p.player_name for p in ordered], y=values,
        marker_color=colors, opacity=0.85,
        hovertemplate="%{x}<br>EMR: %{y}%<extra></extra>",
    ))
    for y in (40, 55, 65):
        fig.add_hline(y=y, line_color=BORDER, line_width=1, line_dash="dot")

    layout = dict(PLOTLY_BASE)
    layout["title"] = dict(text="EMR by player (color = role)", font=dict(size=12, color="#9ca3af"), x=0)
    layout["height"] = 260
    layout["yaxis"] = dict(**PLOTLY_BASE["yaxis"], title="EMR %", range=[0, 90], ticksuffix="%")
    layout["showlegend"] = False
    fig.update_layout(**layout)
    return fig


# ---------------------------------------------------------------------------
# Page
# ---------------------------------------------------------------------------
def _header(model) -> None:
    back_col, title_col, out_col = st.columns([1, 5, 1])
    with back_col:
        if st.button("← Back", use_container_width=True):
            st.session_state[FEED_KEY].cancel_all()
            set_model(back_to_games(model))
    with title_col:
        st.html(f"""
        <div style="text-align:center; font-size:1.0rem; font-weight:800; color:#e5e7eb;">
            {esc(model.selected_game.away_team)}
            <span style="color:{GRAY};">@</span>
            {esc(model.selected_game.home_team)}
        </div>
        """)
    with out_col:
        if st.button("Log out", use_container_width=True):
            st.session_state[FEED_KEY].cancel_all()
            set_model(clear_api_key(model))


def _render_analysis(analysis: MarketAnalysis, config: AppConfig, event_id: str) -> None:
    if not analysis.props:
        no_data_card("No player props found for this market.")
        return

    insights_store = st.session_state.setdefault(INSIGHTS_KEY, {})
    insights = insights_store.get((event_id, analysis.market_key), {})

    k1, k2, k3, k4 = st.columns(4)
    k1.metric("Players", len(analysis.props))
    k2.metric("Books", len(analysis.bookmakers))
    k3.metric("Notable", len(analysis.notable_props))
    k4.metric("Notable parlay miss", f"{analysis.notable_parlay_miss_rate}%")

    if config.insights_enabled:
        if st.button("Generate insights", type="primary"):
            with st.spinner("Generating insights..."):
                result = generate_insights(
                    analysis.market_key,
                    build_structural_context(analysis.props),
                    config.gemini_api_key,
                    model=config.gemini_model,
                )
            if not result:
                st.warning("No insights returned.")
            insights_store[(event_id, analysis.market_key)] = {
                i.player_name: i.insight_text for i in result
            }
            st.rerun()

    for team, props in group_by_team(analysis.props).items():
        section_header(team, f"{len(props)} players")
        cols = st.columns(2)
        for i, prop in enumerate(props):
            with cols[i % 2]:
                st.html(_prop_card(prop, analysis, insights.get(prop.player_name, "")))

    section_header("Notable by role", "lowest EMR per role, hooks penalized")
    role_cols = st.columns(len(ROLES))
    for col, role in zip(role_cols, ROLES):
        picks = [p for p in analysis.notable_props if p.parlay_role == role]
        with col:
            st.markdown(f"**{role}**")
            if not picks:
                st.caption("none")
            for p in picks:
                st.caption(f"{p.player_name} {fmt_line(p.line)} · EMR {analysis.emr_for(p.player_name).value}%")

    fig = _emr_chart(analysis)
    if fig is not None:
        st.plotly_chart(fig, use_container_width=True, config={"displayModeBar": False})

    with st.expander("All offers"):
        st.dataframe(_offers_frame(analysis), use_container_width=True, hide_index=True)
    with st.expander("EMR math"):
        st.dataframe(_emr_math_frame(analysis), use_container_width=True, hide_index=True)


def render(config: AppConfig) -> None:
    model = get_model()
    game = model.selected_game
    feed = _feed(model.api_key, config.request_timeout)
    _header(model)

    try:
        markets = _discover(model.api_key, game.id, config.request_timeout)
    except AuthError:
        feed.cancel_all()
        set_model(clear_api_key(model, "Invalid API key. Enter a new one."))
        return

    market = model.selected_market if model.selected_market in markets else markets[0]
    chosen = st.radio(
        "Market", markets, index=markets.index(market),
        format_func=market_label, horizontal=True, label_visibility="collapsed",
    )
    if chosen != model.selected_market:
        model = select_market(model, chosen)
        set_model(model, rerun=False)

    try:
        with st.spinner("Fetching feed..."):
            odds = feed.request(game.id, model.selected_market).result(
                timeout=config.request_timeout + 5
            )
    except AuthError:
        feed.cancel_all()
        set_model(clear_api_key(model, "Invalid API key. Enter a new one."))
        return
    except MarketUnavailable:
        no_data_card(f"Market unavailable: {market_label(model.selected_market)}")
        return
    except OddsApiError as exc:
        logger.warning("Market fetch failed for %s/%s: %s", game.id, model.selected_market, exc)
        st.error(f"Odds fetch failed: {exc}")
        return
    except FutureTimeout:
        st.warning("Still fetching. Refresh in a moment.")
        return

    if odds is None:
        st.info("Selection changed while loading.")
        return

    books = list_bookmakers(odds)
    bookmakers = [key for key, _ in books]
    titles = dict(books)
    if not bookmakers:
        no_data_card("No bookmakers quote this market.")
        return
    book = model.selected_bookmaker if model.selected_bookmaker in bookmakers else bookmakers[0]
    chosen_book = st.selectbox(
        "Sportsbook", bookmakers, index=bookmakers.index(book),
        format_func=lambda k: titles.get(k, k),
    )
    if chosen_book != model.selected_bookmaker:
        model = select_bookmaker(model, chosen_book)
        set_model(model, rerun=False)

    analysis = analyze_market(odds, model.selected_market, model.selected_bookmaker)
    _render_analysis(analysis, config, game.id)


