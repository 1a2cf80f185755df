"""
views/components.py — shared Streamlit helpers

Palette, section headers, empty-state cards, and the session-held ViewModel.

Design:
- Dark terminal aesthetic, amber accent
- st.html() for cards (inline styles only)
"""

import html

import streamlit as st

from propline.models import (
    LEVEL_ELEVATED,
    LEVEL_HIGH,
    LEVEL_LOWER,
    LEVEL_MODERATE,
    ROLE_ANCHOR,
    ROLE_SUPPORT,
    ROLE_VOLATILE,
)
from propline.view_state import ViewModel

# ---------------------------------------------------------------------------
# Palette
# ---------------------------------------------------------------------------
AMBER = "#f59e0b"
GREEN = "#22c55e"
RED = "#ef4444"
GRAY = "#6b7280"
CARD_BG = "#1a1d23"
BORDER = "#2d3139"

ROLE_COLORS = {
    ROLE_ANCHOR: GREEN,
    ROLE_SUPPORT: AMBER,
    ROLE_VOLATILE: RED,
}
LEVEL_COLORS = {
    LEVEL_LOWER: GREEN,
    LEVEL_MODERATE: AMBER,
    LEVEL_ELEVATED: "#f97316",
    LEVEL_HIGH: RED,
}

PLOTLY_BASE = dict(
    paper_bgcolor="#0e1117",
    plot_bgcolor="#13161d",
    font=dict(color="#d1d5db", size=11, family="monospace"),
    margin=dict(l=50, r=20, t=40, b=50),
    xaxis=dict(gridcolor=BORDER, linecolor=BORDER, tickfont=dict(size=10)),
    yaxis=dict(gridcolor=BORDER, linecolor=BORDER, tickfont=dict(size=10)),
    hoverlabel=dict(bgcolor=CARD_BG, bordercolor=BORDER, font_color="#f3f4f6"),
)

MODEL_KEY = "view_model"


# ---------------------------------------------------------------------------
# View model in session state
# ---------------------------------------------------------------------------
def get_model() -> ViewModel:
    return st.session_state[MODEL_KEY]


def set_model(model: ViewModel, rerun: bool = True) -> None:
    st.session_state[MODEL_KEY] = model
    if rerun:
        st.rerun()


# ---------------------------------------------------------------------------
# HTML helpers
# ---------------------------------------------------------------------------
def esc(value) -> str:
    return html.escape(str(value)) if value is not None else ""


def fmt_price(price) -> str:
    """
    >>> fmt_price(120.0)
    '+120'
    >>> fmt_price(None)
    '—'
    """
    if price is None:
        return "—"
    value = int(round(price))
    return f"+{value}" if value > 0 else str(value)


def fmt_line(line: float) -> str:
    return f"{line:g}"


def market_label(market_key: str) -> str:
    """
    >>> market_label("player_points_rebounds")
    'Points Rebounds'
    """
    words = market_key.replace("player_", "").split("_")
    return " ".join(w.capitalize() for w in words)


def section_header(title: str, subtitle: str = "") -> None:
    sub_html = (
        f'<div style="font-size:0.72rem; color:{GRAY}; margin-top:2px;">{esc(subtitle)}</div>'
        if subtitle else ""
    )
    st.html(f"""
    <div style="margin-bottom:12px; margin-top:4px;">
        <span style="
            font-size:0.65rem; font-weight:700; letter-spacing:0.12em;
            color:{AMBER}; text-transform:uppercase;
        ">{esc(title)}</span>
        {sub_html}
    </div>
    """)


def no_data_card(msg: str) -> None:
    st.html(f"""
    <div style="
        background:{CARD_BG}; border:1px solid {BORDER}; border-radius:6px;
        padding:24px 20px; text-align:center; color:{GRAY}; font-size:0.82rem;
    ">
        <div style="font-size:1.3rem; margin-bottom:8px;">—</div>
        {esc(msg)}
    </div>
    """)


def badge(label: str, color: str) -> str:
    return f"""<span style="
        font-size:0.6rem; font-weight:700; letter-spacing:0.08em;
        color:{color}; border:1px solid {color}; border-radius:3px;
        padding:1px 5px; margin-right:4px;
    ">{esc(label).upper()}</span>"""
