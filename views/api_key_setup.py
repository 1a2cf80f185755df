"""
views/api_key_setup.py — API key entry

Shown when no Odds API key is configured, or after the provider rejected the
stored key (AuthError → clear_api_key transition).

The key lives only in the session's ViewModel. It is never written to disk.
"""

import streamlit as st

from propline.view_state import submit_api_key
from views.components import AMBER, GRAY, get_model, set_model


def render() -> None:
    model = get_model()

    st.html(f"""
    <div style="margin:40px 0 24px 0;">
        <div style="font-size:1.4rem; font-weight:800; color:{AMBER};">PROPLINE</div>
        <div style="font-size:0.8rem; color:{GRAY};">
            NBA player-prop structure: consensus, lean, miss risk, parlay role.
        </div>
    </div>
    """)

    if model.notice:
        st.error(model.notice)

    with st.form("api_key_form", clear_on_submit=True):
        key = st.text_input(
            "The Odds API key",
            type="password",
            help="Get a key at the-odds-api.com. Each market fetch costs 1 request.",
        )
        submitted = st.form_submit_button("Continue", type="primary")

    if submitted:
        try:
            new_model = submit_api_key(model, key)
        except ValueError as exc:
            st.warning(str(exc))
            return
        set_model(new_model)
