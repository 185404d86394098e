"""Page styling for the upload card and the flow legend."""

from __future__ import annotations

import streamlit as st

from .flow_format import LOSS_COLOR, REVENUE_COLOR

# (card background, card border) per display mode
CARD_COLORS = {
    "light": ("#ffffff", "#e2e8f0"),
    "dark": ("#111c2e", "#1e293b"),
}


def page_css(mode: str) -> str:
    surface, border = CARD_COLORS.get(mode, CARD_COLORS["light"])
    return f"""
<style>
.upload-card {{ background-color: {surface}; border: 1px solid {border}; border-radius: 18px; padding: 2rem; }}
.legend-chip {{ display: inline-block; border-radius: 999px; padding: 0.1rem 0.7rem; margin-right: 0.4rem; color: #ffffff; }}
.legend-chip.revenue {{ background-color: {REVENUE_COLOR}; }}
.legend-chip.loss {{ background-color: {LOSS_COLOR}; }}
</style>
"""


def apply_page_style(mode: str) -> None:
    st.markdown(page_css(mode), unsafe_allow_html=True)
