"""Session state helpers for the Streamlit app."""

from __future__ import annotations

import streamlit as st

from decoders import build_default_decoder

from .session import SessionContext

UPLOAD_SCREEN = "upload"
VISUALIZATION_SCREEN = "visualization"


def bootstrap_state() -> SessionContext:
    """Ensure key session state entries exist."""

    if "context" not in st.session_state:
        st.session_state.context = SessionContext(build_default_decoder())
    if "screen" not in st.session_state:
        st.session_state.screen = UPLOAD_SCREEN
    if "selected_utility" not in st.session_state:
        st.session_state.selected_utility = None
    if "uploader_key" not in st.session_state:
        st.session_state.uploader_key = 0
    return st.session_state.context


def show_visualization(context: SessionContext) -> None:
    st.session_state.screen = VISUALIZATION_SCREEN
    st.session_state.selected_utility = context.default_utility


def start_new_session() -> None:
    """Clear the loaded table and return to the upload screen."""

    st.session_state.context.reset()
    st.session_state.screen = UPLOAD_SCREEN
    st.session_state.selected_utility = None
    # A fresh key empties the file uploader widget.
    st.session_state.uploader_key += 1
