from __future__ import annotations

import logging

import streamlit as st

from waterfall.data_loader import records_to_frame
from waterfall.errors import IngestError
from waterfall.flow_format import NO_ROWS_MESSAGE
from waterfall.sankey import build_sankey_figure
from waterfall.session import SELECT_PROMPT, SessionContext
from waterfall.settings import AppSettings, load_app_settings
from waterfall.state import (
    VISUALIZATION_SCREEN,
    bootstrap_state,
    show_visualization,
    start_new_session,
)
from waterfall.theme import apply_page_style


def _render_upload_screen(context: SessionContext, settings: AppSettings) -> None:
    st.markdown('<div class="upload-card">', unsafe_allow_html=True)
    st.subheader("Upload farm data")
    st.caption("CSV or Excel with the columns Utility, Source, Target and Value.")
    upload = st.file_uploader(
        "Choose a file",
        type=list(settings.upload_types),
        key=f"file-input-{st.session_state.uploader_key}",
    )
    st.markdown("</div>", unsafe_allow_html=True)
    if upload is None:
        return
    try:
        context.load(upload.name, upload.getvalue())
    except IngestError as exc:
        st.error(exc.message)
        return
    show_visualization(context)
    st.rerun()


def _render_visualization_screen(context: SessionContext, settings: AppSettings) -> None:
    header, action = st.columns([4, 1])
    with action:
        st.button("Start new session", on_click=start_new_session, use_container_width=True)

    options = list(context.utilities)
    current = st.session_state.selected_utility
    with header:
        selected = st.selectbox(
            "Utility",
            options=options,
            index=options.index(current) if current in options else None,
            placeholder="-- Select a Utility --",
        )
    st.session_state.selected_utility = selected

    flow_text = context.render(selected)
    if flow_text in (SELECT_PROMPT, NO_ROWS_MESSAGE):
        st.info(flow_text)
        return

    st.markdown(
        '<span class="legend-chip revenue">Revenue</span>'
        '<span class="legend-chip loss">Loss</span>',
        unsafe_allow_html=True,
    )
    fig = build_sankey_figure(flow_text, title=selected, height=settings.chart_height)
    st.plotly_chart(fig, use_container_width=True, config={"displaylogo": False})

    with st.expander("SankeyMATIC input", expanded=False):
        st.code(flow_text, language="text")
        st.download_button(
            "Download flows",
            data=flow_text,
            file_name=f"{selected}.txt",
            mime="text/plain",
        )

    if settings.preview_rows:
        st.subheader("Uploaded rows")
        preview = records_to_frame(r for r in context.table if r.utility == selected)
        st.dataframe(preview.head(settings.preview_rows), use_container_width=True)


def main() -> None:
    settings = load_app_settings()
    logging.basicConfig(level=settings.log_level)
    st.set_page_config(page_title=settings.page_title, layout="wide")
    context = bootstrap_state()

    apply_page_style(settings.theme_mode)

    st.title(settings.page_title)
    if st.session_state.screen == VISUALIZATION_SCREEN and context.has_data:
        _render_visualization_screen(context, settings)
    else:
        _render_upload_screen(context, settings)


if __name__ == "__main__":
    main()
