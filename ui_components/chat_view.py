"""
对话精修视图：折叠面板 + 对话记录 + 输入框。
精修流式过程中同时刷新对话占位框和右侧文稿区域。
"""
import streamlit as st

from services.session_service import DraftingSession
from ui_components.result_view import render_draft


def _on_toggle(session: DraftingSession):
    session.refinement.toggle(session.draft)


def render_chat_view(session: DraftingSession, result_area):
    loop = session.refinement
    enabled = loop.is_enabled(session.draft)

    st.button(
        ("🔽 " if loop.is_expanded else "▶️ ") + "Trò chuyện để chỉnh sửa văn bản",
        on_click=_on_toggle, args=(session,), disabled=not enabled, width='stretch',
    )
    if not enabled:
        st.caption("Hãy tạo hoặc mở một văn bản để bắt đầu trò chuyện.")
        return
    if not loop.is_expanded:
        return

    with st.container(border=True, height=420):
        for message in loop.transcript:
            with st.chat_message("user" if message.is_user else "assistant"):
                st.markdown(message.text)
        reply_area = st.empty()

    prompt = st.chat_input(
        "Nhập yêu cầu chỉnh sửa...",
        key=f"chat_input_{session.chat_session_id}",
        disabled=session.is_busy,
    )
    if not prompt:
        return

    with reply_area.container():
        with st.chat_message("user"):
            st.markdown(prompt)
        with st.chat_message("assistant"):
            reply_placeholder = st.empty()
            reply_placeholder.markdown("▌")

    def on_chunk(response: str):
        reply_placeholder.markdown(response + "▌")
        render_draft(result_area, response, streaming=True)

    with st.spinner("Đang chỉnh sửa..."):
        result = session.send_refinement(prompt, on_chunk=on_chunk)
    if result.error:
        st.toast(f"⚠️ {result.error}")
    st.rerun()
