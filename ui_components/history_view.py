import streamlit as st

from infra.utils.export import format_timestamp
from services.session_service import DraftingSession


def _on_view(session: DraftingSession, document_id: str, select_tab):
    if session.view_saved(document_id):
        select_tab("result")


def _on_delete(session: DraftingSession, document_id: str):
    session.delete_saved(document_id)


def render_history_view(session: DraftingSession, select_tab):
    """已保存文稿列表 (最近修改的排在最前)"""
    documents = session.history.documents
    if not documents:
        st.info("Chưa có văn bản nào trong lịch sử lưu trữ.")
        return

    disabled = session.is_busy
    for doc in documents:
        with st.container(border=True):
            c1, c2, c3 = st.columns([6, 1, 1])
            marker = "👉 " if doc.id == session.active_document_id else ""
            c1.markdown(f"**{marker}{doc.title}**")
            c1.caption(format_timestamp(doc.timestamp))
            c2.button(
                "👁️", key=f"view_{doc.id}", help="Xem",
                on_click=_on_view, args=(session, doc.id, select_tab), disabled=disabled,
            )
            c3.button(
                "🗑️", key=f"delete_{doc.id}", help="Xóa",
                on_click=_on_delete, args=(session, doc.id), disabled=disabled,
            )
