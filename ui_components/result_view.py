"""
结果视图：显示当前文稿 (加载中 / 错误 / 空状态 / 文稿)，并提供复制与下载。
"""
import streamlit as st

from infra.utils.export import strip_html, export_as_plain_text, export_as_markdown, safe_filename
from services.session_service import DraftingSession


def render_draft(container, text: str, streaming: bool = False):
    """在给定容器中渲染文稿；流式过程中末尾附加光标"""
    container.markdown(strip_html(text) + ("▌" if streaming else ""))


def render_result_view(session: DraftingSession, result_area):
    if session.is_loading and not session.draft:
        result_area.info("⏳ Đang tạo văn bản...")
        return

    if session.error:
        st.error(session.error)

    if not session.draft:
        if not session.error:
            result_area.info("Văn bản được tạo sẽ hiển thị ở đây. Hãy nhập thông tin và nhấn “Soạn thảo văn bản”.")
        return

    with result_area.container(border=True):
        st.markdown(strip_html(session.draft))

    document = session.history.get(session.active_document_id) if session.active_document_id else None
    title = document.title if document else session.client.untitled_title
    plain_text = export_as_plain_text(session.draft)

    with st.expander("📋 Sao chép kết quả"):
        st.code(plain_text, language=None, wrap_lines=True)

    c1, c2 = st.columns(2)
    c1.download_button(
        "⬇️ Tải về (.txt)", data=plain_text.encode("utf-8"),
        file_name=f"{safe_filename(title)}.txt", mime="text/plain", width='stretch',
    )
    c2.download_button(
        "⬇️ Tải về (.md)", data=export_as_markdown(title, session.draft).encode("utf-8"),
        file_name=f"{safe_filename(title)}.md", mime="text/markdown", width='stretch',
    )
