import streamlit as st
import logging

from config import load_environment
from config import loader as config_manager
from core import logger as logger_config
from core.exceptions import ConfigurationError
from core.schemas import ActiveTab
from infra.storage.history_repository import JsonHistoryRepository
from services.generation_client import GenerationClient
from services.history_service import HistoryStore
from services.session_service import DraftingSession

# 引入 UI 组件
from ui_components.form_view import render_form_view, PENDING_SUBMIT_KEY
from ui_components.result_view import render_result_view, render_draft
from ui_components.history_view import render_history_view
from ui_components.chat_view import render_chat_view
from ui_components.config_view import render_config_view
from ui_components.guide_view import show_guide

# --- 初始化 ---
load_environment()
logger_config.setup_logging()
app_logger = logging.getLogger(__name__)

st.set_page_config(page_title="Trợ lý soạn thảo văn bản", page_icon="📝", layout="wide")

SESSION_KEY = "drafting_session"
TAB_WIDGET_KEY = "active_tab_radio"
TAB_LABELS = {ActiveTab.RESULT.value: "📄 Văn bản", ActiveTab.SAVED.value: "🗂️ Lịch sử lưu trữ"}


def get_session(full_config: dict) -> DraftingSession:
    """每个浏览器会话创建一次起草会话，并从磁盘恢复历史记录"""
    if SESSION_KEY not in st.session_state:
        settings = config_manager.get_app_settings(full_config)
        history = HistoryStore(JsonHistoryRepository(settings["history_file"])).hydrate()
        client = GenerationClient(untitled_title=settings["untitled_title"])
        st.session_state[SESSION_KEY] = DraftingSession(
            client, history, max_workers=settings["encoding_workers"]
        )
        app_logger.info(f"新会话已创建，载入历史文稿 {len(history)} 篇。")
    return st.session_state[SESSION_KEY]


def make_tab_selector(session: DraftingSession):
    """返回供回调使用的标签页切换函数 (同时更新会话状态与单选控件)"""
    def select_tab(tab: str):
        session.active_tab = ActiveTab(tab)
        st.session_state[TAB_WIDGET_KEY] = session.active_tab.value
    return select_tab


def _on_tab_change(session: DraftingSession):
    session.active_tab = ActiveTab(st.session_state[TAB_WIDGET_KEY])


def run_pending_submit(session: DraftingSession, result_area):
    """执行由“Soạn thảo”按钮挂起的生成请求，流式刷新结果区域"""
    st.session_state.pop(PENDING_SUBMIT_KEY, None)
    result_area.info("⏳ Đang tạo văn bản...")

    def stream_callback(chunk, draft):
        render_draft(result_area, draft, streaming=True)

    with st.spinner("Đang soạn thảo..."):
        document = session.submit(on_chunk=stream_callback)
    if document:
        st.toast(f"✅ Đã lưu: {document.title}")
    st.rerun()


def render_header():
    c1, c2 = st.columns([5, 1])
    c1.title("📝 Trợ lý soạn thảo văn bản hành chính")
    if c2.button("❓ Hướng dẫn", width='stretch'):
        show_guide()


def render_workspace(session: DraftingSession):
    select_tab = make_tab_selector(session)

    left, right = st.columns([2, 3], gap="large")

    # 右侧结果区先占位，以便左侧精修对话流式刷新文稿
    with right:
        st.session_state[TAB_WIDGET_KEY] = session.active_tab.value
        st.radio(
            "tab", options=list(TAB_LABELS.keys()), format_func=TAB_LABELS.get,
            key=TAB_WIDGET_KEY, horizontal=True, label_visibility="collapsed",
            on_change=_on_tab_change, args=(session,),
        )
        result_area = st.empty()

    with left:
        render_form_view(session, select_tab)
        render_chat_view(session, result_area)

    with right:
        if st.session_state.get(PENDING_SUBMIT_KEY):
            run_pending_submit(session, result_area)
        elif session.active_tab == ActiveTab.RESULT:
            render_result_view(session, result_area)
        else:
            with result_area.container():
                render_history_view(session, select_tab)


def main():
    try:
        full_config = config_manager.load_config()
        session = get_session(full_config)
    except ConfigurationError as e:
        st.error(f"Lỗi cấu hình: {e}")
        app_logger.error(f"配置加载失败: {e}", exc_info=True)
        return

    with st.sidebar:
        render_config_view(full_config)

    render_header()
    render_workspace(session)


if __name__ == "__main__":
    main()
