"""
表单视图 (Form View)
根据 core.form_schema 中的字段声明渲染输入表单、附件上传区以及“清空 / 起草”按钮。
"""
import streamlit as st

from core.form_schema import FORM_FIELDS, FieldKind
from core.schemas import AttachmentFile, AttachmentGroup, FormData
from services.session_service import DraftingSession

PENDING_SUBMIT_KEY = "pending_submit"
UPLOADER_NONCE_KEY = "uploader_nonce"


def widget_key(field_name: str) -> str:
    return f"form_{field_name}"


def _uploader_key(group: AttachmentGroup) -> str:
    nonce = st.session_state.setdefault(UPLOADER_NONCE_KEY, {}).get(group.value, 0)
    return f"uploader_{group.value}_{nonce}"


def _bump_uploader(group: AttachmentGroup):
    """更换上传控件的 key 以清空其内部状态 (允许再次选择同一文件)"""
    nonces = st.session_state.setdefault(UPLOADER_NONCE_KEY, {})
    nonces[group.value] = nonces.get(group.value, 0) + 1


def sync_widgets_from_form(form: FormData):
    """把会话中的表单值写回各输入控件 (只能在回调中或控件渲染前调用)"""
    for spec in FORM_FIELDS:
        value = getattr(form, spec.name)
        if spec.kind == FieldKind.SELECT:
            st.session_state[widget_key(spec.name)] = value or None
        else:
            st.session_state[widget_key(spec.name)] = value


# --- 回调 ---

def _on_field_change(session: DraftingSession, field_name: str):
    session.update_field(field_name, st.session_state.get(widget_key(field_name)) or "")


def _on_upload(session: DraftingSession, group: AttachmentGroup, key: str):
    uploaded = st.session_state.get(key) or []
    if uploaded:
        session.add_attachments(group, [AttachmentFile.from_upload(f) for f in uploaded])
        _bump_uploader(group)


def _on_remove_file(session: DraftingSession, group: AttachmentGroup, file_name: str):
    session.remove_attachment(group, file_name)


def _on_clear(session: DraftingSession):
    session.clear()
    sync_widgets_from_form(session.form)
    for group in AttachmentGroup:
        _bump_uploader(group)


def _on_submit(session: DraftingSession, select_tab):
    # 点击时以控件中的最新值为准
    for spec in FORM_FIELDS:
        _on_field_change(session, spec.name)
    st.session_state[PENDING_SUBMIT_KEY] = True
    select_tab("result")


# --- 渲染 ---

def _render_attachments(session: DraftingSession, group: AttachmentGroup, disabled: bool):
    key = _uploader_key(group)
    st.file_uploader(
        "📎 Đính kèm files (.PDF, hình ảnh)",
        accept_multiple_files=True,
        key=key,
        on_change=_on_upload,
        args=(session, group, key),
        disabled=disabled,
    )
    for i, file in enumerate(session.attachments(group)):
        c1, c2 = st.columns([6, 1])
        c1.caption(f"📄 {file.name}")
        c2.button(
            "✖", key=f"remove_{group.value}_{i}_{file.name}",
            on_click=_on_remove_file, args=(session, group, file.name),
            disabled=disabled, help="Xóa tệp",
        )
    st.caption("AI sẽ phân tích nội dung từ các tệp hình ảnh và PDF được đính kèm.")


def render_form_view(session: DraftingSession, select_tab):
    """
    渲染左侧输入表单。

    Args:
        session (DraftingSession): 当前浏览器会话的起草状态。
        select_tab (callable): 切换右侧标签页的回调 (只能在回调上下文中使用)。
    """
    if widget_key(FORM_FIELDS[0].name) not in st.session_state:
        sync_widgets_from_form(session.form)

    pending = st.session_state.get(PENDING_SUBMIT_KEY, False)
    busy = pending or session.is_busy

    with st.container(border=True):
        st.subheader("Nhập dữ liệu")
        for spec in FORM_FIELDS:
            key = widget_key(spec.name)
            common = dict(key=key, on_change=_on_field_change, args=(session, spec.name))
            if spec.kind == FieldKind.SELECT:
                st.selectbox(spec.label, options=list(spec.options), placeholder=spec.placeholder, **common)
            elif spec.kind == FieldKind.TEXTAREA:
                st.text_area(spec.label, placeholder=spec.placeholder, height=max(68, spec.rows * 34), **common)
            else:
                st.text_input(spec.label, placeholder=spec.placeholder, **common)

            if spec.attachment_group is not None:
                _render_attachments(session, spec.attachment_group, disabled=busy)

        st.divider()
        c1, c2 = st.columns(2)
        c1.button("🗑️ Dữ liệu mới", on_click=_on_clear, args=(session,), disabled=busy, width='stretch')
        c2.button(
            "✨ Đang tạo..." if busy else "✨ Soạn thảo văn bản",
            type="primary", on_click=_on_submit, args=(session, select_tab),
            disabled=busy, width='stretch',
        )
