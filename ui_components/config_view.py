import streamlit as st

from config import loader as config_manager
from prompts import force_reload_prompts

STEP_LABELS = {
    "drafter": "Soạn thảo văn bản",
    "title_summarizer": "Tạo tiêu đề",
    "refiner": "Chỉnh sửa qua trò chuyện",
}


def _delete_user_model(model_id: str):
    user_config = config_manager.load_user_config()
    if model_id in user_config.get("models", {}):
        del user_config["models"][model_id]
    # 删除模型时同时移除引用它的步骤分配，回落到默认配置
    steps = user_config.get("steps", {})
    for step in [s for s, m in steps.items() if m == model_id]:
        del steps[step]
    config_manager.save_user_config(user_config)


def _render_model_table(full_config: dict):
    current_models_config = full_config.get("models", {})
    if not current_models_config:
        st.info("Chưa có cấu hình mô hình nào.")
        return

    user_defined_model_ids = set(config_manager.load_user_config().get("models", {}).keys())

    cols = st.columns([1.5, 1.5, 2, 2, 0.7])
    cols[0].write("**ID**")
    cols[1].write("**Template**")
    cols[2].write("**Model**")
    cols[3].write("**API Key Env**")

    for model_id in sorted(current_models_config.keys()):
        details = current_models_config[model_id]
        row = st.columns([1.5, 1.5, 2, 2, 0.7])
        row[0].write(model_id)
        row[1].write(details.get("template", "N/A"))
        row[2].write(details.get("model", "N/A"))
        row[3].write(details.get("google_api_key_env") or details.get("api_key_env", "N/A"))

        if model_id in user_defined_model_ids:
            if row[4].button("Xóa", key=f"delete_model_{model_id}"):
                try:
                    _delete_user_model(model_id)
                    st.success(f"Đã xóa mô hình '{model_id}'.")
                    st.rerun()
                except Exception as e:
                    st.error(f"Xóa mô hình thất bại: {e}")


def _render_add_model_form(full_config: dict):
    templates = config_manager.load_provider_templates()
    template_names = list(templates.keys())
    if not template_names:
        st.warning("Không tìm thấy provider_templates.yaml.")
        return

    with st.form("add_new_model_form", clear_on_submit=True):
        new_model_id = st.text_input("ID mô hình mới (ví dụ: my_gpt4o)")
        selected_template = st.selectbox("Template", options=template_names)

        new_model_config = {"template": selected_template}
        for param_name, param_type in templates.get(selected_template, {}).get("params", {}).items():
            value = st.text_input(f"{param_name} ({param_type})", key=f"new_model_{param_name}")
            if value:
                new_model_config[param_name] = value

        if st.form_submit_button("Thêm mô hình"):
            if not new_model_id:
                st.error("ID mô hình không được để trống!")
            elif new_model_id in full_config.get("models", {}):
                st.error(f"ID '{new_model_id}' đã tồn tại.")
            elif not new_model_config.get("model"):
                st.error("Tham số 'model' không được để trống!")
            else:
                try:
                    user_config = config_manager.load_user_config()
                    user_config.setdefault("models", {})[new_model_id] = new_model_config
                    config_manager.save_user_config(user_config)
                    st.success(f"Đã thêm mô hình '{new_model_id}'.")
                    st.rerun()
                except Exception as e:
                    st.error(f"Lưu mô hình thất bại: {e}")


def _render_step_assignment(full_config: dict):
    available_model_ids = list(full_config.get("models", {}).keys())
    if not available_model_ids:
        st.info("Không có mô hình khả dụng để phân công.")
        return

    with st.form("step_assignment_form"):
        new_assignments = {}
        for step_name, assigned_model_id in full_config.get("steps", {}).items():
            try:
                default_index = available_model_ids.index(assigned_model_id)
            except ValueError:
                st.warning(f"Mô hình '{assigned_model_id}' của bước '{step_name}' không khả dụng.")
                default_index = 0
            new_assignments[step_name] = st.selectbox(
                STEP_LABELS.get(step_name, step_name),
                options=available_model_ids,
                index=default_index,
                key=f"step_assign_{step_name}",
            )

        if st.form_submit_button("Lưu phân công"):
            try:
                user_config = config_manager.load_user_config()
                user_config.setdefault("steps", {}).update(new_assignments)
                config_manager.save_user_config(user_config)
                st.success("Đã lưu phân công mô hình.")
                st.rerun()
            except Exception as e:
                st.error(f"Lưu phân công thất bại: {e}")


def render_config_view(full_config: dict):
    """模型配置页：查看 / 添加 / 删除模型，为各步骤分配模型，并可热重载提示词。"""
    st.header("⚙️ Cấu hình")
    st.subheader("Mô hình")
    _render_model_table(full_config)

    with st.expander("➕ Thêm mô hình mới"):
        _render_add_model_form(full_config)

    st.markdown("---")
    st.subheader("Phân công mô hình theo bước")
    _render_step_assignment(full_config)

    st.markdown("---")
    if st.button("🔄 Tải lại prompts.yaml"):
        force_reload_prompts()
        st.toast("✅ Đã tải lại prompt")
