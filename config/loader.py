"""
配置加载器
config.yaml (随应用发布) + user_config.yaml (配置页写入的覆盖项) + provider_templates.yaml (模型类模板)。
"""
import logging
import os
import sys

import yaml

from core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def get_resource_path(relative_path: str) -> str:
    """相对于项目根目录 (或 PyInstaller 解包目录) 的资源路径"""
    base_path = getattr(sys, "_MEIPASS", None) or os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    return os.path.join(base_path, relative_path)


CONFIG_PATH = get_resource_path("config.yaml")
USER_CONFIG_PATH = get_resource_path("user_config.yaml")
PROVIDER_TEMPLATES_PATH = get_resource_path("provider_templates.yaml")

# 用户配置按键覆盖的段落；其余段落以 config.yaml 为准
MERGEABLE_SECTIONS = ("models", "steps", "app")

DEFAULT_APP_SETTINGS = {
    "history_file": "data/history/savedDocuments.json",
    "untitled_title": "Văn bản chưa có tiêu đề",
    "encoding_workers": 4,
}


def _read_yaml(path: str) -> dict:
    """读取 YAML 文件；空文件视为 {}，语法错误转换为 ConfigurationError"""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error(f"解析 {path} 失败: {e}", exc_info=True)
        raise ConfigurationError(f"Tệp cấu hình {os.path.basename(path)} không hợp lệ: {e}") from e
    return data or {}


def _read_optional_yaml(path: str) -> dict:
    if not os.path.exists(path):
        logger.debug(f"未找到 {path}，使用空配置。")
        return {}
    return _read_yaml(path)


def _merge_configs(base_config: dict, user_config: dict) -> dict:
    """逐段合并：user_config 中同名的模型 / 步骤 / 应用设置覆盖基础配置，基础配置本身不被修改"""
    merged = dict(base_config)
    for section in MERGEABLE_SECTIONS:
        if section not in user_config:
            continue
        combined = dict(base_config.get(section) or {})
        combined.update(user_config[section] or {})
        merged[section] = combined
    return merged


def load_user_config() -> dict:
    return _read_optional_yaml(USER_CONFIG_PATH)


def load_config() -> dict:
    """返回合并后的完整配置；缺少 config.yaml 时只包含默认应用设置"""
    if not os.path.exists(CONFIG_PATH):
        logger.warning(f"未找到 {CONFIG_PATH}，使用默认配置。")
        return {"models": {}, "steps": {}, "app": dict(DEFAULT_APP_SETTINGS)}
    return _merge_configs(_read_yaml(CONFIG_PATH), load_user_config())


def get_app_settings(config: dict = None) -> dict:
    """历史文件位置、兜底标题、附件编码并发数等应用级设置，缺失项取默认值"""
    config = config if config is not None else load_config()
    return {**DEFAULT_APP_SETTINGS, **(config.get("app") or {})}


def load_provider_templates() -> dict:
    templates = _read_optional_yaml(PROVIDER_TEMPLATES_PATH)
    if not templates:
        logger.warning(f"{PROVIDER_TEMPLATES_PATH} 中没有可用的模型模板。")
    return templates


def save_user_config(user_config_data: dict):
    """
    整体覆盖写入 user_config.yaml。

    Args:
        user_config_data (dict): 通常包含 models 与 steps 两段。
    """
    try:
        with open(USER_CONFIG_PATH, "w", encoding="utf-8") as f:
            yaml.safe_dump(user_config_data, f, allow_unicode=True, sort_keys=False)
    except OSError as e:
        logger.error(f"写入 {USER_CONFIG_PATH} 失败: {e}", exc_info=True)
        raise ConfigurationError(f"Không thể lưu cấu hình: {e}") from e
    logger.info(f"用户配置已保存: {USER_CONFIG_PATH}")
