"""
聊天模型工厂
步骤别名 (drafter / title_summarizer / refiner) -> config.yaml 中的模型条目 -> provider_templates.yaml 中的模型类。
配置每次调用都重新读取，配置页的修改无需重启即可生效。
"""
import importlib
import logging
import os
from functools import lru_cache
from typing import NamedTuple

from config.loader import load_config, load_provider_templates
from core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PARAM_TYPES = ("secret_env", "url_env")
ENV_SUFFIX = "_env"


class ResolvedModel(NamedTuple):
    model_id: str
    settings: dict
    template: dict


@lru_cache(maxsize=1)
def get_provider_templates():
    """模板文件只随版本发布变化，进程内读取一次即可"""
    return load_provider_templates()


def _get_class_from_path(class_path: str):
    """'package.module.ClassName' -> 类对象"""
    module_path, _, class_name = class_path.rpartition(".")
    if not module_path:
        raise ConfigurationError(f"类路径 '{class_path}' 格式不正确，应为 'module.ClassName'。")
    try:
        return getattr(importlib.import_module(module_path), class_name)
    except (ImportError, AttributeError) as e:
        logger.error(f"导入模型类 '{class_path}' 失败: {e}", exc_info=True)
        raise ConfigurationError(f"无法导入模型类 '{class_path}'，请确认已安装对应的 langchain 集成包: {e}")


def _require(mapping: dict, key: str, message: str):
    value = (mapping or {}).get(key)
    if not value:
        raise ConfigurationError(message)
    return value


def resolve_model_config(alias: str, config: dict = None, templates: dict = None) -> ResolvedModel:
    """按 步骤 -> 模型 -> 模板 的顺序逐级查找，任何一级缺失都抛出 ConfigurationError"""
    config = config if config is not None else load_config()
    templates = templates if templates is not None else get_provider_templates()

    model_id = _require(config.get("steps"), alias, f"步骤 '{alias}' 没有分配模型 (config.yaml -> steps)。")
    settings = _require(config.get("models"), model_id, f"步骤 '{alias}' 引用的模型 '{model_id}' 未定义 (config.yaml -> models)。")
    template_id = _require(settings, "template", f"模型 '{model_id}' 缺少 'template' 字段。")
    template = _require(templates, template_id, f"模型 '{model_id}' 引用的模板 '{template_id}' 不存在于 provider_templates.yaml。")
    return ResolvedModel(model_id, settings, template)


def build_constructor_params(model_id: str, user_model_config: dict, provider_template: dict, temperature: float) -> dict:
    """
    模板中声明为 *_env 的参数，配置里写的是环境变量名：
    读取变量值并以去掉后缀的参数名传入 (google_api_key_env -> google_api_key)。
    """
    params = {"temperature": temperature}
    for name, kind in (provider_template.get("params") or {}).items():
        value = user_model_config.get(name)
        if value is None:
            continue
        if kind not in ENV_PARAM_TYPES:
            params[name] = value
            continue
        env_value = os.getenv(value)
        if not env_value:
            raise ConfigurationError(f"模型 '{model_id}' 需要环境变量 '{value}'，请在 .env 中设置。")
        params[name[:-len(ENV_SUFFIX)] if name.endswith(ENV_SUFFIX) else name] = env_value
    return params


def get_llm(alias: str, temperature: float = 0.7):
    """
    实例化某个步骤使用的 LangChain 聊天模型。

    Args:
        alias (str): 步骤别名。
        temperature (float): 采样温度；标题摘要使用较低的值。
    """
    resolved = resolve_model_config(alias)
    class_path = _require(resolved.template, "class", f"模型 '{resolved.model_id}' 的模板缺少 'class' 路径。")
    llm_class = _get_class_from_path(class_path)
    params = build_constructor_params(resolved.model_id, resolved.settings, resolved.template, temperature)

    logger.info(f"步骤 '{alias}' 使用模型 {resolved.model_id} ({llm_class.__name__})")
    try:
        return llm_class(**params)
    except Exception as e:
        redacted = {k: ("***" if "key" in k else v) for k, v in params.items()}
        logger.error(f"实例化模型 '{resolved.model_id}' 失败: {e} (参数: {redacted})", exc_info=True)
        raise ConfigurationError(f"Không thể khởi tạo mô hình '{resolved.model_id}': {e}") from e
