"""
提示词管理
config/prompts.yaml 是起草、标题与精修三类提示词的唯一来源；文件修改后按 mtime 自动重新读取。
"""
import logging
import os
from typing import Dict

import yaml
from langchain_core.prompts import PromptTemplate

logger = logging.getLogger(__name__)

PROMPTS_PATH = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "config", "prompts.yaml")


class PromptCache:
    """以文件修改时间为版本号的提示词缓存"""

    def __init__(self, path: str = PROMPTS_PATH):
        self.path = path
        self._prompts: Dict[str, str] = {}
        self._loaded_mtime = 0.0

    def get_prompts(self) -> Dict[str, str]:
        try:
            mtime = os.path.getmtime(self.path)
        except FileNotFoundError:
            logger.error(f"提示词文件不存在: {self.path}")
            self._prompts = {}
            return self._prompts

        if mtime <= self._loaded_mtime:
            return self._prompts

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            # 编辑到一半的文件解析失败时沿用上一版
            logger.error(f"解析提示词文件失败，沿用上一版本: {e}")
            return self._prompts

        self._prompts = {str(k): v for k, v in data.items()}
        self._loaded_mtime = mtime
        logger.info(f"已加载提示词: {', '.join(sorted(self._prompts))}")
        return self._prompts

    def invalidate(self):
        self._loaded_mtime = 0.0


_prompt_cache = PromptCache()


def get_prompt_text(prompt_key: str) -> str:
    """取出原始提示词文本 (起草指令直接作为第一个内容块使用，不做模板替换)"""
    text = _prompt_cache.get_prompts().get(prompt_key)
    if not text:
        raise ValueError(f"Prompt key '{prompt_key}' not found in {_prompt_cache.path}")
    return text


def get_prompt_template(prompt_key: str) -> PromptTemplate:
    """
    取出提示词并包装为 PromptTemplate。

    Args:
        prompt_key (str): prompts.yaml 中的键，例如 "title_summarizer"。

    Returns:
        PromptTemplate: 变量名取自模板中的 {占位符}。
    """
    return PromptTemplate.from_template(get_prompt_text(prompt_key))


def force_reload_prompts():
    """配置页“重新加载”按钮使用：下次读取时强制重新解析文件"""
    _prompt_cache.invalidate()
    logger.info("已请求重新加载提示词。")
