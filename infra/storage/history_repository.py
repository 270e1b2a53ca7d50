"""
历史记录持久化工具 (History Repository)
负责将已保存文稿列表整体序列化至 JSON 文件或从中读取。
本模块与 UI 框架解耦，可用于任何 Python 环境。
"""
import os
import json
import logging
from typing import List

from core.exceptions import PersistenceError
from core.schemas import SavedDocument

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1

# 默认存储槽位
DEFAULT_HISTORY_FILE = "data/history/savedDocuments.json"


class JsonHistoryRepository:
    """
    单一命名槽位的 JSON 存储。
    文件格式: {"version": 1, "documents": [...]}；读取时也兼容旧的裸列表格式。
    """

    def __init__(self, path: str = DEFAULT_HISTORY_FILE):
        self.path = path

    def load_all(self) -> List[SavedDocument]:
        """
        读取全部记录。文件不存在时返回空列表；
        内容损坏或无法读取时抛出 PersistenceError，由调用方决定如何降级。
        """
        if not os.path.exists(self.path):
            logger.info(f"未找到历史记录文件 '{self.path}'，将从空历史开始。")
            return []

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                raw = json.load(f)
        except (OSError, ValueError) as e:
            raise PersistenceError(f"加载历史记录失败: {e}") from e

        if isinstance(raw, dict):
            version = raw.get("version", FORMAT_VERSION)
            if isinstance(version, bool) or not isinstance(version, int):
                raise PersistenceError(f"加载历史记录失败: 无效的格式版本 {version!r}")
            if version > FORMAT_VERSION:
                logger.warning(f"历史记录格式版本 {version} 高于当前支持的 {FORMAT_VERSION}，尝试按当前格式读取。")
            records = raw.get("documents", [])
        else:
            records = raw

        if not isinstance(records, list):
            raise PersistenceError("加载历史记录失败: 文档列表格式不正确")

        try:
            return [SavedDocument.from_dict(r) for r in records]
        except (KeyError, TypeError, ValueError) as e:
            raise PersistenceError(f"加载历史记录失败: 记录格式不正确 ({e})") from e

    def save_all(self, documents: List[SavedDocument]):
        """
        将整个有序列表写回文件 (每次变更都全量序列化)。
        先写临时文件再替换，避免写入中断留下半个文件。
        """
        payload = {
            "version": FORMAT_VERSION,
            "documents": [doc.to_dict() for doc in documents],
        }
        tmp_path = f"{self.path}.tmp"
        try:
            os.makedirs(os.path.dirname(self.path) or '.', exist_ok=True)
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(payload, f, ensure_ascii=False, indent=4)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceError(f"保存历史记录失败: {e}") from e
        logger.debug(f"历史记录已保存至: {self.path} ({len(documents)} 条)")
