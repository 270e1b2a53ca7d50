"""
历史记录服务 (History Store)
维护已保存文稿的有序集合 (按最近使用排序，最新在前)，每次变更后整体持久化。
"""
from __future__ import annotations
import logging
import time
from typing import List, Optional

from core.exceptions import PersistenceError
from core.schemas import SavedDocument

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


class HistoryStore:
    """
    内存中的有序列表是唯一数据源；持久化失败只记录日志，不会影响起草流程。
    """

    def __init__(self, repository, clock=now_ms):
        self.repository = repository
        self.clock = clock
        self._documents: List[SavedDocument] = []

    @property
    def documents(self) -> List[SavedDocument]:
        """返回列表副本，外部修改不会影响内部状态"""
        return list(self._documents)

    def __len__(self):
        return len(self._documents)

    def hydrate(self) -> "HistoryStore":
        """启动时从存储加载；缺失或损坏时回退为空历史并继续运行。"""
        try:
            loaded = self.repository.load_all()
        except PersistenceError as e:
            logger.error(f"{e}，已回退为空历史。")
            loaded = []

        # id 重复时只保留第一次出现的记录
        seen = set()
        self._documents = []
        for doc in loaded:
            if doc.id in seen:
                logger.warning(f"历史记录中存在重复 id '{doc.id}'，已忽略后出现的条目。")
                continue
            seen.add(doc.id)
            self._documents.append(doc)
        logger.info(f"历史记录已加载: {len(self._documents)} 条。")
        return self

    def get(self, document_id: str) -> Optional[SavedDocument]:
        for doc in self._documents:
            if doc.id == document_id:
                return doc
        return None

    def add(self, document: SavedDocument):
        """插入到最前面"""
        self._documents.insert(0, document)
        self._persist()

    def remove(self, document_id: str):
        """按 id 删除；不存在时为空操作"""
        remaining = [d for d in self._documents if d.id != document_id]
        if len(remaining) == len(self._documents):
            return False
        self._documents = remaining
        self._persist()
        return True

    def update_content_and_resurface(self, document_id: str, new_content: str) -> bool:
        """
        更新文稿内容与时间戳，并将其移动到最前面。
        id 不存在时为空操作，不会抛错也不会创建新条目。
        """
        index = next((i for i, d in enumerate(self._documents) if d.id == document_id), -1)
        if index < 0:
            logger.warning(f"尝试更新不存在的文稿 '{document_id}'，已忽略。")
            return False

        doc = self._documents[index]
        doc.content = new_content
        doc.timestamp = self.clock()
        if index > 0:
            self._documents.insert(0, self._documents.pop(index))
        self._persist()
        return True

    def _persist(self):
        try:
            self.repository.save_all(self._documents)
        except PersistenceError as e:
            logger.error(f"{e}", exc_info=True)
