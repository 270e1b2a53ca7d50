"""
生成客户端 (Generation Client)
编排层与语言模型之间的协议适配器：流式生成文稿、生成标题、流式精修对话。
"""
from __future__ import annotations
import logging
import re
from typing import Iterator, Sequence

from chains import create_draft_chain, create_title_chain, create_refine_chain
from core.exceptions import ConfigurationError, GenerationError, RefinementError
from core.schemas import DraftRequest, ChatMessage

logger = logging.getLogger(__name__)

UNTITLED_TITLE = "Văn bản chưa có tiêu đề"
DRAFT_FAILURE_MESSAGE = "Không thể tạo nội dung. Vui lòng thử lại."
CHAT_FAILURE_MESSAGE = "Không thể tạo phản hồi. Vui lòng thử lại."

_SURROUNDING_QUOTES = re.compile(r'^"|"$')


def clean_title(raw: str) -> str:
    """去掉首尾空白以及包裹标题的双引号"""
    return _SURROUNDING_QUOTES.sub("", (raw or "").strip())


class GenerationClient:
    """
    对外暴露三个操作：stream_draft / summarize_title / stream_chat_turn。
    链在每次调用时创建，以便反映配置与 prompts.yaml 的最新修改。
    """

    def __init__(self, untitled_title: str = UNTITLED_TITLE):
        self.untitled_title = untitled_title

    def stream_draft(self, request: DraftRequest) -> Iterator[str]:
        """
        流式生成文稿，逐块产出文本。
        启动失败或中途失败均抛出 GenerationError；已产出的文本由调用方保留。
        """
        logger.info("开始流式生成文稿...")
        try:
            chain = create_draft_chain()
            for chunk in chain.stream(request):
                if chunk:
                    yield chunk
        except ConfigurationError as e:
            logger.error(f"模型配置错误: {e}")
            raise GenerationError(str(e)) from e
        except Exception as e:
            logger.error(f"文稿生成失败: {e}", exc_info=True)
            raise GenerationError(DRAFT_FAILURE_MESSAGE) from e

    def summarize_title(self, text: str) -> str:
        """为完成的文稿生成简短标题；任何失败都返回兜底标题，不会阻塞保存。"""
        try:
            title = clean_title(create_title_chain().invoke({"document_content": text}))
        except Exception as e:
            logger.error(f"生成标题失败: {e}", exc_info=True)
            return self.untitled_title
        return title or self.untitled_title

    def stream_chat_turn(self, history: Sequence[ChatMessage], current_draft: str) -> Iterator[str]:
        """
        流式生成一次精修回复 (完整的修订后文稿)。
        没有当前文稿作为锚点时抛出 RefinementError。
        """
        if not current_draft:
            raise RefinementError("Cannot generate chat response without a document context.")

        logger.info(f"开始精修回合 (对话消息数: {len(history)})...")
        return self._stream_refinement(list(history), current_draft)

    def _stream_refinement(self, history, current_draft: str) -> Iterator[str]:
        try:
            chain = create_refine_chain()
            for chunk in chain.stream({"history": history, "current_document": current_draft}):
                if chunk:
                    yield chunk
        except ConfigurationError as e:
            logger.error(f"模型配置错误: {e}")
            raise RefinementError(str(e)) from e
        except Exception as e:
            logger.error(f"精修回复生成失败: {e}", exc_info=True)
            raise RefinementError(CHAT_FAILURE_MESSAGE) from e
