"""
对话精修服务 (Refinement Loop)
在当前文稿基础上进行多轮对话，每一轮都由模型返回完整的修订后文稿。
对话范围与当前激活文稿绑定：激活文稿变化时必须调用 reset() 彻底重置。
"""
from __future__ import annotations
import logging
import uuid
from typing import Callable, List, Optional

from core.exceptions import RefinementError
from core.schemas import ChatMessage, TurnResult

logger = logging.getLogger(__name__)

GREETING_TEXT = "Xin chào! Bạn muốn chỉnh sửa hay cải thiện điều gì trong văn bản này không?"
APOLOGY_TEXT = "Rất tiếc, đã có lỗi xảy ra. Vui lòng thử lại."

# on_update(text, is_final)
DocumentUpdateCallback = Callable[[str, bool], None]


class RefinementLoop:
    def __init__(self, client):
        self.client = client
        self.transcript: List[ChatMessage] = []
        self.is_expanded = False
        self.is_loading = False
        self.session_id: Optional[str] = None
        self.document_id: Optional[str] = None

    def reset(self, document_id: Optional[str], draft: str, session_id: Optional[str] = None):
        """开启新的对话范围：已有文稿时以问候语开场并自动展开，否则清空并折叠。"""
        self.session_id = session_id or str(uuid.uuid4())
        self.document_id = document_id
        self.is_loading = False
        if draft:
            self.transcript = [ChatMessage(ChatMessage.ASSISTANT, GREETING_TEXT)]
            self.is_expanded = True
        else:
            self.transcript = []
            self.is_expanded = False
        logger.debug(f"精修对话已重置 (session: {self.session_id}, document: {document_id})")

    @staticmethod
    def is_enabled(current_draft: str) -> bool:
        return bool(current_draft)

    def toggle(self, current_draft: str):
        if self.is_enabled(current_draft):
            self.is_expanded = not self.is_expanded

    def send(
        self,
        text: str,
        current_draft: str,
        on_update: DocumentUpdateCallback,
        on_chunk: Optional[Callable[[str], None]] = None,
    ) -> TurnResult:
        """
        执行一轮精修。
        流式过程中把不断增长的回复作为非最终更新推给文稿视图；
        完成后若回复非空，则以去除首尾空白的文本做一次最终更新 (触发历史记录保存)。
        失败时把助手占位消息替换为致歉文本，不会向调用方抛出异常。
        """
        if not text or not text.strip() or self.is_loading:
            return TurnResult(ok=False)

        self.transcript.append(ChatMessage(ChatMessage.USER, text))
        self.is_loading = True
        response = ""
        try:
            stream = self.client.stream_chat_turn(list(self.transcript), current_draft)
            placeholder = ChatMessage(ChatMessage.ASSISTANT, "")
            self.transcript.append(placeholder)

            for chunk in stream:
                response += chunk
                placeholder.text = response
                if on_chunk:
                    on_chunk(response)
                on_update(response, False)

            final_text = response.strip()
            if final_text:
                on_update(final_text, True)
            return TurnResult(ok=True, text=final_text)
        except RefinementError as e:
            logger.error(f"精修回合失败: {e}", exc_info=True)
            self._show_apology()
            return TurnResult(ok=False, text=response, error=str(e))
        except Exception as e:
            logger.error(f"精修回合出现未知错误: {e}", exc_info=True)
            self._show_apology()
            return TurnResult(ok=False, text=response, error=str(e) or APOLOGY_TEXT)
        finally:
            self.is_loading = False

    def _show_apology(self):
        """用致歉文本替换助手占位消息；占位消息尚未创建时直接追加。"""
        last = self.transcript[-1]
        if last.is_user:
            self.transcript.append(ChatMessage(ChatMessage.ASSISTANT, APOLOGY_TEXT))
        else:
            last.text = APOLOGY_TEXT
