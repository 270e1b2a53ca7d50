"""
起草会话服务 (Session State Machine)
管理一次起草会话的全部状态：表单、两组附件、流式文稿、加载 / 错误标记、当前标签页与激活文稿。
状态流转: Idle -> Generating -> Ready | Failed；clear() 回到 Idle；打开历史文稿直接进入 Ready。
"""
from __future__ import annotations
import logging
import uuid
from typing import Callable, List, Optional

from core.exceptions import EncodingError, GenerationError
from core.schemas import (
    ActiveTab, AttachmentFile, AttachmentGroup, DraftRequest, FormData,
    SavedDocument, SessionStatus, TurnResult,
)
from services.attachment_service import filter_processable, encode_batch, DEFAULT_MAX_WORKERS
from services.history_service import HistoryStore, now_ms
from services.refinement_service import RefinementLoop

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Đã có lỗi xảy ra"

# on_chunk(chunk, draft_so_far)
ChunkCallback = Callable[[str, str], None]


def new_id() -> str:
    return str(uuid.uuid4())


class DraftingSession:
    """
    每个浏览器会话持有一个实例。
    历史记录由 HistoryStore 独占，本会话只保存激活文稿的 id。
    """

    def __init__(
        self,
        client,
        history: HistoryStore,
        refinement: Optional[RefinementLoop] = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
        id_factory: Callable[[], str] = new_id,
        clock: Callable[[], int] = now_ms,
    ):
        self.client = client
        self.history = history
        self.refinement = refinement or RefinementLoop(client)
        self.max_workers = max_workers
        self.id_factory = id_factory
        self.clock = clock

        self.form = FormData.initial()
        self.context_files: List[AttachmentFile] = []
        self.key_point_files: List[AttachmentFile] = []
        self.draft = ""
        self.is_loading = False
        self.error: Optional[str] = None
        self.active_tab = ActiveTab.RESULT
        self.active_document_id: Optional[str] = None
        self.refinement.reset(None, "")

    # --- 派生状态 ---

    @property
    def status(self) -> SessionStatus:
        if self.is_loading:
            return SessionStatus.GENERATING
        if self.error:
            return SessionStatus.FAILED
        if self.draft:
            return SessionStatus.READY
        return SessionStatus.IDLE

    @property
    def is_busy(self) -> bool:
        """生成或精修流正在进行时，提交与发送按钮都应禁用"""
        return self.is_loading or self.refinement.is_loading

    @property
    def chat_session_id(self) -> Optional[str]:
        return self.refinement.session_id

    # --- 表单与附件 ---

    def update_field(self, name: str, value: str):
        if name not in FormData.field_names():
            raise KeyError(f"未知的表单字段: {name}")
        setattr(self.form, name, value or "")

    def attachments(self, group: AttachmentGroup) -> List[AttachmentFile]:
        return self.context_files if group == AttachmentGroup.CONTEXT else self.key_point_files

    def add_attachments(self, group: AttachmentGroup, files: List[AttachmentFile]):
        self.attachments(group).extend(files)

    def remove_attachment(self, group: AttachmentGroup, file_name: str):
        """按文件名移除 (同名文件全部移除)"""
        remaining = [f for f in self.attachments(group) if f.name != file_name]
        if group == AttachmentGroup.CONTEXT:
            self.context_files = remaining
        else:
            self.key_point_files = remaining

    def build_request(self) -> DraftRequest:
        """过滤并编码两组附件 (两组互相独立)，构建生成请求。任一附件失败则抛出 EncodingError。"""
        context_encoded = encode_batch(filter_processable(self.context_files), self.max_workers)
        key_points_encoded = encode_batch(filter_processable(self.key_point_files), self.max_workers)
        return DraftRequest(
            form=FormData(**self.form.to_dict()),
            context_attachments=tuple(context_encoded),
            key_point_attachments=tuple(key_points_encoded),
        )

    # --- 生成流程 ---

    def submit(self, on_chunk: Optional[ChunkCallback] = None) -> Optional[SavedDocument]:
        """
        执行一次完整的生成流程。
        成功且文稿非空时返回新保存的 SavedDocument；失败时设置 error 并保留已累积的部分文稿。
        """
        if self.is_busy:
            logger.warning("已有生成或精修任务在进行中，忽略本次提交。")
            return None

        self.error = None
        self.draft = ""
        self.is_loading = True
        self.active_tab = ActiveTab.RESULT

        final_document = ""
        try:
            request = self.build_request()
            for chunk in self.client.stream_draft(request):
                self.draft += chunk
                final_document += chunk
                if on_chunk:
                    on_chunk(chunk, self.draft)

            if not final_document:
                logger.warning("生成流已结束，但没有返回任何内容。")
                return None

            title = self.client.summarize_title(final_document)
            document = SavedDocument(
                id=self.id_factory(),
                title=title,
                content=final_document,
                timestamp=self.clock(),
            )
            self.history.add(document)
            self._activate(document.id)
            logger.info(f"文稿已生成并保存: '{title}' ({document.id})")
            return document
        except (EncodingError, GenerationError) as e:
            logger.error(f"生成流程失败: {e}")
            self.error = str(e) or GENERIC_ERROR_MESSAGE
            return None
        except Exception as e:
            logger.error(f"生成流程出现未知错误: {e}", exc_info=True)
            self.error = str(e) or GENERIC_ERROR_MESSAGE
            return None
        finally:
            self.is_loading = False

    # --- 历史记录交互 ---

    def view_saved(self, document_id: str) -> bool:
        """打开历史文稿：预填文稿、切到结果页、开启新的精修范围；表单保持不变。"""
        document = self.history.get(document_id)
        if document is None:
            return False
        self.draft = document.content
        self.active_tab = ActiveTab.RESULT
        self.error = None
        self._activate(document.id)
        return True

    def delete_saved(self, document_id: str) -> bool:
        """只从历史记录中删除；当前文稿与激活 id 保持不变。"""
        return self.history.remove(document_id)

    def apply_document_update(self, new_document: str, is_final: bool = False):
        """
        精修回调：替换当前文稿；最终更新时同步到历史记录并置顶。
        没有激活文稿时只更新视图。
        """
        self.draft = new_document
        if is_final and self.active_document_id:
            self.history.update_content_and_resurface(self.active_document_id, new_document)

    def send_refinement(self, text: str, on_chunk: Optional[Callable[[str], None]] = None) -> TurnResult:
        if self.is_loading:
            return TurnResult(ok=False)
        return self.refinement.send(text, self.draft, self.apply_document_update, on_chunk=on_chunk)

    def clear(self):
        """回到 Idle：恢复初始表单，清空附件、文稿、错误与激活文稿。"""
        self.form = FormData.initial()
        self.context_files = []
        self.key_point_files = []
        self.draft = ""
        self.error = None
        self.active_document_id = None
        self.refinement.reset(None, "")

    def _activate(self, document_id: str):
        self.active_document_id = document_id
        self.refinement.reset(document_id, self.draft, session_id=self.id_factory())
