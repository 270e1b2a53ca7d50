"""
业务对象定义 (Schemas)
定义系统各层级间传递的强类型数据结构，确保数据流透明且可预测。
"""
from dataclasses import dataclass, asdict, fields
from enum import Enum
from typing import Optional, List, Tuple, Callable, Dict, Any

DEFAULT_ISSUING_AUTHORITY = "Ủy ban nhân dân xã X"
DEFAULT_RECIPIENTS = "- Các thôn tổ dân phố\n- Các cơ quan, doanh nghiệp trên địa bàn"


class SessionStatus(str, Enum):
    IDLE = "idle"
    GENERATING = "generating"
    READY = "ready"
    FAILED = "failed"


class ActiveTab(str, Enum):
    RESULT = "result"
    SAVED = "saved"


class AttachmentGroup(str, Enum):
    """附件分组：'căn cứ' 与 'tư liệu liên quan' 两组互相独立"""
    CONTEXT = "context"
    KEY_POINTS = "key_points"


@dataclass
class FormData:
    """
    表单输入 (DraftRequest 的文本字段)
    所有字段缺省为空字符串，空值在请求构建阶段会被替换为显式的 "không" 标记。
    """
    role: str = ""
    issuing_authority: str = ""
    event_name: str = ""
    organizer: str = ""
    context: str = ""
    message: str = ""
    recipients: str = ""
    key_points: str = ""

    @classmethod
    def initial(cls) -> "FormData":
        """应用启动及清空时的默认表单值"""
        return cls(issuing_authority=DEFAULT_ISSUING_AUTHORITY, recipients=DEFAULT_RECIPIENTS)

    @classmethod
    def field_names(cls) -> List[str]:
        return [f.name for f in fields(cls)]

    def to_dict(self):
        return asdict(self)


@dataclass
class AttachmentFile:
    """
    用户选择的原始文件。
    reader 为无参可调用对象，返回文件的完整字节内容；读取可能失败。
    """
    name: str
    media_type: str
    reader: Callable[[], bytes]

    @classmethod
    def from_bytes(cls, name: str, media_type: str, data: bytes) -> "AttachmentFile":
        return cls(name=name, media_type=media_type, reader=lambda: data)

    @classmethod
    def from_upload(cls, uploaded) -> "AttachmentFile":
        """包装 Streamlit 的 UploadedFile"""
        return cls(
            name=uploaded.name,
            media_type=uploaded.type or "application/octet-stream",
            reader=uploaded.getvalue,
        )


@dataclass(frozen=True)
class EncodedAttachment:
    """可直接内联进生成请求的附件 (base64 + 媒体类型)"""
    payload: str
    media_type: str


@dataclass
class DraftRequest:
    """一次文稿生成的结构化输入"""
    form: FormData
    context_attachments: Tuple[EncodedAttachment, ...] = ()
    key_point_attachments: Tuple[EncodedAttachment, ...] = ()


@dataclass
class SavedDocument:
    """
    历史记录中的一份已保存文稿。
    timestamp 为毫秒级 Unix 时间 (创建或最近一次精修的时间)。
    """
    id: str
    title: str
    content: str
    timestamp: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SavedDocument":
        return cls(
            id=str(data["id"]),
            title=str(data.get("title", "")),
            content=str(data.get("content", "")),
            timestamp=int(data.get("timestamp", 0)),
        )


@dataclass
class ChatMessage:
    """精修对话中的一条消息，role 为 'user' 或 'assistant'"""
    role: str
    text: str

    USER = "user"
    ASSISTANT = "assistant"

    @property
    def is_user(self) -> bool:
        return self.role == self.USER


@dataclass
class TurnResult:
    """一次精修回合的执行结果"""
    ok: bool
    text: str = ""
    error: Optional[str] = None
