"""
表单字段声明 (Form Schema)
以静态的字段描述列表驱动表单渲染，字段类型为封闭集合：text / textarea / select。
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from core.schemas import AttachmentGroup, FormData

DOCUMENT_TYPES = (
    "Công văn",
    "Quyết định",
    "Tờ trình",
    "Kế hoạch",
    "Báo cáo",
    "Thông báo",
    "Giấy mời",
    "Biên bản",
    "Chỉ thị",
    "Hướng dẫn",
    "Chương trình",
    "Phương án",
)


class FieldKind(str, Enum):
    TEXT = "text"
    TEXTAREA = "textarea"
    SELECT = "select"


@dataclass(frozen=True)
class FieldSpec:
    name: str
    label: str
    kind: FieldKind
    placeholder: str = ""
    rows: int = 2
    options: Tuple[str, ...] = ()
    # 允许在该字段下方挂接附件的分组
    attachment_group: Optional[AttachmentGroup] = None


FORM_FIELDS = (
    FieldSpec("role", "Loại văn bản", FieldKind.SELECT, "Chọn loại văn bản", options=DOCUMENT_TYPES),
    FieldSpec("issuing_authority", "Cơ quan ban hành", FieldKind.TEXT, "Nhập tên cơ quan ban hành"),
    FieldSpec("event_name", "Trích yếu", FieldKind.TEXTAREA, "V/v ban hành Kế hoạch tổ chức...", rows=2),
    FieldSpec("organizer", "Sơ lược nội dung cần soạn thảo", FieldKind.TEXTAREA, "Nhập giá trị", rows=2),
    FieldSpec(
        "context", "Căn cứ ban hành văn bản", FieldKind.TEXTAREA,
        "Căn cứ Nghị định số..., Căn cứ Quyết định số...", rows=4,
        attachment_group=AttachmentGroup.CONTEXT,
    ),
    FieldSpec("message", "Kỳ vọng hiệu quả của văn bản", FieldKind.TEXTAREA, "Nhập giá trị", rows=2),
    FieldSpec("recipients", "Nơi nhận", FieldKind.TEXTAREA, "Nhập nơi nhận văn bản", rows=3),
    FieldSpec(
        "key_points", "Văn bản, tư liệu, số liệu liên quan", FieldKind.TEXTAREA, "Nhập giá trị", rows=4,
        attachment_group=AttachmentGroup.KEY_POINTS,
    ),
)


def get_field(name: str) -> FieldSpec:
    """按字段名查找字段声明"""
    for spec in FORM_FIELDS:
        if spec.name == name:
            return spec
    raise KeyError(f"未知的表单字段: {name}")


def validate_schema():
    """确认字段声明与 FormData 一一对应"""
    declared = [spec.name for spec in FORM_FIELDS]
    return declared == FormData.field_names()
