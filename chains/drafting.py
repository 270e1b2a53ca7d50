"""
公文起草链模块 (Drafting Chains)
定义了文稿生成、标题摘要与对话精修三条 AI 处理链，以及多模态请求内容的构建逻辑。
"""
from typing import List, Dict, Any, Sequence

from langchain_core.messages import HumanMessage, AIMessage, SystemMessage, BaseMessage
from langchain_core.output_parsers import StrOutputParser
from langchain_core.runnables import RunnableLambda

from core.schemas import DraftRequest, EncodedAttachment, ChatMessage
from infra.llm.factory import get_llm
from prompts import get_prompt_template, get_prompt_text

# 字段为空时写入请求的显式标记
UNKNOWN_MARKER = "Không rõ"
NONE_MARKER = "Không có"

PDF_MEDIA_TYPE = "application/pdf"

def _text_block(text: str) -> Dict[str, Any]:
    return {"type": "text", "text": text}

def attachment_to_block(attachment: EncodedAttachment) -> Dict[str, Any]:
    """将已编码附件转换为 LangChain 标准的内联多模态内容块"""
    block_type = "file" if attachment.media_type == PDF_MEDIA_TYPE else "image"
    return {
        "type": block_type,
        "source_type": "base64",
        "data": attachment.payload,
        "mime_type": attachment.media_type,
    }

def _section(heading: str, text: str, attachments: Sequence[EncodedAttachment]) -> List[Dict[str, Any]]:
    """
    构建带附件的段落：标题、正文 (若有)、附件 (若有)；
    正文与附件都缺失时写入 NONE_MARKER，而不是省略整个段落。
    """
    blocks = [_text_block(heading)]
    if text:
        blocks.append(_text_block(text))
    blocks.extend(attachment_to_block(a) for a in attachments)
    if not text and not attachments:
        blocks.append(_text_block(NONE_MARKER))
    return blocks

def build_draft_content(request: DraftRequest) -> List[Dict[str, Any]]:
    """按固定顺序构建文稿生成请求的全部内容块。"""
    form = request.form
    blocks = [_text_block(get_prompt_text("drafter"))]

    blocks.append(_text_block(f"**Loại văn bản:** {form.role or UNKNOWN_MARKER}"))
    blocks.append(_text_block(f"**Cơ quan ban hành:** {form.issuing_authority or UNKNOWN_MARKER}"))
    blocks.append(_text_block(f"**Trích yếu:** {form.event_name or UNKNOWN_MARKER}"))
    blocks.append(_text_block(f"**Sơ lược nội dung cần soạn thảo:** {form.organizer or UNKNOWN_MARKER}"))

    blocks.extend(_section("**Căn cứ ban hành văn bản:**", form.context, request.context_attachments))

    blocks.append(_text_block(f"**Kỳ vọng hiệu quả của văn bản:** {form.message or NONE_MARKER}"))
    blocks.append(_text_block(f"**Nơi nhận:** {form.recipients or NONE_MARKER}"))

    blocks.extend(_section("**Văn bản, tư liệu, số liệu liên quan:**", form.key_points, request.key_point_attachments))
    return blocks

def to_langchain_history(history: Sequence[ChatMessage]) -> List[BaseMessage]:
    """
    将精修对话转换为 LangChain 消息。
    模型侧的对话必须以用户消息开头，因此丢弃位于首条用户消息之前的助手消息 (问候语)。
    """
    messages = []
    for msg in history:
        if not messages and not msg.is_user:
            continue
        messages.append(HumanMessage(content=msg.text) if msg.is_user else AIMessage(content=msg.text))
    return messages

def create_draft_chain():
    """创建文稿生成链 (输入: DraftRequest)"""
    drafter_llm = get_llm("drafter")
    return (
        RunnableLambda(lambda request: [HumanMessage(content=build_draft_content(request))])
        | drafter_llm | StrOutputParser()
    )

def create_title_chain():
    """创建标题摘要链 (输入: {"document_content": str})"""
    prompt = get_prompt_template("title_summarizer")
    return prompt | get_llm("title_summarizer", temperature=0.3) | StrOutputParser()

def create_refine_chain():
    """创建对话精修链 (输入: {"history": [ChatMessage], "current_document": str})"""
    refiner_llm = get_llm("refiner")
    system_prompt = get_prompt_template("refiner")

    def _build_messages(x: Dict[str, Any]) -> List[BaseMessage]:
        system_text = system_prompt.format(current_document=x["current_document"])
        return [SystemMessage(content=system_text)] + to_langchain_history(x.get("history", []))

    return RunnableLambda(_build_messages) | refiner_llm | StrOutputParser()
