"""
附件编码服务 (Attachment Service)
将用户选择的图片 / PDF 文件转换为可内联进生成请求的 base64 负载。
"""
from __future__ import annotations
import base64
import logging
from concurrent.futures import ThreadPoolExecutor, wait, FIRST_EXCEPTION
from typing import Iterable, List

from core.exceptions import EncodingError
from core.schemas import AttachmentFile, EncodedAttachment

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4


def is_processable(media_type: str) -> bool:
    """只有图片与 PDF 会被送入生成请求"""
    media_type = (media_type or "").lower()
    return media_type.startswith("image/") or media_type == "application/pdf"


def filter_processable(files: Iterable[AttachmentFile]) -> List[AttachmentFile]:
    """按媒体类型过滤附件，保持原有顺序。其余文件仍会显示在界面列表中，但不进入请求。"""
    kept = [f for f in files if is_processable(f.media_type)]
    return kept


def encode_attachment(file: AttachmentFile) -> EncodedAttachment:
    """
    读取文件全部内容并进行 base64 编码。
    调用方负责媒体类型过滤；读取失败统一转换为 EncodingError。
    """
    try:
        data = file.reader()
    except Exception as e:
        logger.error(f"读取附件 '{file.name}' 失败: {e}", exc_info=True)
        raise EncodingError(f"Không thể đọc tệp '{file.name}': {e}") from e

    if not isinstance(data, (bytes, bytearray)):
        raise EncodingError(f"Không thể đọc tệp '{file.name}': nội dung không phải dữ liệu nhị phân")

    return EncodedAttachment(
        payload=base64.b64encode(bytes(data)).decode("ascii"),
        media_type=file.media_type,
    )


def encode_batch(files: List[AttachmentFile], max_workers: int = DEFAULT_MAX_WORKERS) -> List[EncodedAttachment]:
    """
    并发编码一组附件，结果按输入顺序返回。
    任一文件失败则整批失败，尚未开始的编码任务被取消。
    同时有多个文件已失败时，抛出输入顺序中最靠前的那个 EncodingError。
    """
    if not files:
        return []

    executor = ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(files))))
    try:
        futures = [executor.submit(encode_attachment, f) for f in files]
        done, _ = wait(futures, return_when=FIRST_EXCEPTION)
        failed = [f for f in futures if f in done and f.exception() is not None]
        if failed:
            raise failed[0].exception()
        results = [future.result() for future in futures]
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    logger.info(f"已编码 {len(results)} 个附件。")
    return results
