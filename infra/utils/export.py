"""
导出与文本整理工具 (Export Utils)
负责文稿展示前的 HTML 清理、纯文本复制版本的生成以及下载文件内容的构建。
"""
import re
from datetime import datetime

_HTML_TAG = re.compile(r"</?[^>]+(>|$)")

# 顺序有意义：图片需在链接之前处理，分隔线需在强调符号之前处理
_MARKDOWN_RULES = (
    (re.compile(r"!\[([^\]]*)\]\([^)]+\)"), r"\1"),           # 图片，保留 alt 文本
    (re.compile(r"\[([^\]]+)\]\([^)]+\)"), r"\1"),            # 链接，保留文字
    (re.compile(r"^[ \t]*(-{3,}|_{3,}|\*{3,})[ \t]*$", re.M), ""),  # 分隔线
    (re.compile(r"^#+[ \t]*", re.M), ""),                     # 标题
    (re.compile(r"^>[ \t]*", re.M), ""),                      # 引用
    (re.compile(r"^[ \t]*[-*+][ \t]+", re.M), ""),            # 无序列表
    (re.compile(r"^[ \t]*\d+\.[ \t]+", re.M), ""),            # 有序列表
    (re.compile(r"(\*\*|__|\*|_)(.*?)\1"), r"\2"),            # 粗体 / 斜体
    (re.compile(r"~~(.*?)~~"), r"\1"),                        # 删除线
    (re.compile(r"`([^`]+)`"), r"\1"),                        # 行内代码
    (re.compile(r"\n{2,}"), "\n\n"),
)


def strip_html(text: str) -> str:
    """移除模型偶尔混入的 HTML 标签 (要求模型只输出 Markdown)"""
    if not text:
        return ""
    return _HTML_TAG.sub("", text)


def strip_markdown(markdown: str) -> str:
    """去掉 Markdown 格式符号，得到适合直接粘贴的纯文本"""
    text = markdown or ""
    for pattern, replacement in _MARKDOWN_RULES:
        text = pattern.sub(replacement, text)
    return text.strip()


def export_as_plain_text(content: str) -> str:
    """“复制结果”所用的纯文本版本"""
    return strip_markdown(strip_html(content))


def export_as_markdown(title: str, content: str) -> str:
    """导出为 Markdown 字符串"""
    return f"# {title}\n\n{strip_html(content)}"


def format_timestamp(timestamp_ms: int) -> str:
    """按越南习惯格式化毫秒时间戳，例如 17/10/2026 09:05:03"""
    return datetime.fromtimestamp(timestamp_ms / 1000).strftime("%d/%m/%Y %H:%M:%S")


def safe_filename(title: str, default: str = "van-ban") -> str:
    """将标题转换为可用作下载文件名的字符串"""
    name = re.sub(r'[\\/:*?"<>|\r\n]+', " ", title or "")
    name = re.sub(r"\s+", " ", name).strip()
    return name[:80] or default
