"""
日志初始化
控制台 + 按大小轮转的文件日志；日志目录与级别可通过环境变量调整。
"""
import logging
import logging.handlers
import os
import sys

LOG_DIR = os.getenv("VAN_BAN_LOG_DIR", "logs")
LOG_FILE_NAME = "van_ban_assistant.log"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# 第三方库的请求日志过于冗长，只保留警告以上
NOISY_LOGGERS = ("httpx", "httpcore", "urllib3", "google_genai", "watchdog")

_MARKER_ATTR = "_van_ban_handler"


def _tag(handler: logging.Handler) -> logging.Handler:
    setattr(handler, _MARKER_ATTR, True)
    return handler


def setup_logging(log_dir: str = None, level: str = None) -> str:
    """
    配置根日志记录器，返回日志文件路径。
    Streamlit 每次交互都会重跑脚本，这里只替换本模块添加过的 handler，重复调用不会产生重复输出。
    """
    log_dir = log_dir or LOG_DIR
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, LOG_FILE_NAME)

    root = logging.getLogger()
    for handler in [h for h in root.handlers if getattr(h, _MARKER_ATTR, False)]:
        root.removeHandler(handler)
        handler.close()

    root.setLevel((level or os.getenv("LOG_LEVEL", "INFO")).upper())
    formatter = logging.Formatter(LOG_FORMAT)

    file_handler = _tag(logging.handlers.RotatingFileHandler(
        log_file, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8"
    ))
    console_handler = _tag(logging.StreamHandler(sys.stdout))
    for handler in (file_handler, console_handler):
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.captureWarnings(True)
    return log_file
