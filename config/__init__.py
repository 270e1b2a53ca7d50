import os
import logging
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

ENV_PATH = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), ".env")

def load_environment():
    """
    从项目根目录的 .env 文件加载环境变量 (例如 GOOGLE_API_KEY)。
    已存在的环境变量不会被覆盖。
    """
    loaded = load_dotenv(ENV_PATH)
    logger.debug(f"环境变量加载完成 (.env 存在: {loaded})。")
    return loaded
