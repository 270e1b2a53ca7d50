"""
自定义异常类
用于在编码、生成、精修与持久化各层之间传递具有明确语义的错误信息。
"""

class EncodingError(Exception):
    """当附件文件无法读取或编码时发生错误"""
    pass

class GenerationError(Exception):
    """当文稿生成流无法启动或在中途中断时发生错误"""
    pass

class RefinementError(Exception):
    """当对话精修缺少锚定文稿或精修流失败时发生错误"""
    pass

class PersistenceError(Exception):
    """当读写本地历史存储失败时发生错误"""
    pass

class ConfigurationError(Exception):
    """当应用配置不正确或缺失时发生错误"""
    pass
