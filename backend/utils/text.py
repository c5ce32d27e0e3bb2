"""
文本统计工具

段落字数 / 字符数的服务端计算
"""

import re

_WORD_RE = re.compile(r"\S+")


def count_words(content: str) -> int:
    """
    统计字数（以空白分隔的词）

    Args:
        content: 段落内容

    Returns:
        字数
    """
    if not content:
        return 0
    return len(_WORD_RE.findall(content))


def count_characters(content: str) -> int:
    """统计字符数（去除首尾空白后的长度）"""
    if not content:
        return 0
    return len(content.strip())
