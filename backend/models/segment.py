"""
段落相关数据模型
"""

from typing import Optional
from pydantic import BaseModel, Field


class SegmentCreate(BaseModel):
    """
    提交段落请求

    word_count/character_count 可由客户端提供；开启服务端重算时会被忽略
    """
    content: str = Field(..., min_length=1, max_length=5000, description="段落内容")
    word_count: Optional[int] = Field(None, description="客户端统计的字数")
    character_count: Optional[int] = Field(None, description="客户端统计的字符数")
