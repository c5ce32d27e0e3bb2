"""
故事相关数据模型
"""

from typing import Optional
from pydantic import BaseModel, Field
from enum import Enum


class ParticipantRole(str, Enum):
    """参与者角色"""
    AUTHOR = "author"              # 作者（每个故事恰好一个）
    PARTICIPANT = "participant"    # 普通参与者


class StoryCreate(BaseModel):
    """创建故事请求（上下限由服务层按配置校验）"""
    title: str = Field(..., min_length=1, max_length=256, description="故事标题")
    description: str = Field(..., min_length=1, description="故事简介（开篇提示）")
    genre: str = Field(..., min_length=1, max_length=64, description="类型")
    word_limit: int = Field(..., description="每段字数上限")
    character_limit: int = Field(0, description="每段字符上限（0 表示不限）")
    max_segments: Optional[int] = Field(None, description="目标段落数")
    is_public: bool = Field(True, description="是否允许公开加入")


class StoryUpdate(BaseModel):
    """更新故事标题/规则（仅作者，对下一段生效）"""
    title: Optional[str] = Field(None, min_length=1, max_length=256, description="故事标题")
    word_limit: Optional[int] = Field(None, description="每段字数上限")
    character_limit: Optional[int] = Field(None, description="每段字符上限")
    max_segments: Optional[int] = Field(None, description="目标段落数")
    is_public: Optional[bool] = Field(None, description="是否允许公开加入")


class OwnershipTransfer(BaseModel):
    """转移作者身份"""
    new_author_id: str = Field(..., description="新作者（必须是参与者）")
