"""
数据库 ORM 模型

导出所有 SQLAlchemy 模型类
"""

from backend.db.base import Base

# 导入所有模型（确保 Base 知道所有表）
from .user import User
from .story import Story
from .participant import StoryParticipant
from .turn import StoryTurn
from .segment import StorySegment
from .edit_request import StoryEditRequest
from .invitation import StoryInvitation
from .join_request import StoryJoinRequest

__all__ = [
    # Base
    "Base",

    # Models
    "User",
    "Story",
    "StoryParticipant",
    "StoryTurn",
    "StorySegment",
    "StoryEditRequest",
    "StoryInvitation",
    "StoryJoinRequest",
]
