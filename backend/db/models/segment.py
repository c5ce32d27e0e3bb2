"""
故事段落表 ORM 模型
"""

from sqlalchemy import Column, String, Text, Integer, Boolean, TIMESTAMP, ForeignKey, Index, UniqueConstraint
from datetime import datetime

from backend.db.base import Base


class StorySegment(Base):
    """故事段落表"""
    __tablename__ = "story_segments"

    # 主键
    id = Column(String(64), primary_key=True, comment="段落ID")

    # 外键
    story_id = Column(String(64), ForeignKey("stories.id"), nullable=False, comment="故事ID")
    user_id = Column(String(64), ForeignKey("users.id"), nullable=False, comment="作者")

    # 内容
    turn = Column(Integer, nullable=False, comment="提交时消耗的回合号")
    content = Column(Text, nullable=False, comment="段落内容")
    word_count = Column(Integer, nullable=False, comment="字数")
    character_count = Column(Integer, nullable=False, default=0, comment="字符数")

    # 编辑追踪
    is_edited = Column(Boolean, nullable=False, default=False, comment="是否被编辑过")
    last_edited_at = Column(TIMESTAMP, nullable=True, comment="最后编辑时间")
    edited_by = Column(String(64), ForeignKey("users.id"), nullable=True, comment="编辑请求发起人")

    # 时间戳
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, comment="创建时间")

    # 约束和索引
    __table_args__ = (
        UniqueConstraint('story_id', 'turn', name='uk_segment_story_turn'),
        Index('idx_segments_user', 'user_id'),
    )
