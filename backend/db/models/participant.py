"""
故事参与者表 ORM 模型
"""

from sqlalchemy import Column, String, Integer, TIMESTAMP, ForeignKey, Index, UniqueConstraint
from datetime import datetime

from backend.db.base import Base


class StoryParticipant(Base):
    """故事参与者表（自增ID即加入顺序，轮转依赖此顺序）"""
    __tablename__ = "story_participants"

    # 主键
    id = Column(Integer, primary_key=True, autoincrement=True, comment="自增ID（加入顺序）")

    # 外键
    story_id = Column(String(64), ForeignKey("stories.id"), nullable=False, comment="故事ID")
    user_id = Column(String(64), ForeignKey("users.id"), nullable=False, comment="用户ID")

    # 角色
    role = Column(String(20), nullable=False, default="participant", comment="角色（author/participant）")

    # 时间戳
    joined_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, comment="加入时间")

    # 约束和索引
    __table_args__ = (
        UniqueConstraint('story_id', 'user_id', name='uk_story_participant'),
        Index('idx_participants_user', 'user_id'),
    )
