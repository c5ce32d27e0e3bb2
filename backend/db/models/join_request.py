"""
加入申请表 ORM 模型
"""

from sqlalchemy import Column, String, Text, TIMESTAMP, ForeignKey, Index
from datetime import datetime

from backend.db.base import Base


class StoryJoinRequest(Base):
    """加入申请表（非公开故事由作者审批）"""
    __tablename__ = "story_join_requests"

    # 主键
    id = Column(String(64), primary_key=True, comment="申请ID")

    # 外键
    story_id = Column(String(64), ForeignKey("stories.id"), nullable=False, comment="故事ID")
    requester_id = Column(String(64), ForeignKey("users.id"), nullable=False, comment="申请人")
    author_id = Column(String(64), ForeignKey("users.id"), nullable=False, comment="审批人（申请时的作者）")

    message = Column(Text, nullable=True, comment="申请留言")

    # 状态：pending / approved / denied
    status = Column(String(20), nullable=False, default="pending", comment="状态")

    # 时间戳
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, comment="创建时间")
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow, comment="更新时间")

    # 索引
    __table_args__ = (
        Index('idx_join_requests_story', 'story_id', 'status'),
        Index('idx_join_requests_author', 'author_id', 'status'),
    )
