"""
编辑请求表 ORM 模型
"""

from sqlalchemy import Column, String, Text, TIMESTAMP, ForeignKey, Index
from datetime import datetime

from backend.db.base import Base


class StoryEditRequest(Base):
    """编辑请求表（故事焚毁后保留，用于审计）"""
    __tablename__ = "story_edit_requests"

    # 主键
    id = Column(String(64), primary_key=True, comment="编辑请求ID")

    # 外键（不对 stories / story_segments 建外键：故事焚毁后请求仍需可查）
    story_id = Column(String(64), nullable=False, comment="故事ID")
    segment_id = Column(String(64), nullable=True, comment="目标段落ID（为空表示故事元数据或开篇提示）")
    requester_id = Column(String(64), ForeignKey("users.id"), nullable=False, comment="发起人")
    author_id = Column(String(64), ForeignKey("users.id"), nullable=False, comment="发起时的故事作者")

    # 编辑类型：segment_content / story_metadata
    edit_type = Column(String(32), nullable=False, comment="编辑类型")

    # 段落内容快照
    original_content = Column(Text, nullable=True, comment="原内容快照")
    proposed_content = Column(Text, nullable=True, comment="建议内容")

    # 元数据快照
    original_title = Column(String(256), nullable=True, comment="原标题")
    original_description = Column(Text, nullable=True, comment="原简介")
    original_genre = Column(String(64), nullable=True, comment="原类型")
    proposed_title = Column(String(256), nullable=True, comment="建议标题")
    proposed_description = Column(Text, nullable=True, comment="建议简介")
    proposed_genre = Column(String(64), nullable=True, comment="建议类型")

    reason = Column(Text, nullable=True, comment="编辑理由")

    # 状态：pending / approved / denied
    status = Column(String(20), nullable=False, default="pending", comment="状态")
    resolved_by = Column(String(64), ForeignKey("users.id"), nullable=True, comment="处理人")

    # 时间戳
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, comment="创建时间")
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow, comment="更新时间")
    resolved_at = Column(TIMESTAMP, nullable=True, comment="处理时间")

    # 索引
    __table_args__ = (
        Index('idx_edit_requests_story', 'story_id', 'status'),
        Index('idx_edit_requests_author', 'author_id', 'status'),
        Index('idx_edit_requests_requester', 'requester_id'),
    )
