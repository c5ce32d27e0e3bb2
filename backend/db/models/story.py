"""
故事表 ORM 模型
"""

from sqlalchemy import Column, String, Text, Integer, Boolean, TIMESTAMP, ForeignKey, Index
from datetime import datetime

from backend.db.base import Base


class Story(Base):
    """故事表"""
    __tablename__ = "stories"

    # 主键
    id = Column(String(64), primary_key=True, comment="故事ID")

    # 外键
    creator_id = Column(String(64), ForeignKey("users.id"), nullable=False, comment="创建者（不可变）")
    author_id = Column(String(64), ForeignKey("users.id"), nullable=False, comment="当前作者（可转移）")

    # 基本信息
    title = Column(String(256), nullable=False, comment="故事标题")
    description = Column(Text, nullable=False, comment="故事简介，同时作为开篇提示")
    genre = Column(String(64), nullable=False, comment="类型")

    # 写作规则
    word_limit = Column(Integer, nullable=False, comment="每段字数上限")
    character_limit = Column(Integer, nullable=False, default=0, comment="每段字符上限（0 表示不限）")
    max_segments = Column(Integer, nullable=False, default=30, comment="目标段落数（仅用于进度展示）")

    # 状态
    is_complete = Column(Boolean, nullable=False, default=False, comment="是否已完结")
    is_public = Column(Boolean, nullable=False, default=True, comment="是否允许公开加入")
    is_edited = Column(Boolean, nullable=False, default=False, comment="是否被编辑请求修改过")

    # 时间戳
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, comment="创建时间")
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow, comment="更新时间")
    completed_at = Column(TIMESTAMP, nullable=True, comment="完结时间")
    deleted_at = Column(TIMESTAMP, nullable=True, comment="焚毁时间")

    # 索引
    __table_args__ = (
        Index('idx_stories_author_id', 'author_id'),
        Index('idx_stories_public', 'is_public', 'is_complete'),
        Index('idx_stories_updated_at', 'updated_at'),
    )
