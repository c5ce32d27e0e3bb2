"""
故事邀请表 ORM 模型
"""

from sqlalchemy import Column, String, TIMESTAMP, ForeignKey, Index
from datetime import datetime

from backend.db.base import Base


class StoryInvitation(Base):
    """故事邀请表（invitee_id 与 invitee_email 二选一）"""
    __tablename__ = "story_invitations"

    # 主键
    id = Column(String(64), primary_key=True, comment="邀请ID")

    # 外键
    story_id = Column(String(64), ForeignKey("stories.id"), nullable=False, comment="故事ID")
    inviter_id = Column(String(64), ForeignKey("users.id"), nullable=False, comment="邀请人")
    invitee_id = Column(String(64), ForeignKey("users.id"), nullable=True, comment="被邀请用户")
    invitee_email = Column(String(128), nullable=True, comment="被邀请邮箱（尚未注册）")

    # 状态：pending / accepted / declined / expired
    status = Column(String(20), nullable=False, default="pending", comment="状态")
    token = Column(String(128), unique=True, nullable=False, comment="邀请令牌")
    expires_at = Column(TIMESTAMP, nullable=False, comment="过期时间")

    # 时间戳
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, comment="创建时间")
    responded_at = Column(TIMESTAMP, nullable=True, comment="响应时间")

    # 索引
    __table_args__ = (
        Index('idx_invitations_story', 'story_id', 'status'),
        Index('idx_invitations_invitee', 'invitee_id', 'status'),
        Index('idx_invitations_email', 'invitee_email', 'status'),
    )
