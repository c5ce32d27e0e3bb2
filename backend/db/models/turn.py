"""
回合账本表 ORM 模型
"""

from sqlalchemy import Column, String, Integer, TIMESTAMP, ForeignKey
from datetime import datetime

from backend.db.base import Base


class StoryTurn(Base):
    """回合账本表（每个故事一行）"""
    __tablename__ = "story_turns"

    # 主键（一个故事只有一个账本）
    story_id = Column(String(64), ForeignKey("stories.id"), primary_key=True, comment="故事ID")

    # 回合状态
    current_turn = Column(Integer, nullable=False, default=1, comment="当前回合（从1开始单调递增）")
    current_user_id = Column(String(64), ForeignKey("users.id"), nullable=False, comment="当前回合持有者")

    # 时间戳
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow, comment="更新时间")
