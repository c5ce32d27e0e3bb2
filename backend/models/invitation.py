"""
邀请 / 加入申请数据模型
"""

from typing import Optional
from pydantic import BaseModel, Field
from enum import Enum


class InvitationStatus(str, Enum):
    """邀请状态"""
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    EXPIRED = "expired"


class JoinRequestStatus(str, Enum):
    """加入申请状态"""
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"


class InviteCreate(BaseModel):
    """邀请协作者（邮箱或用户名）"""
    identifier: str = Field(..., min_length=1, max_length=256, description="被邀请人的邮箱或用户名")


class JoinRequestCreate(BaseModel):
    """申请加入私有故事"""
    message: Optional[str] = Field(None, max_length=1000, description="附言")
