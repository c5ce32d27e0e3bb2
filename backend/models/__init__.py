"""
数据模型模块

导出所有 Pydantic 数据模型，用于 API 请求/响应验证
"""

# 通用响应
from .response import ApiResponse

# 用户模块
from .user import UserStatus, UserCreate, UserLogin

# 故事模块
from .story import ParticipantRole, StoryCreate, StoryUpdate, OwnershipTransfer

# 段落模块
from .segment import SegmentCreate

# 编辑请求模块
from .edit_request import (
    EditType, EditRequestStatus,
    SegmentEditPayload, MetadataEditPayload, EditTarget, EditRequestCreate
)

# 邀请模块
from .invitation import InvitationStatus, JoinRequestStatus, InviteCreate, JoinRequestCreate

__all__ = [
    # Response
    "ApiResponse",

    # User
    "UserStatus",
    "UserCreate",
    "UserLogin",

    # Story
    "ParticipantRole",
    "StoryCreate",
    "StoryUpdate",
    "OwnershipTransfer",

    # Segment
    "SegmentCreate",

    # Edit request
    "EditType",
    "EditRequestStatus",
    "SegmentEditPayload",
    "MetadataEditPayload",
    "EditTarget",
    "EditRequestCreate",

    # Invitation
    "InvitationStatus",
    "JoinRequestStatus",
    "InviteCreate",
    "JoinRequestCreate",
]
