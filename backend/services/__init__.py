"""
业务服务层
"""

from .errors import ErrorCode, ErrorKind, InvariantViolation, error_response, error_status
from .notification_service import notification_service, NotificationService
from .turn_service import turn_service, TurnService
from .participant_service import participant_service, ParticipantService
from .segment_service import segment_service, SegmentService
from .story_service import story_service, StoryService
from .edit_request_service import edit_request_service, EditRequestService
from .invitation_service import invitation_service, InvitationService
from .user_service import user_service, UserService

__all__ = [
    # 错误定义
    "ErrorCode",
    "ErrorKind",
    "InvariantViolation",
    "error_response",
    "error_status",
    # 通知
    "NotificationService",
    # 协作引擎
    "TurnService",
    "ParticipantService",
    "SegmentService",
    "StoryService",
    "EditRequestService",
    "InvitationService",
    # 账号
    "UserService",
    # 全局服务实例
    "notification_service",
    "turn_service",
    "participant_service",
    "segment_service",
    "story_service",
    "edit_request_service",
    "invitation_service",
    "user_service",
]
