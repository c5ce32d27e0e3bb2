"""
数据访问对象（DAO）层

封装数据库操作，提供给服务层使用（只 flush，不 commit）
"""

from .user_dao import UserDAO
from .story_dao import StoryDAO
from .participant_dao import ParticipantDAO
from .turn_dao import TurnDAO
from .segment_dao import SegmentDAO
from .edit_request_dao import EditRequestDAO
from .invitation_dao import InvitationDAO
from .join_request_dao import JoinRequestDAO

__all__ = [
    "UserDAO",
    "StoryDAO",
    "ParticipantDAO",
    "TurnDAO",
    "SegmentDAO",
    "EditRequestDAO",
    "InvitationDAO",
    "JoinRequestDAO",
]
