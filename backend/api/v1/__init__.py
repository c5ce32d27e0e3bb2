"""
API v1 路由汇总
"""

from fastapi import APIRouter

from .user import router as user_router
from .story import router as story_router
from .segment import router as segment_router
from .participant import router as participant_router
from .invitation import router as invitation_router
from .edit_request import router as edit_request_router

# 创建 v1 API 路由
api_router = APIRouter()

# 注册子路由（按前缀分组）
api_router.include_router(user_router, prefix="/user", tags=["User"])
api_router.include_router(story_router, prefix="/story", tags=["Story"])
api_router.include_router(segment_router, prefix="/story", tags=["Turn"])

# 成员与协作
api_router.include_router(participant_router, tags=["Participant"])
api_router.include_router(invitation_router, tags=["Invitation"])
api_router.include_router(edit_request_router, tags=["EditRequest"])
