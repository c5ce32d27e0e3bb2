"""
参与者与加入申请路由
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backend.models import ApiResponse, JoinRequestCreate
from backend.api.deps import get_current_user, get_db_session, raise_for_failure
from backend.services.participant_service import participant_service
from backend.services.invitation_service import invitation_service

router = APIRouter()


@router.get("/story/{story_id}/participants", response_model=ApiResponse)
async def list_participants(
    story_id: str,
    session: AsyncSession = Depends(get_db_session)
):
    """参与者列表（按加入顺序）"""
    return raise_for_failure(await participant_service.list_participants(session, story_id))


@router.post("/story/{story_id}/join", response_model=ApiResponse)
async def join_story(
    story_id: str,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session)
):
    """直接加入公开故事"""
    return raise_for_failure(await invitation_service.join(session, story_id, current_user["user_id"]))


@router.post("/story/{story_id}/leave", response_model=ApiResponse)
async def leave_story(
    story_id: str,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session)
):
    """
    离开故事

    - 作者不能离开
    - 轮到自己时不能离开，需要先跳过回合
    """
    return raise_for_failure(
        await participant_service.remove_participant(session, story_id, current_user["user_id"])
    )


@router.post("/story/{story_id}/join-requests", response_model=ApiResponse)
async def request_join(
    story_id: str,
    data: JoinRequestCreate,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session)
):
    """申请加入私有故事"""
    return raise_for_failure(
        await invitation_service.request_join(session, story_id, current_user["user_id"], data.message)
    )


@router.get("/join-requests/pending", response_model=ApiResponse)
async def list_pending_join_requests(
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session)
):
    """等待我处理的加入申请"""
    return raise_for_failure(
        await invitation_service.list_pending_join_requests(session, current_user["user_id"])
    )


@router.post("/join-requests/{request_id}/approve", response_model=ApiResponse)
async def approve_join_request(
    request_id: str,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session)
):
    """批准加入申请（仅作者）"""
    return raise_for_failure(
        await invitation_service.resolve_join_request(session, request_id, current_user["user_id"], approve=True)
    )


@router.post("/join-requests/{request_id}/deny", response_model=ApiResponse)
async def deny_join_request(
    request_id: str,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session)
):
    """拒绝加入申请（仅作者）"""
    return raise_for_failure(
        await invitation_service.resolve_join_request(session, request_id, current_user["user_id"], approve=False)
    )
