"""
邀请路由
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backend.models import ApiResponse, InviteCreate
from backend.api.deps import get_current_user, get_db_session, raise_for_failure
from backend.services.invitation_service import invitation_service

router = APIRouter()


@router.post("/story/{story_id}/invitations", response_model=ApiResponse)
async def invite_collaborator(
    story_id: str,
    data: InviteCreate,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session)
):
    """
    邀请协作者

    - **identifier**: 邮箱或用户名；未注册的邮箱会收到邀请邮件
    - 被邀请人接受后才成为参与者
    """
    return raise_for_failure(
        await invitation_service.invite(session, story_id, current_user["user_id"], data.identifier)
    )


@router.post("/invitations/token/{token}/accept", response_model=ApiResponse)
async def accept_invitation_by_token(
    token: str,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session)
):
    """通过邮件链接接受邀请"""
    return raise_for_failure(await invitation_service.accept_by_token(session, token, current_user["user_id"]))


@router.post("/invitations/{invitation_id}/accept", response_model=ApiResponse)
async def accept_invitation(
    invitation_id: str,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session)
):
    """接受邀请"""
    return raise_for_failure(await invitation_service.accept(session, invitation_id, current_user["user_id"]))


@router.post("/invitations/{invitation_id}/decline", response_model=ApiResponse)
async def decline_invitation(
    invitation_id: str,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session)
):
    """拒绝邀请"""
    return raise_for_failure(await invitation_service.decline(session, invitation_id, current_user["user_id"]))
