"""
用户模块路由
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from backend.models import ApiResponse, UserCreate, UserLogin
from backend.api.deps import get_current_user, get_db_session, raise_for_failure
from backend.services.user_service import user_service
from backend.services.invitation_service import invitation_service

router = APIRouter()


@router.post("/register", response_model=ApiResponse)
async def register(
    data: UserCreate,
    session: AsyncSession = Depends(get_db_session)
):
    """
    用户注册

    - **username**: 用户名（3-30字符）
    - **email**: 邮箱
    - **password**: 密码（至少6字符）
    """
    return raise_for_failure(await user_service.register(session, data))


@router.post("/login", response_model=ApiResponse)
async def login(
    data: UserLogin,
    session: AsyncSession = Depends(get_db_session)
):
    """用户登录（邮箱 + 密码）"""
    return raise_for_failure(await user_service.login(session, data))


@router.get("/me", response_model=ApiResponse)
async def get_me(
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session)
):
    """获取当前用户信息"""
    return raise_for_failure(await user_service.get_user(session, current_user["user_id"]))


@router.delete("/me", response_model=ApiResponse)
async def delete_me(
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session)
):
    """
    注销账号

    - 作为作者的故事交给下一位参与者；独自一人的故事会被焚毁
    - 持有的回合会先传给下一位
    """
    return raise_for_failure(await user_service.delete_account(session, current_user["user_id"]))


@router.get("/me/invitations", response_model=ApiResponse)
async def get_my_invitations(
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session)
):
    """获取待处理的邀请"""
    return raise_for_failure(await invitation_service.list_pending_invitations(session, current_user["user_id"]))


@router.get("/lookup", response_model=ApiResponse)
async def lookup_user(
    identifier: str = Query(..., min_length=1, description="邮箱或用户名"),
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session)
):
    """按邮箱或用户名查找用户"""
    return raise_for_failure(await user_service.lookup(session, identifier))


@router.get("/{user_id}", response_model=ApiResponse)
async def get_user(
    user_id: str,
    session: AsyncSession = Depends(get_db_session)
):
    """获取用户公开信息"""
    return raise_for_failure(await user_service.get_user(session, user_id))
