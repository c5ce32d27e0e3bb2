"""
故事模块路由
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from backend.models import ApiResponse, StoryCreate, StoryUpdate, OwnershipTransfer
from backend.api.deps import get_current_user, get_db_session, raise_for_failure
from backend.services.story_service import story_service

router = APIRouter()


@router.post("/create", response_model=ApiResponse)
async def create_story(
    data: StoryCreate,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session)
):
    """
    创建故事

    - 创建者自动成为作者并持有第 1 回合
    - **word_limit**: 每段字数上限
    - **character_limit**: 每段字符上限（0 表示不限）
    """
    return raise_for_failure(await story_service.create_story(session, current_user["user_id"], data))


@router.get("/public", response_model=ApiResponse)
async def list_public_stories(
    page: int = Query(1, ge=1, description="页码"),
    limit: Optional[int] = Query(None, ge=1, description="每页数量"),
    session: AsyncSession = Depends(get_db_session)
):
    """公开故事列表"""
    return raise_for_failure(await story_service.list_public_stories(session, page, limit))


@router.get("/mine", response_model=ApiResponse)
async def list_my_stories(
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session)
):
    """我参与的故事"""
    return raise_for_failure(await story_service.get_my_stories(session, current_user["user_id"]))


@router.get("/my-turn", response_model=ApiResponse)
async def list_my_turn_stories(
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session)
):
    """轮到我写的故事"""
    return raise_for_failure(await story_service.get_my_turn_stories(session, current_user["user_id"]))


@router.get("/waiting", response_model=ApiResponse)
async def list_waiting_stories(
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session)
):
    """等待其他人写作的故事"""
    return raise_for_failure(await story_service.get_waiting_stories(session, current_user["user_id"]))


@router.get("/{story_id}", response_model=ApiResponse)
async def get_story(
    story_id: str,
    session: AsyncSession = Depends(get_db_session)
):
    """
    获取故事详情

    - 包含当前回合、参与人数、段落数和进度
    """
    return raise_for_failure(await story_service.get_story(session, story_id))


@router.patch("/{story_id}", response_model=ApiResponse)
async def update_story(
    story_id: str,
    data: StoryUpdate,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session)
):
    """
    更新标题/写作规则（仅作者）

    - 新规则只对之后提交的段落生效
    """
    return raise_for_failure(await story_service.update_story(session, story_id, current_user["user_id"], data))


@router.post("/{story_id}/complete", response_model=ApiResponse)
async def complete_story(
    story_id: str,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session)
):
    """完结故事（任何参与者）"""
    return raise_for_failure(await story_service.complete_story(session, story_id, current_user["user_id"]))


@router.delete("/{story_id}", response_model=ApiResponse)
async def burn_story(
    story_id: str,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session)
):
    """
    焚毁故事（仅作者）

    - 删除参与者、段落和回合账本
    - 完整故事会通过邮件发给所有参与者
    """
    return raise_for_failure(await story_service.delete_story(session, story_id, current_user["user_id"]))


@router.post("/{story_id}/transfer", response_model=ApiResponse)
async def transfer_ownership(
    story_id: str,
    data: OwnershipTransfer,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session)
):
    """转移作者身份给其他参与者"""
    return raise_for_failure(
        await story_service.transfer_ownership(session, story_id, current_user["user_id"], data.new_author_id)
    )
