"""
段落与回合路由
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backend.models import ApiResponse, SegmentCreate
from backend.api.deps import get_current_user, get_db_session, raise_for_failure
from backend.services.segment_service import segment_service
from backend.services.turn_service import turn_service

router = APIRouter()


@router.get("/{story_id}/segments", response_model=ApiResponse)
async def list_segments(
    story_id: str,
    session: AsyncSession = Depends(get_db_session)
):
    """获取段落（按回合号升序）"""
    return raise_for_failure(await segment_service.list_segments(session, story_id))


@router.post("/{story_id}/segments", response_model=ApiResponse)
async def submit_segment(
    story_id: str,
    data: SegmentCreate,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session)
):
    """
    提交段落

    - 只有当前回合持有者可以提交
    - 成功后回合自动轮到下一位参与者
    """
    return raise_for_failure(await segment_service.submit(session, story_id, current_user["user_id"], data))


@router.get("/{story_id}/turn", response_model=ApiResponse)
async def get_current_turn(
    story_id: str,
    session: AsyncSession = Depends(get_db_session)
):
    """获取当前回合及持有者"""
    return raise_for_failure(await turn_service.get_current_turn(session, story_id))


@router.post("/{story_id}/turn/skip", response_model=ApiResponse)
async def skip_turn(
    story_id: str,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session)
):
    """跳过当前回合（持有者本人或作者）"""
    return raise_for_failure(await turn_service.skip(session, story_id, current_user["user_id"]))
