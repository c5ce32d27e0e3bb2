"""
编辑请求路由
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backend.models import ApiResponse, EditRequestCreate
from backend.api.deps import get_current_user, get_db_session, raise_for_failure
from backend.services.edit_request_service import edit_request_service

router = APIRouter()


@router.post("/story/{story_id}/edit-requests", response_model=ApiResponse)
async def propose_edit(
    story_id: str,
    data: EditRequestCreate,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session)
):
    """
    发起编辑请求

    - **target.kind = segment**: 修改段落内容（segment_id 为空时修改开篇提示）
    - **target.kind = metadata**: 修改标题/简介/类型
    - 需要作者批准后才生效
    """
    return raise_for_failure(await edit_request_service.propose(session, story_id, current_user["user_id"], data))


@router.get("/story/{story_id}/edit-requests", response_model=ApiResponse)
async def list_story_edit_requests(
    story_id: str,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session)
):
    """故事的编辑请求（参与者可见）"""
    return raise_for_failure(
        await edit_request_service.list_story_requests(session, story_id, current_user["user_id"])
    )


@router.get("/edit-requests/pending", response_model=ApiResponse)
async def list_pending_edit_requests(
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session)
):
    """等待我审批的编辑请求"""
    return raise_for_failure(await edit_request_service.list_pending_for_author(session, current_user["user_id"]))


@router.post("/edit-requests/{request_id}/approve", response_model=ApiResponse)
async def approve_edit_request(
    request_id: str,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session)
):
    """批准编辑请求（仅当前作者）"""
    return raise_for_failure(await edit_request_service.approve(session, request_id, current_user["user_id"]))


@router.post("/edit-requests/{request_id}/deny", response_model=ApiResponse)
async def deny_edit_request(
    request_id: str,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session)
):
    """拒绝编辑请求（仅当前作者）"""
    return raise_for_failure(await edit_request_service.deny(session, request_id, current_user["user_id"]))
