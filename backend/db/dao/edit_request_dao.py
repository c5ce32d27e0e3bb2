"""
编辑请求数据访问对象
"""

from typing import Optional, List
from datetime import datetime
from sqlalchemy import select, desc, and_
from sqlalchemy.ext.asyncio import AsyncSession

from backend.db.models.edit_request import StoryEditRequest
from backend.utils.id_generator import generate_edit_request_id


class EditRequestDAO:
    """编辑请求 DAO"""

    @staticmethod
    async def create(
        session: AsyncSession,
        story_id: str,
        requester_id: str,
        author_id: str,
        edit_type: str,
        segment_id: Optional[str] = None,
        original_content: Optional[str] = None,
        proposed_content: Optional[str] = None,
        original_title: Optional[str] = None,
        original_description: Optional[str] = None,
        original_genre: Optional[str] = None,
        proposed_title: Optional[str] = None,
        proposed_description: Optional[str] = None,
        proposed_genre: Optional[str] = None,
        reason: Optional[str] = None
    ) -> StoryEditRequest:
        """
        创建编辑请求（原内容在此刻快照）

        Returns:
            StoryEditRequest: 待审批的编辑请求
        """
        edit_request = StoryEditRequest(
            id=generate_edit_request_id(),
            story_id=story_id,
            segment_id=segment_id,
            requester_id=requester_id,
            author_id=author_id,
            edit_type=edit_type,
            original_content=original_content,
            proposed_content=proposed_content,
            original_title=original_title,
            original_description=original_description,
            original_genre=original_genre,
            proposed_title=proposed_title,
            proposed_description=proposed_description,
            proposed_genre=proposed_genre,
            reason=reason,
            status="pending",
        )

        session.add(edit_request)
        await session.flush()

        return edit_request

    @staticmethod
    async def get_by_id(
        session: AsyncSession,
        request_id: str,
        for_update: bool = False
    ) -> Optional[StoryEditRequest]:
        """根据ID获取编辑请求（审批时加行锁，先到者生效）"""
        query = select(StoryEditRequest).where(StoryEditRequest.id == request_id)
        if for_update:
            query = query.with_for_update()

        result = await session.execute(query)
        return result.scalar_one_or_none()

    @staticmethod
    async def resolve(
        session: AsyncSession,
        edit_request: StoryEditRequest,
        status: str,
        resolved_by: str
    ) -> StoryEditRequest:
        """写入终态（approved/denied）"""
        edit_request.status = status
        edit_request.resolved_by = resolved_by
        edit_request.resolved_at = datetime.utcnow()
        edit_request.updated_at = edit_request.resolved_at
        await session.flush()
        return edit_request

    @staticmethod
    async def list_pending_for_author(session: AsyncSession, story_ids: List[str]) -> List[StoryEditRequest]:
        """获取指定故事中待审批的编辑请求（最新优先）"""
        if not story_ids:
            return []
        result = await session.execute(
            select(StoryEditRequest)
            .where(
                and_(
                    StoryEditRequest.story_id.in_(story_ids),
                    StoryEditRequest.status == "pending"
                )
            )
            .order_by(desc(StoryEditRequest.created_at))
        )
        return list(result.scalars().all())

    @staticmethod
    async def list_by_story(
        session: AsyncSession,
        story_id: str,
        status: Optional[str] = None
    ) -> List[StoryEditRequest]:
        """获取故事的编辑请求"""
        query = select(StoryEditRequest).where(StoryEditRequest.story_id == story_id)
        if status:
            query = query.where(StoryEditRequest.status == status)

        result = await session.execute(query.order_by(desc(StoryEditRequest.created_at)))
        return list(result.scalars().all())
