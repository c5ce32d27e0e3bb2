"""
加入申请数据访问对象
"""

from typing import Optional, List
from sqlalchemy import select, desc, and_, delete
from sqlalchemy.ext.asyncio import AsyncSession

from backend.db.models.join_request import StoryJoinRequest
from backend.utils.id_generator import generate_join_request_id


class JoinRequestDAO:
    """加入申请 DAO"""

    @staticmethod
    async def create(
        session: AsyncSession,
        story_id: str,
        requester_id: str,
        author_id: str,
        message: Optional[str] = None
    ) -> StoryJoinRequest:
        """创建加入申请"""
        join_request = StoryJoinRequest(
            id=generate_join_request_id(),
            story_id=story_id,
            requester_id=requester_id,
            author_id=author_id,
            message=message,
            status="pending",
        )

        session.add(join_request)
        await session.flush()

        return join_request

    @staticmethod
    async def get_by_id(
        session: AsyncSession,
        request_id: str,
        for_update: bool = False
    ) -> Optional[StoryJoinRequest]:
        """根据ID获取加入申请"""
        query = select(StoryJoinRequest).where(StoryJoinRequest.id == request_id)
        if for_update:
            query = query.with_for_update()

        result = await session.execute(query)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_pending(session: AsyncSession, story_id: str, requester_id: str) -> Optional[StoryJoinRequest]:
        """获取某用户对某故事的待处理申请"""
        result = await session.execute(
            select(StoryJoinRequest).where(
                and_(
                    StoryJoinRequest.story_id == story_id,
                    StoryJoinRequest.requester_id == requester_id,
                    StoryJoinRequest.status == "pending"
                )
            )
        )
        return result.scalars().first()

    @staticmethod
    async def list_pending_for_stories(session: AsyncSession, story_ids: List[str]) -> List[StoryJoinRequest]:
        """获取指定故事的待处理申请（最新优先）"""
        if not story_ids:
            return []
        result = await session.execute(
            select(StoryJoinRequest)
            .where(
                and_(
                    StoryJoinRequest.story_id.in_(story_ids),
                    StoryJoinRequest.status == "pending"
                )
            )
            .order_by(desc(StoryJoinRequest.created_at))
        )
        return list(result.scalars().all())

    @staticmethod
    async def set_status(session: AsyncSession, join_request: StoryJoinRequest, status: str) -> StoryJoinRequest:
        """更新申请状态"""
        join_request.status = status
        await session.flush()
        return join_request

    @staticmethod
    async def delete_by_story(session: AsyncSession, story_id: str) -> int:
        """删除故事的全部加入申请"""
        result = await session.execute(
            delete(StoryJoinRequest).where(StoryJoinRequest.story_id == story_id)
        )
        await session.flush()
        return result.rowcount or 0
