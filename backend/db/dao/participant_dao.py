"""
参与者数据访问对象
"""

from typing import Optional, List
from sqlalchemy import select, func, and_, delete
from sqlalchemy.ext.asyncio import AsyncSession

from backend.db.models.participant import StoryParticipant


class ParticipantDAO:
    """参与者 DAO"""

    @staticmethod
    async def create(
        session: AsyncSession,
        story_id: str,
        user_id: str,
        role: str = "participant"
    ) -> StoryParticipant:
        """
        添加参与者

        Args:
            session: 数据库会话
            story_id: 故事ID
            user_id: 用户ID
            role: 角色（author/participant）

        Returns:
            StoryParticipant: 新创建的参与记录
        """
        participant = StoryParticipant(
            story_id=story_id,
            user_id=user_id,
            role=role,
        )

        session.add(participant)
        await session.flush()

        return participant

    @staticmethod
    async def get(session: AsyncSession, story_id: str, user_id: str) -> Optional[StoryParticipant]:
        """获取参与记录"""
        result = await session.execute(
            select(StoryParticipant).where(
                and_(
                    StoryParticipant.story_id == story_id,
                    StoryParticipant.user_id == user_id
                )
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def exists(session: AsyncSession, story_id: str, user_id: str) -> bool:
        """检查是否为参与者"""
        result = await session.execute(
            select(func.count(StoryParticipant.id)).where(
                and_(
                    StoryParticipant.story_id == story_id,
                    StoryParticipant.user_id == user_id
                )
            )
        )
        return (result.scalar() or 0) > 0

    @staticmethod
    async def list_by_story(session: AsyncSession, story_id: str) -> List[StoryParticipant]:
        """
        获取故事参与者（按加入顺序）

        轮转顺序以此为准，不得改用其他排序
        """
        result = await session.execute(
            select(StoryParticipant)
            .where(StoryParticipant.story_id == story_id)
            .order_by(StoryParticipant.id.asc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def count_by_story(session: AsyncSession, story_id: str) -> int:
        """统计参与者数量"""
        result = await session.execute(
            select(func.count(StoryParticipant.id)).where(StoryParticipant.story_id == story_id)
        )
        return result.scalar() or 0

    @staticmethod
    async def list_by_user(session: AsyncSession, user_id: str) -> List[StoryParticipant]:
        """获取用户的所有参与记录"""
        result = await session.execute(
            select(StoryParticipant).where(StoryParticipant.user_id == user_id)
        )
        return list(result.scalars().all())

    @staticmethod
    async def delete(session: AsyncSession, participant: StoryParticipant) -> None:
        """删除参与记录"""
        await session.delete(participant)
        await session.flush()

    @staticmethod
    async def delete_by_story(session: AsyncSession, story_id: str) -> int:
        """删除故事的全部参与者"""
        result = await session.execute(
            delete(StoryParticipant).where(StoryParticipant.story_id == story_id)
        )
        await session.flush()
        return result.rowcount or 0
