"""
回合账本数据访问对象
"""

from typing import Optional
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from backend.db.models.turn import StoryTurn


class TurnDAO:
    """回合账本 DAO"""

    @staticmethod
    async def create(session: AsyncSession, story_id: str, user_id: str) -> StoryTurn:
        """创建账本：第 1 回合属于创建者"""
        turn = StoryTurn(
            story_id=story_id,
            current_turn=1,
            current_user_id=user_id,
        )

        session.add(turn)
        await session.flush()

        return turn

    @staticmethod
    async def get(session: AsyncSession, story_id: str, for_update: bool = False) -> Optional[StoryTurn]:
        """
        获取故事账本

        Args:
            session: 数据库会话
            story_id: 故事ID
            for_update: 是否加行锁（SELECT ... FOR UPDATE），读后写的操作必须加锁

        Returns:
            账本，不存在返回 None
        """
        query = select(StoryTurn).where(StoryTurn.story_id == story_id)
        if for_update:
            query = query.with_for_update()

        result = await session.execute(query)
        return result.scalar_one_or_none()

    @staticmethod
    async def set_holder(session: AsyncSession, turn: StoryTurn, next_turn: int, user_id: str) -> StoryTurn:
        """写入新的回合号与持有者"""
        turn.current_turn = next_turn
        turn.current_user_id = user_id
        await session.flush()
        return turn

    @staticmethod
    async def delete_by_story(session: AsyncSession, story_id: str) -> int:
        """删除故事账本"""
        result = await session.execute(
            delete(StoryTurn).where(StoryTurn.story_id == story_id)
        )
        await session.flush()
        return result.rowcount or 0
