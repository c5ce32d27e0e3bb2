"""
段落数据访问对象
"""

from typing import Optional, List
from datetime import datetime
from sqlalchemy import select, func, delete
from sqlalchemy.ext.asyncio import AsyncSession

from backend.db.models.segment import StorySegment
from backend.utils.id_generator import generate_segment_id


class SegmentDAO:
    """段落 DAO"""

    @staticmethod
    async def create(
        session: AsyncSession,
        story_id: str,
        user_id: str,
        turn: int,
        content: str,
        word_count: int,
        character_count: int
    ) -> StorySegment:
        """
        写入段落

        Args:
            session: 数据库会话
            story_id: 故事ID
            user_id: 作者ID
            turn: 消耗的回合号
            content: 内容
            word_count: 字数
            character_count: 字符数

        Returns:
            StorySegment: 新段落
        """
        segment = StorySegment(
            id=generate_segment_id(),
            story_id=story_id,
            user_id=user_id,
            turn=turn,
            content=content,
            word_count=word_count,
            character_count=character_count,
            is_edited=False,
        )

        session.add(segment)
        await session.flush()

        return segment

    @staticmethod
    async def get_by_id(session: AsyncSession, segment_id: str) -> Optional[StorySegment]:
        """根据ID获取段落"""
        result = await session.execute(
            select(StorySegment).where(StorySegment.id == segment_id)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def list_by_story(session: AsyncSession, story_id: str) -> List[StorySegment]:
        """获取故事全部段落（按回合升序）"""
        result = await session.execute(
            select(StorySegment)
            .where(StorySegment.story_id == story_id)
            .order_by(StorySegment.turn.asc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def count_by_story(session: AsyncSession, story_id: str) -> int:
        """统计段落数"""
        result = await session.execute(
            select(func.count(StorySegment.id)).where(StorySegment.story_id == story_id)
        )
        return result.scalar() or 0

    @staticmethod
    async def apply_edit(
        session: AsyncSession,
        segment: StorySegment,
        content: str,
        word_count: int,
        character_count: int,
        edited_by: str
    ) -> StorySegment:
        """应用已批准的编辑（不改变回合号）"""
        segment.content = content
        segment.word_count = word_count
        segment.character_count = character_count
        segment.is_edited = True
        segment.last_edited_at = datetime.utcnow()
        segment.edited_by = edited_by
        await session.flush()
        return segment

    @staticmethod
    async def delete_by_story(session: AsyncSession, story_id: str) -> int:
        """删除故事的全部段落"""
        result = await session.execute(
            delete(StorySegment).where(StorySegment.story_id == story_id)
        )
        await session.flush()
        return result.rowcount or 0
