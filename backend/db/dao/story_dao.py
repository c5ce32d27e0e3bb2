"""
故事数据访问对象
"""

from typing import Optional, List, Tuple
from datetime import datetime
from sqlalchemy import select, desc, and_
from sqlalchemy.ext.asyncio import AsyncSession

from backend.db.models.story import Story
from backend.db.models.participant import StoryParticipant
from backend.db.models.turn import StoryTurn
from backend.utils.id_generator import generate_story_id


class StoryDAO:
    """故事 DAO"""

    @staticmethod
    async def create(
        session: AsyncSession,
        creator_id: str,
        title: str,
        description: str,
        genre: str,
        word_limit: int,
        character_limit: int = 0,
        max_segments: int = 30,
        is_public: bool = True
    ) -> Story:
        """
        创建故事（创建者即初始作者）

        Args:
            session: 数据库会话
            creator_id: 创建者ID
            title: 标题
            description: 简介（开篇提示）
            genre: 类型
            word_limit: 每段字数上限
            character_limit: 每段字符上限（0 不限）
            max_segments: 目标段落数
            is_public: 是否允许公开加入

        Returns:
            Story: 新创建的故事对象
        """
        story = Story(
            id=generate_story_id(),
            creator_id=creator_id,
            author_id=creator_id,
            title=title,
            description=description,
            genre=genre,
            word_limit=word_limit,
            character_limit=character_limit,
            max_segments=max_segments,
            is_public=is_public,
            is_complete=False,
            is_edited=False,
        )

        session.add(story)
        await session.flush()

        return story

    @staticmethod
    async def get_by_id(
        session: AsyncSession,
        story_id: str,
        include_deleted: bool = False,
        for_update: bool = False
    ) -> Optional[Story]:
        """
        根据ID获取故事

        Args:
            session: 数据库会话
            story_id: 故事ID
            include_deleted: 是否包含已焚毁的故事
            for_update: 是否加行锁

        Returns:
            故事对象，不存在返回 None
        """
        query = select(Story).where(Story.id == story_id)
        if not include_deleted:
            query = query.where(Story.deleted_at.is_(None))
        if for_update:
            query = query.with_for_update()

        result = await session.execute(query)
        return result.scalar_one_or_none()

    @staticmethod
    async def update_fields(session: AsyncSession, story: Story, **fields) -> Story:
        """更新故事字段"""
        for key, value in fields.items():
            setattr(story, key, value)
        story.updated_at = datetime.utcnow()
        await session.flush()
        return story

    @staticmethod
    async def mark_complete(session: AsyncSession, story: Story) -> Story:
        """标记故事完结"""
        story.is_complete = True
        story.completed_at = datetime.utcnow()
        story.updated_at = story.completed_at
        await session.flush()
        return story

    @staticmethod
    async def soft_delete(session: AsyncSession, story: Story) -> None:
        """焚毁故事（软删除故事行）"""
        story.deleted_at = datetime.utcnow()
        await session.flush()

    @staticmethod
    async def get_public_stories(
        session: AsyncSession,
        limit: int = 20,
        offset: int = 0
    ) -> List[Story]:
        """获取公开故事列表（最新优先）"""
        result = await session.execute(
            select(Story)
            .where(and_(Story.is_public.is_(True), Story.deleted_at.is_(None)))
            .order_by(desc(Story.created_at))
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())

    @staticmethod
    async def get_user_stories(session: AsyncSession, user_id: str) -> List[Story]:
        """获取用户参与的故事（最近更新优先）"""
        result = await session.execute(
            select(Story)
            .join(StoryParticipant, StoryParticipant.story_id == Story.id)
            .where(and_(StoryParticipant.user_id == user_id, Story.deleted_at.is_(None)))
            .order_by(desc(Story.updated_at))
        )
        return list(result.scalars().all())

    @staticmethod
    async def get_authored_stories(session: AsyncSession, user_id: str) -> List[Story]:
        """获取用户当前作为作者的故事"""
        result = await session.execute(
            select(Story).where(and_(Story.author_id == user_id, Story.deleted_at.is_(None)))
        )
        return list(result.scalars().all())

    @staticmethod
    async def get_open_stories_with_turns(session: AsyncSession, user_id: str) -> List[Tuple[Story, StoryTurn]]:
        """
        获取用户参与的未完结故事及其回合账本

        Returns:
            [(Story, StoryTurn), ...]，最近轮转的优先
        """
        result = await session.execute(
            select(Story, StoryTurn)
            .join(StoryParticipant, StoryParticipant.story_id == Story.id)
            .join(StoryTurn, StoryTurn.story_id == Story.id)
            .where(
                and_(
                    StoryParticipant.user_id == user_id,
                    Story.is_complete.is_(False),
                    Story.deleted_at.is_(None)
                )
            )
            .order_by(desc(StoryTurn.updated_at))
        )
        return [(story, turn) for story, turn in result.all()]
