"""
故事服务

处理故事创建、查询、完结、焚毁、规则更新、作者转移等业务逻辑
"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from backend.config.logging import engine_logger
from backend.config.settings import settings
from backend.db.dao import (
    StoryDAO, TurnDAO, SegmentDAO, ParticipantDAO, UserDAO,
    InvitationDAO, JoinRequestDAO
)
from backend.models import ApiResponse, ParticipantRole, StoryCreate, StoryUpdate
from backend.services.errors import ErrorCode, error_response
from backend.services.notification_service import notification_service
from backend.services.presenters import story_to_dict, turn_to_dict, user_brief
from backend.services.turn_service import turn_service


def _validate_limits(
    word_limit: Optional[int] = None,
    character_limit: Optional[int] = None,
    max_segments: Optional[int] = None
) -> Optional[ApiResponse]:
    """按配置校验写作规则，合法时返回 None"""
    if word_limit is not None and not (settings.WORD_LIMIT_MIN <= word_limit <= settings.WORD_LIMIT_MAX):
        return error_response(
            ErrorCode.INVALID_PAYLOAD,
            f"word_limit must be between {settings.WORD_LIMIT_MIN} and {settings.WORD_LIMIT_MAX}",
            field="word_limit",
            min=settings.WORD_LIMIT_MIN,
            max=settings.WORD_LIMIT_MAX,
        )
    if character_limit is not None and not (0 <= character_limit <= settings.CHARACTER_LIMIT_MAX):
        return error_response(
            ErrorCode.INVALID_PAYLOAD,
            f"character_limit must be between 0 and {settings.CHARACTER_LIMIT_MAX}",
            field="character_limit",
            min=0,
            max=settings.CHARACTER_LIMIT_MAX,
        )
    if max_segments is not None and not (settings.MAX_SEGMENTS_MIN <= max_segments <= settings.MAX_SEGMENTS_MAX):
        return error_response(
            ErrorCode.INVALID_PAYLOAD,
            f"max_segments must be between {settings.MAX_SEGMENTS_MIN} and {settings.MAX_SEGMENTS_MAX}",
            field="max_segments",
            min=settings.MAX_SEGMENTS_MIN,
            max=settings.MAX_SEGMENTS_MAX,
        )
    return None


class StoryService:
    """故事服务"""

    async def create_story(self, session: AsyncSession, user_id: str, story_data: StoryCreate) -> ApiResponse:
        """
        创建故事

        同一事务内创建故事、作者参与记录和第 1 回合账本

        Args:
            session: 数据库会话
            user_id: 创建者
            story_data: 故事创建数据

        Returns:
            API响应，包含故事信息
        """
        max_segments = story_data.max_segments or settings.DEFAULT_MAX_SEGMENTS
        invalid = _validate_limits(story_data.word_limit, story_data.character_limit, max_segments)
        if invalid:
            return invalid

        story = await StoryDAO.create(
            session=session,
            creator_id=user_id,
            title=story_data.title.strip(),
            description=story_data.description.strip(),
            genre=story_data.genre.strip(),
            word_limit=story_data.word_limit,
            character_limit=story_data.character_limit,
            max_segments=max_segments,
            is_public=story_data.is_public,
        )
        await ParticipantDAO.create(session, story.id, user_id, role=ParticipantRole.AUTHOR.value)
        turn = await turn_service.initialize(session, story.id, user_id)

        engine_logger("lifecycle", story_id=story.id, user_id=user_id).info(f"Story created: {story.title}")

        data = story_to_dict(story)
        data["turn"] = turn_to_dict(turn)
        return ApiResponse(success=True, message="Story created", data=data)

    async def get_story(self, session: AsyncSession, story_id: str) -> ApiResponse:
        """
        获取故事详情

        Returns:
            API响应，包含故事、当前回合、参与人数、段落数和进度
        """
        story = await StoryDAO.get_by_id(session, story_id)
        if not story:
            return error_response(ErrorCode.STORY_NOT_FOUND, "Story not found", story_id=story_id)

        turn = await turn_service.require_turn(session, story_id)
        holder = await UserDAO.get_by_id(session, turn.current_user_id)
        segment_count = await SegmentDAO.count_by_story(session, story_id)

        data = story_to_dict(story)
        data.update({
            "turn": turn_to_dict(turn, holder),
            "participant_count": await ParticipantDAO.count_by_story(session, story_id),
            "segment_count": segment_count,
            "progress": round(min(segment_count / story.max_segments, 1.0), 4) if story.max_segments else 0.0,
        })
        return ApiResponse(success=True, data=data)

    async def list_public_stories(
        self,
        session: AsyncSession,
        page: int = 1,
        limit: Optional[int] = None
    ) -> ApiResponse:
        """获取公开故事列表"""
        page = max(page, 1)
        limit = max(1, min(limit or settings.DEFAULT_PAGE_SIZE, settings.MAX_PAGE_SIZE))
        stories = await StoryDAO.get_public_stories(session, limit=limit, offset=(page - 1) * limit)
        return ApiResponse(
            success=True,
            data={"stories": [story_to_dict(s) for s in stories], "page": page, "limit": limit}
        )

    async def get_my_stories(self, session: AsyncSession, user_id: str) -> ApiResponse:
        """获取用户参与的故事"""
        stories = await StoryDAO.get_user_stories(session, user_id)
        return ApiResponse(success=True, data={"stories": [story_to_dict(s) for s in stories]})

    async def get_my_turn_stories(self, session: AsyncSession, user_id: str) -> ApiResponse:
        """获取轮到该用户写作的未完结故事"""
        rows = await StoryDAO.get_open_stories_with_turns(session, user_id)
        stories = []
        for story, turn in rows:
            if turn.current_user_id == user_id:
                data = story_to_dict(story)
                data["turn"] = turn_to_dict(turn)
                stories.append(data)
        return ApiResponse(success=True, data={"stories": stories})

    async def get_waiting_stories(self, session: AsyncSession, user_id: str) -> ApiResponse:
        """获取正在等待其他人写作的未完结故事"""
        rows = await StoryDAO.get_open_stories_with_turns(session, user_id)
        waiting = [(story, turn) for story, turn in rows if turn.current_user_id != user_id]
        holders = await UserDAO.get_by_ids(session, [turn.current_user_id for _, turn in waiting])

        stories = []
        for story, turn in waiting:
            data = story_to_dict(story)
            data["turn"] = turn_to_dict(turn, holders.get(turn.current_user_id))
            stories.append(data)
        return ApiResponse(success=True, data={"stories": stories})

    async def complete_story(self, session: AsyncSession, story_id: str, user_id: str) -> ApiResponse:
        """
        完结故事（任何参与者都可以）

        Args:
            session: 数据库会话
            story_id: 故事ID
            user_id: 操作者

        Returns:
            API响应
        """
        log = engine_logger("lifecycle", story_id=story_id, user_id=user_id)

        story = await StoryDAO.get_by_id(session, story_id, for_update=True)
        if not story:
            return error_response(ErrorCode.STORY_NOT_FOUND, "Story not found", story_id=story_id)

        if not await ParticipantDAO.exists(session, story_id, user_id):
            return error_response(ErrorCode.NOT_A_PARTICIPANT, "You are not a participant of this story")

        if story.is_complete:
            log.debug("Complete rejected: already complete")
            return error_response(ErrorCode.ALREADY_COMPLETE, "Story is already complete")

        await StoryDAO.mark_complete(session, story)
        log.info("Story completed")

        participants = await ParticipantDAO.list_by_story(session, story_id)
        completer = await UserDAO.get_by_id(session, user_id)
        await notification_service.notify(
            session,
            [p.user_id for p in participants],
            "story_completed",
            {
                "story_id": story.id,
                "story_title": story.title,
                "completed_by_name": completer.username if completer else user_id,
            },
            exclude=[user_id],
        )

        return ApiResponse(success=True, message="Story completed", data=story_to_dict(story))

    async def compose_story_text(self, session: AsyncSession, story) -> str:
        """拼接完整故事文本（开篇 + 按回合排序的段落）"""
        segments = await SegmentDAO.list_by_story(session, story.id)
        users = await UserDAO.get_by_ids(session, [s.user_id for s in segments])

        parts = [story.title, "", story.description]
        for segment in segments:
            author = users.get(segment.user_id)
            parts.append("")
            parts.append(f"[{segment.turn}] {author.username if author else segment.user_id}:")
            parts.append(segment.content)
        return "\n".join(parts)

    async def delete_story(self, session: AsyncSession, story_id: str, user_id: str) -> ApiResponse:
        """
        焚毁故事（仅作者）

        删除参与者、段落、账本、邀请和加入申请，故事行软删除；
        完整故事文本邮件在提交后发送，发送失败不影响焚毁。

        Args:
            session: 数据库会话
            story_id: 故事ID
            user_id: 操作者

        Returns:
            API响应
        """
        log = engine_logger("lifecycle", story_id=story_id, user_id=user_id)

        story = await StoryDAO.get_by_id(session, story_id, for_update=True)
        if not story:
            return error_response(ErrorCode.STORY_NOT_FOUND, "Story not found", story_id=story_id)

        if story.author_id != user_id:
            log.debug("Burn rejected: not the author")
            return error_response(ErrorCode.FORBIDDEN, "Only the story author can burn the story")

        participants = await ParticipantDAO.list_by_story(session, story_id)
        recipients = [p.user_id for p in participants]
        story_text = await self.compose_story_text(session, story)

        await JoinRequestDAO.delete_by_story(session, story_id)
        await InvitationDAO.delete_by_story(session, story_id)
        segments_deleted = await SegmentDAO.delete_by_story(session, story_id)
        await TurnDAO.delete_by_story(session, story_id)
        await ParticipantDAO.delete_by_story(session, story_id)
        await StoryDAO.soft_delete(session, story)

        log.info(f"Story burned ({len(recipients)} participants, {segments_deleted} segments)")

        await notification_service.notify(
            session,
            recipients,
            "story_burned",
            {"story_id": story.id, "story_title": story.title, "story_text": story_text},
        )

        return ApiResponse(success=True, message="Story burned", data={"story_id": story_id})

    async def update_story(
        self,
        session: AsyncSession,
        story_id: str,
        user_id: str,
        update_data: StoryUpdate
    ) -> ApiResponse:
        """
        更新标题/写作规则（仅作者）

        新规则只对之后提交的段落生效，已有段落不重新校验
        """
        story = await StoryDAO.get_by_id(session, story_id, for_update=True)
        if not story:
            return error_response(ErrorCode.STORY_NOT_FOUND, "Story not found", story_id=story_id)

        if story.author_id != user_id:
            return error_response(ErrorCode.FORBIDDEN, "Only the story author can change the story settings")

        fields = update_data.model_dump(exclude_none=True)
        if not fields:
            return error_response(ErrorCode.INVALID_PAYLOAD, "Nothing to update")

        invalid = _validate_limits(
            fields.get("word_limit"), fields.get("character_limit"), fields.get("max_segments")
        )
        if invalid:
            return invalid

        if "title" in fields:
            fields["title"] = fields["title"].strip()

        await StoryDAO.update_fields(session, story, **fields)
        engine_logger("lifecycle", story_id=story_id, user_id=user_id).info(
            f"Story settings updated: {sorted(fields)}"
        )

        return ApiResponse(success=True, message="Story updated", data=story_to_dict(story))

    async def transfer_ownership(
        self,
        session: AsyncSession,
        story_id: str,
        user_id: str,
        new_author_id: str
    ) -> ApiResponse:
        """
        转移作者身份（仅当前作者，新作者必须是参与者）

        Returns:
            API响应
        """
        story = await StoryDAO.get_by_id(session, story_id, for_update=True)
        if not story:
            return error_response(ErrorCode.STORY_NOT_FOUND, "Story not found", story_id=story_id)

        if story.author_id != user_id:
            return error_response(ErrorCode.FORBIDDEN, "Only the story author can transfer ownership")

        if new_author_id == user_id:
            return error_response(ErrorCode.INVALID_PAYLOAD, "You are already the author of this story")

        new_author = await ParticipantDAO.get(session, story_id, new_author_id)
        if not new_author:
            return error_response(
                ErrorCode.NOT_A_PARTICIPANT,
                "The new author must be a participant of this story",
                user_id=new_author_id,
            )

        await self.assign_author(session, story, new_author_id)

        new_author_user = await UserDAO.get_by_id(session, new_author_id)
        return ApiResponse(
            success=True,
            message="Ownership transferred",
            data={"story": story_to_dict(story), "author": user_brief(new_author_user)},
        )

    async def assign_author(self, session: AsyncSession, story, new_author_id: str):
        """交换角色并更新 Story.author_id（调用方已持有故事行锁）"""
        current = await ParticipantDAO.get(session, story.id, story.author_id)
        if current:
            current.role = ParticipantRole.PARTICIPANT.value

        successor = await ParticipantDAO.get(session, story.id, new_author_id)
        successor.role = ParticipantRole.AUTHOR.value

        previous_author_id = story.author_id
        await StoryDAO.update_fields(session, story, author_id=new_author_id)
        engine_logger("lifecycle", story_id=story.id).info(
            f"Ownership transferred {previous_author_id} -> {new_author_id}"
        )


# 全局服务实例
story_service = StoryService()
