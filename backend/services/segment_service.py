"""
段落提交服务

提交顺序检查（任一失败立即返回）：
1. 故事存在且未完结
2. 提交者是参与者
3. 当前回合属于提交者
4. 1 <= 字数 <= word_limit
5. 1 <= 字符数，且 character_limit 为 0 或字符数 <= character_limit

通过后写入段落（turn = 当前回合号）并推进账本，两者在同一事务内完成。
"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from backend.config.logging import engine_logger
from backend.config.settings import settings
from backend.db.dao import StoryDAO, SegmentDAO, ParticipantDAO, UserDAO
from backend.models import ApiResponse, SegmentCreate
from backend.services.errors import ErrorCode, error_response
from backend.services.presenters import segment_to_dict, turn_to_dict
from backend.services.turn_service import turn_service
from backend.utils.text import count_words, count_characters


def resolve_counts(content: str, word_count: Optional[int], character_count: Optional[int]) -> tuple:
    """
    确定段落的字数/字符数

    开启服务端重算时忽略客户端数值；否则优先使用客户端数值，缺失时再计算
    """
    if settings.RECOMPUTE_SEGMENT_COUNTS:
        return count_words(content), count_characters(content)
    return (
        word_count if word_count is not None else count_words(content),
        character_count if character_count is not None else count_characters(content),
    )


class SegmentService:
    """段落服务"""

    async def submit(
        self,
        session: AsyncSession,
        story_id: str,
        user_id: str,
        data: SegmentCreate
    ) -> ApiResponse:
        """
        提交段落

        Args:
            session: 数据库会话
            story_id: 故事ID
            user_id: 提交者
            data: 段落内容及客户端统计

        Returns:
            API响应，包含新段落与推进后的账本
        """
        log = engine_logger("admission", story_id=story_id, user_id=user_id)

        # 故事行锁：与完结、焚毁、离开、跳过互斥
        story = await StoryDAO.get_by_id(session, story_id, for_update=True)
        if not story:
            return error_response(ErrorCode.STORY_NOT_FOUND, "Story not found", story_id=story_id)

        if story.is_complete:
            log.debug("Submission rejected: story closed")
            return error_response(ErrorCode.STORY_CLOSED, "Story is complete; no more segments can be added")

        if not await ParticipantDAO.exists(session, story_id, user_id):
            log.debug("Submission rejected: not a participant")
            return error_response(ErrorCode.NOT_A_PARTICIPANT, "You are not a participant of this story")

        turn = await turn_service.require_turn(session, story_id, for_update=True)
        if turn.current_user_id != user_id:
            holder = await UserDAO.get_by_id(session, turn.current_user_id)
            holder_name = holder.username if holder else turn.current_user_id
            log.debug(f"Submission rejected: turn {turn.current_turn} belongs to {turn.current_user_id}")
            return error_response(
                ErrorCode.NOT_YOUR_TURN,
                f"It is not your turn; waiting on {holder_name}",
                current_turn=turn.current_turn,
                current_user_id=turn.current_user_id,
                current_username=holder_name,
            )

        content = data.content.strip()
        word_count, character_count = resolve_counts(content, data.word_count, data.character_count)

        if word_count < 1 or word_count > story.word_limit:
            log.debug(f"Submission rejected: {word_count} words, limit {story.word_limit}")
            return error_response(
                ErrorCode.WORD_LIMIT_EXCEEDED,
                f"Segment has {word_count} words; it must contain between 1 and {story.word_limit} words",
                word_count=word_count,
                word_limit=story.word_limit,
            )

        if character_count < 1 or (story.character_limit and character_count > story.character_limit):
            log.debug(f"Submission rejected: {character_count} characters, limit {story.character_limit}")
            return error_response(
                ErrorCode.CHARACTER_LIMIT_EXCEEDED,
                f"Segment has {character_count} characters; the limit is {story.character_limit or 'unlimited'}",
                character_count=character_count,
                character_limit=story.character_limit,
            )

        consumed_turn = turn.current_turn
        segment = await SegmentDAO.create(
            session,
            story_id=story_id,
            user_id=user_id,
            turn=consumed_turn,
            content=content,
            word_count=word_count,
            character_count=character_count,
        )
        await turn_service.advance(session, turn)
        log.info(f"Segment {segment.id} admitted at turn {consumed_turn} ({word_count} words)")

        await turn_service.notify_holder(session, story, turn, user_id)

        return ApiResponse(
            success=True,
            message="Segment added",
            data={"segment": segment_to_dict(segment), "turn": turn_to_dict(turn)},
        )

    async def list_segments(self, session: AsyncSession, story_id: str) -> ApiResponse:
        """获取故事段落（按回合号升序，含作者信息）"""
        story = await StoryDAO.get_by_id(session, story_id)
        if not story:
            return error_response(ErrorCode.STORY_NOT_FOUND, "Story not found", story_id=story_id)

        segments = await SegmentDAO.list_by_story(session, story_id)
        users = await UserDAO.get_by_ids(session, [s.user_id for s in segments])

        return ApiResponse(
            success=True,
            data={
                "prompt": story.description,
                "segments": [segment_to_dict(s, users.get(s.user_id)) for s in segments],
                "total": len(segments),
            }
        )


# 全局服务实例
segment_service = SegmentService()
