"""
回合账本服务

每个故事只有一个 (current_turn, current_user_id) 指针。唯一的轮转规则：
按加入顺序取当前持有者的下一位，(index + 1) % N；只有一名参与者时只增加回合号。
"""

from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from backend.config.logging import engine_logger
from backend.db.dao import StoryDAO, TurnDAO, ParticipantDAO, UserDAO
from backend.db.models import StoryTurn
from backend.models import ApiResponse
from backend.services.errors import ErrorCode, InvariantViolation, error_response
from backend.services.notification_service import notification_service
from backend.services.presenters import turn_to_dict


class TurnService:
    """回合账本服务"""

    async def initialize(self, session: AsyncSession, story_id: str, creator_id: str) -> StoryTurn:
        """创建故事时调用一次：(1, creator)"""
        turn = await TurnDAO.create(session, story_id, creator_id)
        engine_logger("turn_ledger", story_id=story_id).info(f"Turn ledger initialized for {creator_id}")
        return turn

    async def require_turn(self, session: AsyncSession, story_id: str, for_update: bool = False) -> StoryTurn:
        """
        读取账本；故事存在但账本缺失属于数据不变量被破坏

        Raises:
            InvariantViolation: 账本不存在
        """
        turn = await TurnDAO.get(session, story_id, for_update=for_update)
        if turn is None:
            logger.critical(f"🚨 Story {story_id} has no turn ledger")
            raise InvariantViolation(f"Story {story_id} has no turn ledger")
        return turn

    async def advance(self, session: AsyncSession, turn: StoryTurn) -> StoryTurn:
        """
        推进回合（调用方必须已持有账本行锁）

        Args:
            session: 数据库会话
            turn: 加锁读取的账本

        Returns:
            更新后的账本

        Raises:
            InvariantViolation: 当前持有者不在参与者列表中
        """
        participants = await ParticipantDAO.list_by_story(session, turn.story_id)
        order = [p.user_id for p in participants]

        if turn.current_user_id not in order:
            logger.critical(
                f"🚨 Turn ledger of story {turn.story_id} points at non-participant {turn.current_user_id}"
            )
            raise InvariantViolation(
                f"Turn holder {turn.current_user_id} is not a participant of story {turn.story_id}"
            )

        index = order.index(turn.current_user_id)
        next_user_id = order[(index + 1) % len(order)]
        previous_turn = turn.current_turn

        await TurnDAO.set_holder(session, turn, previous_turn + 1, next_user_id)
        engine_logger("turn_ledger", story_id=turn.story_id).info(
            f"Turn advanced {previous_turn} -> {turn.current_turn}, holder {next_user_id}"
        )
        return turn

    async def notify_holder(self, session: AsyncSession, story, turn: StoryTurn, previous_user_id: str):
        """回合换人时通知新的持有者"""
        if turn.current_user_id == previous_user_id:
            return
        await notification_service.notify(
            session,
            [turn.current_user_id],
            "your_turn",
            {"story_id": story.id, "story_title": story.title, "current_turn": turn.current_turn},
        )

    async def get_current_turn(self, session: AsyncSession, story_id: str) -> ApiResponse:
        """
        获取当前回合及持有者

        Args:
            session: 数据库会话
            story_id: 故事ID

        Returns:
            API响应，包含回合号与持有者信息
        """
        story = await StoryDAO.get_by_id(session, story_id)
        if not story:
            return error_response(ErrorCode.STORY_NOT_FOUND, "Story not found", story_id=story_id)

        turn = await self.require_turn(session, story_id)
        holder = await UserDAO.get_by_id(session, turn.current_user_id)
        return ApiResponse(success=True, data=turn_to_dict(turn, holder))

    async def skip(self, session: AsyncSession, story_id: str, user_id: str) -> ApiResponse:
        """
        跳过当前回合（不产生段落）

        当前持有者可以主动让出回合，作者可以强制跳过卡住的回合

        Args:
            session: 数据库会话
            story_id: 故事ID
            user_id: 操作者

        Returns:
            API响应，包含推进后的账本
        """
        log = engine_logger("turn_ledger", story_id=story_id, user_id=user_id)

        story = await StoryDAO.get_by_id(session, story_id, for_update=True)
        if not story:
            return error_response(ErrorCode.STORY_NOT_FOUND, "Story not found", story_id=story_id)

        if story.is_complete:
            log.debug("Skip rejected: story is complete")
            return error_response(ErrorCode.STORY_CLOSED, "Story is complete; turns can no longer be skipped")

        if not await ParticipantDAO.exists(session, story_id, user_id):
            log.debug("Skip rejected: not a participant")
            return error_response(ErrorCode.NOT_A_PARTICIPANT, "You are not a participant of this story")

        turn = await self.require_turn(session, story_id, for_update=True)
        if user_id != turn.current_user_id and user_id != story.author_id:
            log.debug("Skip rejected: neither turn holder nor author")
            return error_response(
                ErrorCode.FORBIDDEN,
                "Only the current turn holder or the story author can skip this turn",
                current_user_id=turn.current_user_id,
                current_turn=turn.current_turn,
            )

        previous_user_id = turn.current_user_id
        skipped_turn = turn.current_turn
        await self.advance(session, turn)
        log.info(f"Turn {skipped_turn} skipped (holder {previous_user_id})")

        await self.notify_holder(session, story, turn, previous_user_id)

        return ApiResponse(
            success=True,
            message="Turn skipped",
            data={"skipped_turn": skipped_turn, "turn": turn_to_dict(turn)},
        )


# 全局服务实例
turn_service = TurnService()
