"""
参与者服务

维护故事成员及角色；成员列表按加入顺序排列，回合轮转以此为准
"""

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.config.logging import engine_logger
from backend.db.dao import StoryDAO, ParticipantDAO, UserDAO
from backend.models import ApiResponse, ParticipantRole
from backend.services.errors import ErrorCode, error_response
from backend.services.presenters import participant_to_dict
from backend.services.turn_service import turn_service


class ParticipantService:
    """参与者服务"""

    async def is_participant(self, session: AsyncSession, story_id: str, user_id: str) -> bool:
        return await ParticipantDAO.exists(session, story_id, user_id)

    async def add_participant(
        self,
        session: AsyncSession,
        story_id: str,
        user_id: str,
        role: ParticipantRole = ParticipantRole.PARTICIPANT
    ) -> ApiResponse:
        """
        添加参与者

        Args:
            session: 数据库会话
            story_id: 故事ID
            user_id: 用户ID
            role: 角色，默认 participant

        Returns:
            API响应，包含参与记录
        """
        if await UserDAO.get_by_id(session, user_id) is None:
            return error_response(ErrorCode.USER_NOT_FOUND, "User not found", user_id=user_id)

        if await ParticipantDAO.exists(session, story_id, user_id):
            return error_response(
                ErrorCode.ALREADY_PARTICIPANT,
                "User is already a participant of this story",
                story_id=story_id,
                user_id=user_id,
            )

        # 并发加入时 exists 检查可能同时通过，由 (story_id, user_id) 唯一约束兜底；
        # flush 失败后会话只能回滚，失败响应会让请求事务整体回滚
        try:
            participant = await ParticipantDAO.create(session, story_id, user_id, role=role.value)
        except IntegrityError:
            engine_logger("participants", story_id=story_id).warning(
                f"Concurrent join for {user_id} rejected by unique constraint"
            )
            return error_response(
                ErrorCode.ALREADY_PARTICIPANT,
                "User is already a participant of this story",
                story_id=story_id,
                user_id=user_id,
            )

        engine_logger("participants", story_id=story_id).info(f"Participant {user_id} joined as {role.value}")

        return ApiResponse(success=True, message="Participant added", data=participant_to_dict(participant))

    async def remove_participant(self, session: AsyncSession, story_id: str, user_id: str) -> ApiResponse:
        """
        移除参与者（离开故事）

        作者不能离开；当前回合持有者不能离开。回合检查与删除在同一事务内、持有账本行锁，
        避免与并发的回合推进交错。

        Args:
            session: 数据库会话
            story_id: 故事ID
            user_id: 离开的用户

        Returns:
            API响应
        """
        log = engine_logger("participants", story_id=story_id, user_id=user_id)

        story = await StoryDAO.get_by_id(session, story_id, for_update=True)
        if not story:
            return error_response(ErrorCode.STORY_NOT_FOUND, "Story not found", story_id=story_id)

        participant = await ParticipantDAO.get(session, story_id, user_id)
        if not participant:
            return error_response(ErrorCode.NOT_A_PARTICIPANT, "You are not a participant of this story")

        if user_id == story.author_id:
            log.debug("Leave rejected: author cannot leave")
            return error_response(
                ErrorCode.FORBIDDEN,
                "The story author cannot leave the story; transfer ownership or burn it instead",
            )

        turn = await turn_service.require_turn(session, story_id, for_update=True)
        if turn.current_user_id == user_id:
            log.debug("Leave rejected: user holds the turn")
            return error_response(
                ErrorCode.TURN_CONFLICT,
                "You cannot leave while it is your turn; skip your turn first",
                current_turn=turn.current_turn,
                current_user_id=turn.current_user_id,
            )

        await ParticipantDAO.delete(session, participant)
        log.info("Participant left")

        return ApiResponse(success=True, message="Left story", data={"story_id": story_id, "user_id": user_id})

    async def list_participants(self, session: AsyncSession, story_id: str) -> ApiResponse:
        """获取参与者列表（按加入顺序，含用户信息）"""
        story = await StoryDAO.get_by_id(session, story_id)
        if not story:
            return error_response(ErrorCode.STORY_NOT_FOUND, "Story not found", story_id=story_id)

        participants = await ParticipantDAO.list_by_story(session, story_id)
        users = await UserDAO.get_by_ids(session, [p.user_id for p in participants])

        return ApiResponse(
            success=True,
            data={
                "participants": [participant_to_dict(p, users.get(p.user_id)) for p in participants],
                "total": len(participants),
            }
        )


# 全局服务实例
participant_service = ParticipantService()
