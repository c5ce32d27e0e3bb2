"""
用户服务

处理用户注册、登录、查询和注销等业务逻辑
"""

from sqlalchemy.ext.asyncio import AsyncSession

from backend.config.logging import engine_logger
from backend.db.dao import UserDAO, StoryDAO, ParticipantDAO
from backend.models import ApiResponse, UserCreate, UserLogin
from backend.services.errors import ErrorCode, error_response
from backend.services.presenters import user_brief
from backend.services.story_service import story_service
from backend.services.turn_service import turn_service
from backend.utils.auth import verify_password, issue_user_token


class UserService:
    """用户服务"""

    @staticmethod
    async def register(session: AsyncSession, user_data: UserCreate) -> ApiResponse:
        """
        用户注册

        Args:
            session: 数据库会话
            user_data: 用户注册数据

        Returns:
            API响应，包含用户信息和token
        """
        # 检查邮箱是否已存在（含已注销账号，用户表的唯一约束不区分是否注销）
        if await UserDAO.get_by_email(session, user_data.email, include_deleted=True):
            return error_response(ErrorCode.EMAIL_EXISTS, "Email already registered")

        # 检查用户名是否已存在
        if await UserDAO.get_by_username(session, user_data.username, include_deleted=True):
            return error_response(ErrorCode.USERNAME_EXISTS, "Username already taken")

        user = await UserDAO.create(
            session=session,
            username=user_data.username.strip(),
            email=user_data.email,
            password=user_data.password,
            first_name=user_data.first_name,
            last_name=user_data.last_name,
        )

        token = issue_user_token(user.id, user.username)

        return ApiResponse(
            success=True,
            message="Registration successful",
            data={
                "user_id": user.id,
                "username": user.username,
                "email": user.email,
                "token": token,
            }
        )

    @staticmethod
    async def login(session: AsyncSession, login_data: UserLogin) -> ApiResponse:
        """
        用户登录

        Returns:
            API响应，包含用户信息和token
        """
        user = await UserDAO.get_by_email(session, login_data.email)
        if not user or not verify_password(login_data.password, user.password_hash):
            return error_response(ErrorCode.INVALID_CREDENTIALS, "Invalid credentials")

        token = issue_user_token(user.id, user.username)

        return ApiResponse(
            success=True,
            message="Login successful",
            data={
                "user_id": user.id,
                "username": user.username,
                "email": user.email,
                "token": token,
            }
        )

    @staticmethod
    async def get_user(session: AsyncSession, user_id: str) -> ApiResponse:
        """根据ID获取用户公开信息"""
        user = await UserDAO.get_by_id(session, user_id)
        if not user:
            return error_response(ErrorCode.USER_NOT_FOUND, "User not found", user_id=user_id)
        return ApiResponse(success=True, data=user_brief(user))

    @staticmethod
    async def lookup(session: AsyncSession, identifier: str) -> ApiResponse:
        """按邮箱或用户名查找用户（邀请时使用）"""
        identifier = identifier.strip()
        if "@" in identifier:
            user = await UserDAO.get_by_email(session, identifier)
        else:
            user = await UserDAO.get_by_username(session, identifier)

        if not user:
            return error_response(ErrorCode.USER_NOT_FOUND, "User not found", identifier=identifier)
        return ApiResponse(success=True, data=user_brief(user))

    @staticmethod
    async def delete_account(session: AsyncSession, user_id: str) -> ApiResponse:
        """
        注销账号

        - 作为作者的故事：作者身份按加入顺序交给下一位参与者；没有其他参与者则焚毁故事
        - 持有的回合先传给下一位，再移除参与记录

        Args:
            session: 数据库会话
            user_id: 用户ID

        Returns:
            API响应，包含转移/焚毁的故事
        """
        user = await UserDAO.get_by_id(session, user_id)
        if not user:
            return error_response(ErrorCode.USER_NOT_FOUND, "User not found", user_id=user_id)

        transferred, burned, left = [], [], []

        for membership in await ParticipantDAO.list_by_user(session, user_id):
            story = await StoryDAO.get_by_id(session, membership.story_id, for_update=True)
            if not story:
                continue

            others = [
                p for p in await ParticipantDAO.list_by_story(session, story.id)
                if p.user_id != user_id
            ]

            if story.author_id == user_id and not others:
                burned_result = await story_service.delete_story(session, story.id, user_id)
                if not burned_result.success:
                    return burned_result
                burned.append(story.id)
                continue

            if story.author_id == user_id:
                await story_service.assign_author(session, story, others[0].user_id)
                transferred.append(story.id)

            turn = await turn_service.require_turn(session, story.id, for_update=True)
            if turn.current_user_id == user_id:
                await turn_service.advance(session, turn)
                await turn_service.notify_holder(session, story, turn, user_id)

            await ParticipantDAO.delete(session, membership)
            left.append(story.id)

        await UserDAO.soft_delete(session, user)
        engine_logger("accounts", user_id=user_id).info(
            f"Account deleted: {len(transferred)} transferred, {len(burned)} burned, {len(left)} left"
        )

        return ApiResponse(
            success=True,
            message="Account deleted",
            data={"transferred": transferred, "burned": burned, "left": left},
        )


# 全局服务实例
user_service = UserService()
