"""
用户数据访问对象
"""

from typing import Optional, List
from datetime import datetime
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from backend.db.models.user import User
from backend.models.user import UserStatus
from backend.utils.id_generator import generate_user_id
from backend.utils.auth import get_password_hash


class UserDAO:
    """用户 DAO"""

    @staticmethod
    async def create(
        session: AsyncSession,
        username: str,
        email: str,
        password: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None
    ) -> User:
        """
        创建用户

        Args:
            session: 数据库会话
            username: 用户名
            email: 邮箱
            password: 密码
            first_name: 名
            last_name: 姓

        Returns:
            User: 新创建的用户对象
        """
        user = User(
            id=generate_user_id(),
            username=username,
            email=email.strip().lower(),
            password_hash=get_password_hash(password),
            first_name=first_name,
            last_name=last_name,
            status=UserStatus.ACTIVE.value,
        )

        session.add(user)
        await session.flush()

        return user

    @staticmethod
    async def get_by_id(session: AsyncSession, user_id: str) -> Optional[User]:
        """根据ID获取用户（不含已注销用户）"""
        result = await session.execute(
            select(User).where(User.id == user_id, User.deleted_at.is_(None))
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_ids(session: AsyncSession, user_ids: List[str]) -> dict:
        """批量获取用户，返回 {user_id: User}"""
        if not user_ids:
            return {}
        result = await session.execute(
            select(User).where(User.id.in_(set(user_ids)))
        )
        return {user.id: user for user in result.scalars().all()}

    @staticmethod
    async def get_by_email(session: AsyncSession, email: str, include_deleted: bool = False) -> Optional[User]:
        """
        根据邮箱获取用户（不区分大小写）

        Args:
            include_deleted: 是否包含已注销用户（注册查重时使用，注销账号的邮箱不可复用）
        """
        query = select(User).where(func.lower(User.email) == email.strip().lower())
        if not include_deleted:
            query = query.where(User.deleted_at.is_(None))
        result = await session.execute(query)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_username(session: AsyncSession, username: str, include_deleted: bool = False) -> Optional[User]:
        """根据用户名获取用户"""
        query = select(User).where(User.username == username.strip())
        if not include_deleted:
            query = query.where(User.deleted_at.is_(None))
        result = await session.execute(query)
        return result.scalar_one_or_none()

    @staticmethod
    async def soft_delete(session: AsyncSession, user: User) -> None:
        """
        注销用户（软删除）

        段落等历史记录仍引用该用户，因此只标记状态
        """
        user.status = UserStatus.DELETED.value
        user.deleted_at = datetime.utcnow()
        await session.flush()
