"""
邀请数据访问对象
"""

from typing import Optional, List
from datetime import datetime, timedelta
from sqlalchemy import select, desc, and_, or_, func, delete
from sqlalchemy.ext.asyncio import AsyncSession

from backend.db.models.invitation import StoryInvitation
from backend.utils.id_generator import generate_invitation_id, generate_invitation_token


class InvitationDAO:
    """邀请 DAO"""

    @staticmethod
    async def create(
        session: AsyncSession,
        story_id: str,
        inviter_id: str,
        ttl_days: int,
        invitee_id: Optional[str] = None,
        invitee_email: Optional[str] = None
    ) -> StoryInvitation:
        """
        创建邀请

        Args:
            session: 数据库会话
            story_id: 故事ID
            inviter_id: 邀请人ID
            ttl_days: 有效天数
            invitee_id: 被邀请用户ID（与 invitee_email 二选一）
            invitee_email: 被邀请邮箱

        Returns:
            StoryInvitation: 待接受的邀请
        """
        invitation = StoryInvitation(
            id=generate_invitation_id(),
            story_id=story_id,
            inviter_id=inviter_id,
            invitee_id=invitee_id,
            invitee_email=invitee_email.strip().lower() if invitee_email else None,
            status="pending",
            token=generate_invitation_token(),
            expires_at=datetime.utcnow() + timedelta(days=ttl_days),
        )

        session.add(invitation)
        await session.flush()

        return invitation

    @staticmethod
    async def get_by_id(
        session: AsyncSession,
        invitation_id: str,
        for_update: bool = False
    ) -> Optional[StoryInvitation]:
        """根据ID获取邀请"""
        query = select(StoryInvitation).where(StoryInvitation.id == invitation_id)
        if for_update:
            query = query.with_for_update()

        result = await session.execute(query)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_token(session: AsyncSession, token: str) -> Optional[StoryInvitation]:
        """根据令牌获取邀请"""
        result = await session.execute(
            select(StoryInvitation).where(StoryInvitation.token == token)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def get_pending_for_target(
        session: AsyncSession,
        story_id: str,
        invitee_id: Optional[str] = None,
        invitee_email: Optional[str] = None
    ) -> List[StoryInvitation]:
        """获取同一故事、同一目标的待处理邀请"""
        conditions = []
        if invitee_id:
            conditions.append(StoryInvitation.invitee_id == invitee_id)
        if invitee_email:
            conditions.append(func.lower(StoryInvitation.invitee_email) == invitee_email.strip().lower())
        if not conditions:
            return []

        result = await session.execute(
            select(StoryInvitation).where(
                and_(
                    StoryInvitation.story_id == story_id,
                    StoryInvitation.status == "pending",
                    or_(*conditions)
                )
            )
        )
        return list(result.scalars().all())

    @staticmethod
    async def list_pending_for_user(
        session: AsyncSession,
        user_id: str,
        email: Optional[str] = None
    ) -> List[StoryInvitation]:
        """获取用户未过期的待处理邀请（按用户ID或邮箱匹配）"""
        conditions = [StoryInvitation.invitee_id == user_id]
        if email:
            conditions.append(func.lower(StoryInvitation.invitee_email) == email.strip().lower())

        result = await session.execute(
            select(StoryInvitation)
            .where(
                and_(
                    StoryInvitation.status == "pending",
                    StoryInvitation.expires_at > datetime.utcnow(),
                    or_(*conditions)
                )
            )
            .order_by(desc(StoryInvitation.created_at))
        )
        return list(result.scalars().all())

    @staticmethod
    async def set_status(session: AsyncSession, invitation: StoryInvitation, status: str) -> StoryInvitation:
        """更新邀请状态"""
        invitation.status = status
        invitation.responded_at = datetime.utcnow()
        await session.flush()
        return invitation

    @staticmethod
    async def delete_by_story(session: AsyncSession, story_id: str) -> int:
        """删除故事的全部邀请"""
        result = await session.execute(
            delete(StoryInvitation).where(StoryInvitation.story_id == story_id)
        )
        await session.flush()
        return result.rowcount or 0
