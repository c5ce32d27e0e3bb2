"""
邀请与加入服务

邀请一律创建待接受的 Invitation，只有被邀请人明确接受后才成为参与者；
公开故事可以直接加入，私有故事需要作者批准加入申请。
"""

from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from backend.config.logging import engine_logger
from backend.config.settings import settings
from backend.db.dao import StoryDAO, ParticipantDAO, UserDAO, InvitationDAO, JoinRequestDAO
from backend.models import ApiResponse, InvitationStatus, JoinRequestStatus
from backend.services.errors import ErrorCode, error_response
from backend.services.notification_service import notification_service
from backend.services.participant_service import participant_service
from backend.services.presenters import invitation_to_dict, join_request_to_dict, participant_to_dict


class InvitationService:
    """邀请与加入服务"""

    def build_accept_url(self, token: str) -> str:
        return f"{settings.INVITATION_BASE_URL}/invitations/token/{token}/accept"

    async def invite(self, session: AsyncSession, story_id: str, inviter_id: str, identifier: str) -> ApiResponse:
        """
        邀请协作者（邮箱或用户名）

        未注册的邮箱也可以被邀请，注册后用同一邮箱接受

        Args:
            session: 数据库会话
            story_id: 故事ID
            inviter_id: 邀请人（必须是参与者）
            identifier: 邮箱或用户名

        Returns:
            API响应，包含待接受的邀请
        """
        log = engine_logger("invitations", story_id=story_id, user_id=inviter_id)

        story = await StoryDAO.get_by_id(session, story_id)
        if not story:
            return error_response(ErrorCode.STORY_NOT_FOUND, "Story not found", story_id=story_id)

        if not await ParticipantDAO.exists(session, story_id, inviter_id):
            return error_response(ErrorCode.NOT_A_PARTICIPANT, "Only participants can invite collaborators")

        identifier = identifier.strip()
        is_email = "@" in identifier
        if is_email:
            invitee = await UserDAO.get_by_email(session, identifier)
        else:
            invitee = await UserDAO.get_by_username(session, identifier)

        if invitee is None and not is_email:
            return error_response(ErrorCode.USER_NOT_FOUND, f"No user named {identifier}", identifier=identifier)

        if invitee is not None and await ParticipantDAO.exists(session, story_id, invitee.id):
            return error_response(
                ErrorCode.ALREADY_PARTICIPANT,
                f"{invitee.username} is already a participant of this story",
                user_id=invitee.id,
            )

        invitee_id = invitee.id if invitee else None
        invitee_email = None if invitee else identifier.lower()

        now = datetime.utcnow()
        for existing in await InvitationDAO.get_pending_for_target(session, story_id, invitee_id, invitee_email):
            if existing.expires_at > now:
                return error_response(
                    ErrorCode.ALREADY_INVITED,
                    "A pending invitation already exists for this user",
                    invitation_id=existing.id,
                    expires_at=existing.expires_at.isoformat(),
                )
            await InvitationDAO.set_status(session, existing, InvitationStatus.EXPIRED.value)

        invitation = await InvitationDAO.create(
            session,
            story_id=story_id,
            inviter_id=inviter_id,
            ttl_days=settings.INVITATION_TTL_DAYS,
            invitee_id=invitee_id,
            invitee_email=invitee_email,
        )
        log.info(f"Invitation {invitation.id} sent to {invitee_id or invitee_email}")

        inviter = await UserDAO.get_by_id(session, inviter_id)
        payload = {
            "story_id": story.id,
            "story_title": story.title,
            "invitation_id": invitation.id,
            "inviter_name": inviter.username if inviter else inviter_id,
            "accept_url": self.build_accept_url(invitation.token),
            "expires_at": invitation.expires_at.strftime("%Y-%m-%d"),
        }
        if invitee_id:
            await notification_service.notify(session, [invitee_id], "story_invitation", payload)
        else:
            notification_service.notify_email(session, invitee_email, "story_invitation", payload)

        return ApiResponse(success=True, message="Invitation sent", data=invitation_to_dict(invitation))

    async def _load_for_response(self, session: AsyncSession, invitation_id: str, user_id: str):
        """
        加锁读取邀请并校验：属于该用户、待处理、未过期

        Returns:
            (invitation, None) 或 (None, 失败响应)
        """
        invitation = await InvitationDAO.get_by_id(session, invitation_id, for_update=True)
        if not invitation:
            return None, error_response(
                ErrorCode.INVITATION_NOT_FOUND, "Invitation not found", invitation_id=invitation_id
            )

        user = await UserDAO.get_by_id(session, user_id)
        if not user:
            return None, error_response(ErrorCode.USER_NOT_FOUND, "User not found", user_id=user_id)

        if invitation.invitee_id:
            is_mine = invitation.invitee_id == user.id
        else:
            is_mine = (invitation.invitee_email or "").lower() == user.email.lower()
        if not is_mine:
            return None, error_response(ErrorCode.NOT_YOURS, "This invitation was sent to someone else")

        if invitation.status != InvitationStatus.PENDING.value:
            return None, error_response(
                ErrorCode.ALREADY_RESOLVED,
                f"Invitation is already {invitation.status}",
                status=invitation.status,
            )

        if invitation.expires_at <= datetime.utcnow():
            return None, error_response(
                ErrorCode.INVITATION_EXPIRED,
                "Invitation has expired; ask for a new one",
                expires_at=invitation.expires_at.isoformat(),
            )

        return invitation, None

    async def accept(self, session: AsyncSession, invitation_id: str, user_id: str) -> ApiResponse:
        """
        接受邀请，成为参与者

        Args:
            session: 数据库会话
            invitation_id: 邀请ID
            user_id: 被邀请人

        Returns:
            API响应，包含邀请与参与记录
        """
        invitation, failure = await self._load_for_response(session, invitation_id, user_id)
        if failure:
            return failure

        story = await StoryDAO.get_by_id(session, invitation.story_id)
        if not story:
            return error_response(ErrorCode.STORY_NOT_FOUND, "Story not found", story_id=invitation.story_id)

        added = await participant_service.add_participant(session, story.id, user_id)
        if not added.success:
            return added

        if not invitation.invitee_id:
            invitation.invitee_id = user_id
        await InvitationDAO.set_status(session, invitation, InvitationStatus.ACCEPTED.value)
        engine_logger("invitations", story_id=story.id, user_id=user_id).info(
            f"Invitation {invitation.id} accepted"
        )

        return ApiResponse(
            success=True,
            message="Invitation accepted",
            data={"invitation": invitation_to_dict(invitation), "participant": added.data},
        )

    async def accept_by_token(self, session: AsyncSession, token: str, user_id: str) -> ApiResponse:
        """通过邮件中的令牌接受邀请"""
        invitation = await InvitationDAO.get_by_token(session, token)
        if not invitation:
            return error_response(ErrorCode.INVITATION_NOT_FOUND, "Invitation not found")
        return await self.accept(session, invitation.id, user_id)

    async def decline(self, session: AsyncSession, invitation_id: str, user_id: str) -> ApiResponse:
        """拒绝邀请"""
        invitation, failure = await self._load_for_response(session, invitation_id, user_id)
        if failure:
            return failure

        await InvitationDAO.set_status(session, invitation, InvitationStatus.DECLINED.value)
        engine_logger("invitations", story_id=invitation.story_id, user_id=user_id).info(
            f"Invitation {invitation.id} declined"
        )

        return ApiResponse(success=True, message="Invitation declined", data=invitation_to_dict(invitation))

    async def list_pending_invitations(self, session: AsyncSession, user_id: str) -> ApiResponse:
        """获取用户未过期的待处理邀请（用户ID或邮箱匹配）"""
        user = await UserDAO.get_by_id(session, user_id)
        if not user:
            return error_response(ErrorCode.USER_NOT_FOUND, "User not found", user_id=user_id)

        invitations = await InvitationDAO.list_pending_for_user(session, user.id, user.email)
        stories = {}
        for invitation in invitations:
            if invitation.story_id not in stories:
                stories[invitation.story_id] = await StoryDAO.get_by_id(session, invitation.story_id)

        items = []
        for invitation in invitations:
            story = stories.get(invitation.story_id)
            if story is None:
                continue
            data = invitation_to_dict(invitation)
            data["story_title"] = story.title
            items.append(data)

        return ApiResponse(success=True, data={"invitations": items})

    async def join(self, session: AsyncSession, story_id: str, user_id: str) -> ApiResponse:
        """
        直接加入公开故事

        Returns:
            API响应，包含参与记录
        """
        story = await StoryDAO.get_by_id(session, story_id)
        if not story:
            return error_response(ErrorCode.STORY_NOT_FOUND, "Story not found", story_id=story_id)

        if await ParticipantDAO.exists(session, story_id, user_id):
            return error_response(ErrorCode.ALREADY_PARTICIPANT, "You are already a participant of this story")

        if not story.is_public:
            return error_response(
                ErrorCode.FORBIDDEN,
                "This story is private; send a join request to the author instead",
                story_id=story_id,
            )

        return await participant_service.add_participant(session, story_id, user_id)

    async def request_join(
        self,
        session: AsyncSession,
        story_id: str,
        user_id: str,
        message: Optional[str] = None
    ) -> ApiResponse:
        """
        申请加入私有故事

        Returns:
            API响应，包含加入申请
        """
        story = await StoryDAO.get_by_id(session, story_id)
        if not story:
            return error_response(ErrorCode.STORY_NOT_FOUND, "Story not found", story_id=story_id)

        if await ParticipantDAO.exists(session, story_id, user_id):
            return error_response(ErrorCode.ALREADY_PARTICIPANT, "You are already a participant of this story")

        if story.is_public:
            return error_response(ErrorCode.INVALID_PAYLOAD, "This story is public; join it directly")

        if await JoinRequestDAO.get_pending(session, story_id, user_id):
            return error_response(ErrorCode.ALREADY_REQUESTED, "You already have a pending join request")

        join_request = await JoinRequestDAO.create(
            session, story_id=story_id, requester_id=user_id, author_id=story.author_id, message=message
        )
        engine_logger("invitations", story_id=story_id, user_id=user_id).info(
            f"Join request {join_request.id} created"
        )

        requester = await UserDAO.get_by_id(session, user_id)
        await notification_service.notify(
            session,
            [story.author_id],
            "join_request_created",
            {
                "story_id": story.id,
                "story_title": story.title,
                "join_request_id": join_request.id,
                "requester_name": requester.username if requester else user_id,
                "message": message or "-",
            },
        )

        return ApiResponse(success=True, message="Join request sent", data=join_request_to_dict(join_request))

    async def resolve_join_request(
        self,
        session: AsyncSession,
        request_id: str,
        user_id: str,
        approve: bool
    ) -> ApiResponse:
        """
        批准/拒绝加入申请（仅当前作者）

        Args:
            session: 数据库会话
            request_id: 申请ID
            user_id: 操作者
            approve: True 批准，False 拒绝

        Returns:
            API响应
        """
        join_request = await JoinRequestDAO.get_by_id(session, request_id, for_update=True)
        if not join_request:
            return error_response(
                ErrorCode.JOIN_REQUEST_NOT_FOUND, "Join request not found", join_request_id=request_id
            )

        story = await StoryDAO.get_by_id(session, join_request.story_id)
        if not story:
            return error_response(ErrorCode.STORY_NOT_FOUND, "Story not found", story_id=join_request.story_id)

        if story.author_id != user_id:
            return error_response(ErrorCode.FORBIDDEN, "Only the story author can resolve join requests")

        if join_request.status != JoinRequestStatus.PENDING.value:
            return error_response(
                ErrorCode.ALREADY_RESOLVED,
                f"Join request is already {join_request.status}",
                status=join_request.status,
            )

        data = {}
        if approve:
            participant = await ParticipantDAO.get(session, story.id, join_request.requester_id)
            if participant is None:
                added = await participant_service.add_participant(session, story.id, join_request.requester_id)
                if not added.success:
                    return added
                data["participant"] = added.data
            else:
                data["participant"] = participant_to_dict(participant)
            status = JoinRequestStatus.APPROVED.value
        else:
            status = JoinRequestStatus.DENIED.value

        await JoinRequestDAO.set_status(session, join_request, status)
        engine_logger("invitations", story_id=story.id, user_id=user_id).info(
            f"Join request {join_request.id} {status}"
        )

        await notification_service.notify(
            session,
            [join_request.requester_id],
            "join_request_resolved",
            {"story_id": story.id, "story_title": story.title, "status": status},
        )

        data["join_request"] = join_request_to_dict(join_request)
        return ApiResponse(success=True, message=f"Join request {status}", data=data)

    async def list_pending_join_requests(self, session: AsyncSession, user_id: str) -> ApiResponse:
        """获取等待当前用户（作者）处理的加入申请"""
        stories = await StoryDAO.get_authored_stories(session, user_id)
        requests = await JoinRequestDAO.list_pending_for_stories(session, [s.id for s in stories])
        return ApiResponse(success=True, data={"join_requests": [join_request_to_dict(r) for r in requests]})


# 全局服务实例
invitation_service = InvitationService()
