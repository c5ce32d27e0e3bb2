"""
编辑请求服务

任何参与者都可以对段落、开篇提示或故事元数据提出修改；只有故事的当前作者可以批准或拒绝。
批准直接修改已存储的段落/故事，不消耗回合。
"""

from sqlalchemy.ext.asyncio import AsyncSession

from backend.config.logging import engine_logger
from backend.db.dao import StoryDAO, SegmentDAO, ParticipantDAO, UserDAO, EditRequestDAO
from backend.models import (
    ApiResponse, EditRequestCreate, EditRequestStatus, EditType,
    SegmentEditPayload
)
from backend.services.errors import ErrorCode, error_response
from backend.services.notification_service import notification_service
from backend.services.presenters import edit_request_to_dict, segment_to_dict, story_to_dict
from backend.utils.text import count_words, count_characters


class EditRequestService:
    """编辑请求服务"""

    async def propose(
        self,
        session: AsyncSession,
        story_id: str,
        requester_id: str,
        request_data: EditRequestCreate
    ) -> ApiResponse:
        """
        发起编辑请求

        原内容在此刻快照保存，之后目标被修改也不影响快照

        Args:
            session: 数据库会话
            story_id: 故事ID
            requester_id: 发起人
            request_data: 编辑目标与理由

        Returns:
            API响应，包含待审批的编辑请求
        """
        log = engine_logger("edit_requests", story_id=story_id, user_id=requester_id)

        story = await StoryDAO.get_by_id(session, story_id)
        if not story:
            return error_response(ErrorCode.STORY_NOT_FOUND, "Story not found", story_id=story_id)

        if not await ParticipantDAO.exists(session, story_id, requester_id):
            return error_response(ErrorCode.NOT_A_PARTICIPANT, "You are not a participant of this story")

        target = request_data.target
        fields = {}
        if isinstance(target, SegmentEditPayload):
            if target.segment_id:
                segment = await SegmentDAO.get_by_id(session, target.segment_id)
                if not segment:
                    return error_response(
                        ErrorCode.SEGMENT_NOT_FOUND, "Segment not found", segment_id=target.segment_id
                    )
                if segment.story_id != story_id:
                    log.debug(f"Proposal rejected: segment {segment.id} belongs to {segment.story_id}")
                    return error_response(
                        ErrorCode.FORBIDDEN,
                        "The segment does not belong to this story",
                        segment_id=segment.id,
                    )
                original = segment.content
            else:
                # 未指定段落即编辑开篇提示
                original = story.description
            fields.update(
                segment_id=target.segment_id,
                original_content=original,
                proposed_content=target.proposed_content.strip(),
            )
        else:
            fields.update(
                original_title=story.title,
                original_description=story.description,
                original_genre=story.genre,
                proposed_title=target.proposed_title,
                proposed_description=target.proposed_description,
                proposed_genre=target.proposed_genre,
            )

        edit_request = await EditRequestDAO.create(
            session,
            story_id=story_id,
            requester_id=requester_id,
            author_id=story.author_id,
            edit_type=request_data.edit_type.value,
            reason=request_data.reason,
            **fields
        )
        log.info(f"Edit request {edit_request.id} proposed ({edit_request.edit_type})")

        requester = await UserDAO.get_by_id(session, requester_id)
        await notification_service.notify(
            session,
            [story.author_id],
            "edit_request_created",
            {
                "story_id": story.id,
                "story_title": story.title,
                "edit_request_id": edit_request.id,
                "requester_name": requester.username if requester else requester_id,
                "reason": request_data.reason or "-",
            },
            exclude=[requester_id],
        )

        return ApiResponse(success=True, message="Edit request submitted", data=edit_request_to_dict(edit_request))

    async def _load_for_resolution(self, session: AsyncSession, request_id: str, approver_id: str):
        """
        加锁读取编辑请求并校验审批权限

        Returns:
            (edit_request, story, None) 或 (None, None, 失败响应)
        """
        edit_request = await EditRequestDAO.get_by_id(session, request_id, for_update=True)
        if not edit_request:
            return None, None, error_response(
                ErrorCode.EDIT_REQUEST_NOT_FOUND, "Edit request not found", edit_request_id=request_id
            )

        story = await StoryDAO.get_by_id(session, edit_request.story_id, include_deleted=True, for_update=True)
        if not story or story.deleted_at is not None:
            return None, None, error_response(
                ErrorCode.STORY_DELETED, "The story has been burned", story_id=edit_request.story_id
            )

        # 以当前作者为准，不使用发起时记录的 author_id
        if story.author_id != approver_id:
            return None, None, error_response(
                ErrorCode.FORBIDDEN,
                "Only the current story author can resolve edit requests",
                author_id=story.author_id,
            )

        if edit_request.status != EditRequestStatus.PENDING.value:
            return None, None, error_response(
                ErrorCode.ALREADY_RESOLVED,
                f"Edit request is already {edit_request.status}",
                status=edit_request.status,
            )

        return edit_request, story, None

    async def approve(self, session: AsyncSession, request_id: str, approver_id: str) -> ApiResponse:
        """
        批准编辑请求并应用修改

        Args:
            session: 数据库会话
            request_id: 编辑请求ID
            approver_id: 审批人（必须是当前作者）

        Returns:
            API响应，包含请求和被修改的实体
        """
        edit_request, story, failure = await self._load_for_resolution(session, request_id, approver_id)
        if failure:
            return failure

        log = engine_logger("edit_requests", story_id=story.id, user_id=approver_id)

        applied = {}
        if edit_request.edit_type == EditType.SEGMENT_CONTENT.value:
            if edit_request.segment_id:
                segment = await SegmentDAO.get_by_id(session, edit_request.segment_id)
                if not segment or segment.story_id != story.id:
                    return error_response(
                        ErrorCode.SEGMENT_NOT_FOUND, "Segment not found", segment_id=edit_request.segment_id
                    )
                content = edit_request.proposed_content
                await SegmentDAO.apply_edit(
                    session,
                    segment,
                    content=content,
                    word_count=count_words(content),
                    character_count=count_characters(content),
                    edited_by=edit_request.requester_id,
                )
                applied["segment"] = segment_to_dict(segment)
                await StoryDAO.update_fields(session, story, is_edited=True)
            else:
                await StoryDAO.update_fields(
                    session, story, description=edit_request.proposed_content, is_edited=True
                )
        else:
            fields = {"is_edited": True}
            if edit_request.proposed_title is not None:
                fields["title"] = edit_request.proposed_title
            if edit_request.proposed_description is not None:
                fields["description"] = edit_request.proposed_description
            if edit_request.proposed_genre is not None:
                fields["genre"] = edit_request.proposed_genre
            await StoryDAO.update_fields(session, story, **fields)

        applied["story"] = story_to_dict(story)

        await EditRequestDAO.resolve(session, edit_request, EditRequestStatus.APPROVED.value, approver_id)
        log.info(f"Edit request {edit_request.id} approved")

        await self._notify_resolution(session, edit_request, story)

        return ApiResponse(
            success=True,
            message="Edit request approved",
            data={"edit_request": edit_request_to_dict(edit_request), "applied": applied},
        )

    async def deny(self, session: AsyncSession, request_id: str, approver_id: str) -> ApiResponse:
        """拒绝编辑请求（不修改任何内容）"""
        edit_request, story, failure = await self._load_for_resolution(session, request_id, approver_id)
        if failure:
            return failure

        await EditRequestDAO.resolve(session, edit_request, EditRequestStatus.DENIED.value, approver_id)
        engine_logger("edit_requests", story_id=story.id, user_id=approver_id).info(
            f"Edit request {edit_request.id} denied"
        )

        await self._notify_resolution(session, edit_request, story)

        return ApiResponse(success=True, message="Edit request denied", data=edit_request_to_dict(edit_request))

    async def _notify_resolution(self, session: AsyncSession, edit_request, story):
        await notification_service.notify(
            session,
            [edit_request.requester_id],
            "edit_request_resolved",
            {
                "story_id": story.id,
                "story_title": story.title,
                "edit_request_id": edit_request.id,
                "status": edit_request.status,
            },
            exclude=[edit_request.resolved_by],
        )

    async def list_pending_for_author(self, session: AsyncSession, user_id: str) -> ApiResponse:
        """获取等待当前用户审批的编辑请求"""
        stories = await StoryDAO.get_authored_stories(session, user_id)
        requests = await EditRequestDAO.list_pending_for_author(session, [s.id for s in stories])
        return ApiResponse(success=True, data={"edit_requests": [edit_request_to_dict(r) for r in requests]})

    async def list_story_requests(self, session: AsyncSession, story_id: str, user_id: str) -> ApiResponse:
        """获取故事的编辑请求（仅参与者可见）"""
        story = await StoryDAO.get_by_id(session, story_id)
        if not story:
            return error_response(ErrorCode.STORY_NOT_FOUND, "Story not found", story_id=story_id)

        if not await ParticipantDAO.exists(session, story_id, user_id):
            return error_response(ErrorCode.NOT_A_PARTICIPANT, "You are not a participant of this story")

        requests = await EditRequestDAO.list_by_story(session, story_id)
        return ApiResponse(success=True, data={"edit_requests": [edit_request_to_dict(r) for r in requests]})


# 全局服务实例
edit_request_service = EditRequestService()
