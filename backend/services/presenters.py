"""
ORM 对象 -> 响应字典
"""

from typing import Optional


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def user_brief(user) -> Optional[dict]:
    """用户公开信息"""
    if user is None:
        return None
    return {
        "user_id": user.id,
        "username": user.username,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "profile_image_url": user.profile_image_url,
    }


def story_to_dict(story) -> dict:
    return {
        "id": story.id,
        "title": story.title,
        "description": story.description,
        "genre": story.genre,
        "creator_id": story.creator_id,
        "author_id": story.author_id,
        "word_limit": story.word_limit,
        "character_limit": story.character_limit,
        "max_segments": story.max_segments,
        "is_complete": story.is_complete,
        "is_public": story.is_public,
        "is_edited": story.is_edited,
        "created_at": _iso(story.created_at),
        "updated_at": _iso(story.updated_at),
        "completed_at": _iso(story.completed_at),
    }


def turn_to_dict(turn, holder=None) -> dict:
    data = {
        "story_id": turn.story_id,
        "current_turn": turn.current_turn,
        "current_user_id": turn.current_user_id,
        "updated_at": _iso(turn.updated_at),
    }
    if holder is not None:
        data["current_user"] = user_brief(holder)
    return data


def participant_to_dict(participant, user=None) -> dict:
    return {
        "story_id": participant.story_id,
        "user_id": participant.user_id,
        "role": participant.role,
        "join_order": participant.id,
        "joined_at": _iso(participant.joined_at),
        "user": user_brief(user),
    }


def segment_to_dict(segment, user=None) -> dict:
    data = {
        "id": segment.id,
        "story_id": segment.story_id,
        "user_id": segment.user_id,
        "turn": segment.turn,
        "content": segment.content,
        "word_count": segment.word_count,
        "character_count": segment.character_count,
        "is_edited": segment.is_edited,
        "last_edited_at": _iso(segment.last_edited_at),
        "edited_by": segment.edited_by,
        "created_at": _iso(segment.created_at),
    }
    if user is not None:
        data["user"] = user_brief(user)
    return data


def edit_request_to_dict(edit_request) -> dict:
    data = {
        "id": edit_request.id,
        "story_id": edit_request.story_id,
        "requester_id": edit_request.requester_id,
        "author_id": edit_request.author_id,
        "edit_type": edit_request.edit_type,
        "reason": edit_request.reason,
        "status": edit_request.status,
        "resolved_by": edit_request.resolved_by,
        "created_at": _iso(edit_request.created_at),
        "resolved_at": _iso(edit_request.resolved_at),
    }
    if edit_request.edit_type == "segment_content":
        data["target"] = {
            "kind": "segment",
            "segment_id": edit_request.segment_id,
            "original_content": edit_request.original_content,
            "proposed_content": edit_request.proposed_content,
        }
    else:
        data["target"] = {
            "kind": "metadata",
            "original_title": edit_request.original_title,
            "original_description": edit_request.original_description,
            "original_genre": edit_request.original_genre,
            "proposed_title": edit_request.proposed_title,
            "proposed_description": edit_request.proposed_description,
            "proposed_genre": edit_request.proposed_genre,
        }
    return data


def invitation_to_dict(invitation) -> dict:
    return {
        "id": invitation.id,
        "story_id": invitation.story_id,
        "inviter_id": invitation.inviter_id,
        "invitee_id": invitation.invitee_id,
        "invitee_email": invitation.invitee_email,
        "status": invitation.status,
        "expires_at": _iso(invitation.expires_at),
        "created_at": _iso(invitation.created_at),
        "responded_at": _iso(invitation.responded_at),
    }


def join_request_to_dict(join_request) -> dict:
    return {
        "id": join_request.id,
        "story_id": join_request.story_id,
        "requester_id": join_request.requester_id,
        "author_id": join_request.author_id,
        "message": join_request.message,
        "status": join_request.status,
        "created_at": _iso(join_request.created_at),
    }
