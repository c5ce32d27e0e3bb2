import pytest
from pydantic import ValidationError

from backend.db.dao import SegmentDAO, StoryDAO
from backend.models import EditRequestCreate, EditType, SegmentCreate
from backend.services.edit_request_service import edit_request_service
from backend.services.errors import ErrorCode, error_code
from backend.services.segment_service import segment_service
from backend.services.story_service import story_service


def segment_edit(segment_id, content, reason=None):
    return EditRequestCreate(
        target={"kind": "segment", "segment_id": segment_id, "proposed_content": content},
        reason=reason,
    )


@pytest.fixture
def written_story(session, alice, bob, carol, make_story):
    """alice 作者，bob 写了第 2 段，carol 是参与者"""
    async def _build():
        story_id = await make_story(alice, members=[bob, carol])
        await segment_service.submit(session, story_id, alice.id, SegmentCreate(content="The bell rang."))
        written = await segment_service.submit(session, story_id, bob.id, SegmentCreate(content="Nobody answered."))
        return story_id, written.data["segment"]["id"]
    return _build


def test_payload_is_a_tagged_variant():
    request = EditRequestCreate(target={"kind": "metadata", "proposed_title": "New"})
    assert request.edit_type == EditType.STORY_METADATA

    with pytest.raises(ValidationError):
        EditRequestCreate(target={"kind": "metadata"})
    with pytest.raises(ValidationError):
        EditRequestCreate(target={"kind": "poem", "proposed_content": "x"})


async def test_approved_segment_edit_overwrites_content(session, alice, carol, written_story):
    story_id, segment_id = await written_story()

    proposed = await edit_request_service.propose(
        session, story_id, carol.id, segment_edit(segment_id, "Somebody answered, softly.", "Tension")
    )
    assert proposed.success
    assert proposed.data["status"] == "pending"
    assert proposed.data["target"]["original_content"] == "Nobody answered."
    request_id = proposed.data["id"]

    approved = await edit_request_service.approve(session, request_id, alice.id)
    assert approved.success
    assert approved.data["edit_request"]["status"] == "approved"
    assert approved.data["edit_request"]["resolved_by"] == alice.id

    segment = await SegmentDAO.get_by_id(session, segment_id)
    assert segment.content == "Somebody answered, softly."
    assert segment.word_count == 3
    assert segment.is_edited is True
    assert segment.edited_by == carol.id
    story = await StoryDAO.get_by_id(session, story_id)
    assert story.is_edited is True

    again = await edit_request_service.approve(session, request_id, alice.id)
    assert error_code(again) == ErrorCode.ALREADY_RESOLVED


async def test_snapshot_survives_later_changes(session, alice, bob, carol, written_story):
    story_id, segment_id = await written_story()
    first = await edit_request_service.propose(session, story_id, carol.id, segment_edit(segment_id, "Version A."))
    second = await edit_request_service.propose(session, story_id, bob.id, segment_edit(segment_id, "Version B."))

    await edit_request_service.approve(session, first.data["id"], alice.id)

    listed = await edit_request_service.list_story_requests(session, story_id, bob.id)
    by_id = {r["id"]: r for r in listed.data["edit_requests"]}
    assert by_id[second.data["id"]]["target"]["original_content"] == "Nobody answered."


async def test_denied_edit_changes_nothing(session, alice, carol, written_story):
    story_id, segment_id = await written_story()
    proposed = await edit_request_service.propose(session, story_id, carol.id, segment_edit(segment_id, "Other."))

    denied = await edit_request_service.deny(session, proposed.data["id"], alice.id)

    assert denied.data["status"] == "denied"
    assert (await SegmentDAO.get_by_id(session, segment_id)).content == "Nobody answered."
    assert (await StoryDAO.get_by_id(session, story_id)).is_edited is False


async def test_denied_request_cannot_be_resolved_again(session, alice, carol, written_story):
    story_id, segment_id = await written_story()
    proposed = await edit_request_service.propose(session, story_id, carol.id, segment_edit(segment_id, "Other."))
    await edit_request_service.deny(session, proposed.data["id"], alice.id)

    denied_again = await edit_request_service.deny(session, proposed.data["id"], alice.id)
    approved_late = await edit_request_service.approve(session, proposed.data["id"], alice.id)

    assert error_code(denied_again) == ErrorCode.ALREADY_RESOLVED
    assert error_code(approved_late) == ErrorCode.ALREADY_RESOLVED
    assert (await SegmentDAO.get_by_id(session, segment_id)).content == "Nobody answered."


async def test_approved_request_cannot_be_denied(session, alice, carol, written_story):
    story_id, segment_id = await written_story()
    proposed = await edit_request_service.propose(session, story_id, carol.id, segment_edit(segment_id, "Other."))
    await edit_request_service.approve(session, proposed.data["id"], alice.id)

    result = await edit_request_service.deny(session, proposed.data["id"], alice.id)

    assert error_code(result) == ErrorCode.ALREADY_RESOLVED
    assert (await SegmentDAO.get_by_id(session, segment_id)).content == "Other."


async def test_only_author_resolves(session, bob, carol, written_story):
    story_id, segment_id = await written_story()
    proposed = await edit_request_service.propose(session, story_id, carol.id, segment_edit(segment_id, "Other."))

    result = await edit_request_service.approve(session, proposed.data["id"], bob.id)

    assert error_code(result) == ErrorCode.FORBIDDEN


async def test_authority_follows_ownership_transfer(session, alice, bob, carol, written_story):
    story_id, segment_id = await written_story()
    proposed = await edit_request_service.propose(session, story_id, carol.id, segment_edit(segment_id, "Other."))
    await story_service.transfer_ownership(session, story_id, alice.id, bob.id)

    by_old_author = await edit_request_service.approve(session, proposed.data["id"], alice.id)
    by_new_author = await edit_request_service.approve(session, proposed.data["id"], bob.id)

    assert error_code(by_old_author) == ErrorCode.FORBIDDEN
    assert by_new_author.success


async def test_metadata_edit_updates_only_proposed_fields(session, alice, carol, make_story):
    story_id = await make_story(alice, members=[carol])
    request = EditRequestCreate(target={"kind": "metadata", "proposed_title": "The Dark Lighthouse"})

    proposed = await edit_request_service.propose(session, story_id, carol.id, request)
    assert proposed.data["edit_type"] == "story_metadata"
    assert proposed.data["target"]["original_title"] == "The Lighthouse"

    await edit_request_service.approve(session, proposed.data["id"], alice.id)

    story = await StoryDAO.get_by_id(session, story_id)
    assert story.title == "The Dark Lighthouse"
    assert story.genre == "Mystery"
    assert story.is_edited is True


async def test_prompt_edit_targets_description(session, alice, carol, make_story):
    story_id = await make_story(alice, members=[carol])

    proposed = await edit_request_service.propose(
        session, story_id, carol.id, segment_edit(None, "The lamp went dark at dawn.")
    )
    assert proposed.data["target"]["original_content"] == "The lamp went dark at midnight."
    await edit_request_service.approve(session, proposed.data["id"], alice.id)

    story = await StoryDAO.get_by_id(session, story_id)
    assert story.description == "The lamp went dark at dawn."


async def test_outsider_cannot_propose(session, alice, make_user, written_story):
    story_id, segment_id = await written_story()
    dave = await make_user("dave")

    result = await edit_request_service.propose(session, story_id, dave.id, segment_edit(segment_id, "Mine."))

    assert error_code(result) == ErrorCode.NOT_A_PARTICIPANT


async def test_segment_from_another_story(session, alice, carol, make_story, written_story):
    story_id, segment_id = await written_story()
    other_story = await make_story(carol)

    result = await edit_request_service.propose(session, other_story, carol.id, segment_edit(segment_id, "X."))

    assert error_code(result) == ErrorCode.FORBIDDEN


async def test_unknown_segment(session, carol, written_story):
    story_id, _ = await written_story()

    result = await edit_request_service.propose(session, story_id, carol.id, segment_edit("missing", "X."))

    assert error_code(result) == ErrorCode.SEGMENT_NOT_FOUND


async def test_resolving_after_burn_reports_story_deleted(session, alice, carol, written_story):
    story_id, segment_id = await written_story()
    proposed = await edit_request_service.propose(session, story_id, carol.id, segment_edit(segment_id, "X."))
    await story_service.delete_story(session, story_id, alice.id)

    result = await edit_request_service.approve(session, proposed.data["id"], alice.id)

    assert error_code(result) == ErrorCode.STORY_DELETED


async def test_unknown_request(session, alice):
    result = await edit_request_service.deny(session, "missing", alice.id)
    assert error_code(result) == ErrorCode.EDIT_REQUEST_NOT_FOUND


async def test_pending_queue_for_author(session, alice, bob, carol, written_story):
    story_id, segment_id = await written_story()
    kept = await edit_request_service.propose(session, story_id, carol.id, segment_edit(segment_id, "A."))
    resolved = await edit_request_service.propose(session, story_id, bob.id, segment_edit(segment_id, "B."))
    await edit_request_service.deny(session, resolved.data["id"], alice.id)

    author_queue = await edit_request_service.list_pending_for_author(session, alice.id)
    other_queue = await edit_request_service.list_pending_for_author(session, bob.id)

    assert [r["id"] for r in author_queue.data["edit_requests"]] == [kept.data["id"]]
    assert other_queue.data["edit_requests"] == []
