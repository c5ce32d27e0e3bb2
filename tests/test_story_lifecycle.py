from backend.db.dao import (
    StoryDAO, SegmentDAO, TurnDAO, ParticipantDAO, InvitationDAO, JoinRequestDAO
)
from backend.models import SegmentCreate, StoryCreate, StoryUpdate
from backend.services.errors import ErrorCode, error_code
from backend.services.invitation_service import invitation_service
from backend.services.segment_service import segment_service
from backend.services.story_service import story_service
from backend.utils.background import pending_after_commit


def _story(**overrides):
    fields = dict(title="Tides", description="The sea withdrew.", genre="Drama", word_limit=100)
    fields.update(overrides)
    return StoryCreate(**fields)


class TestCreate:

    async def test_create_sets_creator_author_and_defaults(self, session, alice):
        result = await story_service.create_story(session, alice.id, _story())

        assert result.success
        data = result.data
        assert data["creator_id"] == alice.id
        assert data["author_id"] == alice.id
        assert data["is_complete"] is False
        assert data["max_segments"] == 30
        assert data["turn"]["current_turn"] == 1

    async def test_word_limit_outside_configured_range(self, session, alice):
        result = await story_service.create_story(session, alice.id, _story(word_limit=10))

        assert error_code(result) == ErrorCode.INVALID_PAYLOAD
        assert result.error["field"] == "word_limit"

    async def test_character_limit_outside_configured_range(self, session, alice):
        result = await story_service.create_story(session, alice.id, _story(character_limit=5000))

        assert error_code(result) == ErrorCode.INVALID_PAYLOAD
        assert result.error["field"] == "character_limit"

    async def test_get_story_reports_progress(self, session, alice, make_story):
        story_id = await make_story(alice, max_segments=10)
        await segment_service.submit(session, story_id, alice.id, SegmentCreate(content="One line."))

        result = await story_service.get_story(session, story_id)

        assert result.data["segment_count"] == 1
        assert result.data["participant_count"] == 1
        assert result.data["progress"] == 0.1
        assert result.data["turn"]["current_user"]["username"] == "alice"


class TestComplete:

    async def test_any_participant_can_complete(self, session, alice, bob, make_story):
        story_id = await make_story(alice, members=[bob])

        result = await story_service.complete_story(session, story_id, bob.id)

        assert result.success
        assert result.data["is_complete"] is True
        assert result.data["completed_at"] is not None
        names = [name for _, name in pending_after_commit(session)]
        assert names == ["notify:story_completed"]

    async def test_completing_twice(self, session, alice, make_story):
        story_id = await make_story(alice)
        await story_service.complete_story(session, story_id, alice.id)

        result = await story_service.complete_story(session, story_id, alice.id)

        assert error_code(result) == ErrorCode.ALREADY_COMPLETE

    async def test_outsider_cannot_complete(self, session, alice, carol, make_story):
        story_id = await make_story(alice)

        result = await story_service.complete_story(session, story_id, carol.id)

        assert error_code(result) == ErrorCode.NOT_A_PARTICIPANT


class TestBurn:

    async def test_burn_removes_everything_and_submit_reports_not_found(
        self, session, alice, bob, carol, make_story
    ):
        story_id = await make_story(alice, members=[bob])
        await segment_service.submit(session, story_id, alice.id, SegmentCreate(content="Opening move."))
        await invitation_service.invite(session, story_id, alice.id, "carol")

        result = await story_service.delete_story(session, story_id, alice.id)
        assert result.success

        assert await StoryDAO.get_by_id(session, story_id) is None
        assert await ParticipantDAO.count_by_story(session, story_id) == 0
        assert await SegmentDAO.count_by_story(session, story_id) == 0
        assert await TurnDAO.get(session, story_id) is None
        assert await InvitationDAO.list_pending_for_user(session, carol.id, carol.email) == []

        submitted = await segment_service.submit(session, story_id, bob.id, SegmentCreate(content="Hello?"))
        assert error_code(submitted) == ErrorCode.STORY_NOT_FOUND

    async def test_burn_notifies_every_participant_with_story_text(self, session, alice, bob, make_story):
        story_id = await make_story(alice, members=[bob])
        await segment_service.submit(session, story_id, alice.id, SegmentCreate(content="Opening move."))

        await story_service.delete_story(session, story_id, alice.id)

        burned = [name for _, name in pending_after_commit(session) if name == "notify:story_burned"]
        assert len(burned) == 2

    async def test_only_author_can_burn(self, session, alice, bob, make_story):
        story_id = await make_story(alice, members=[bob])

        result = await story_service.delete_story(session, story_id, bob.id)

        assert error_code(result) == ErrorCode.FORBIDDEN
        assert await StoryDAO.get_by_id(session, story_id) is not None

    async def test_compose_story_text_orders_segments(self, session, alice, bob, make_story):
        story_id = await make_story(alice, members=[bob])
        await segment_service.submit(session, story_id, alice.id, SegmentCreate(content="First."))
        await segment_service.submit(session, story_id, bob.id, SegmentCreate(content="Second."))
        story = await StoryDAO.get_by_id(session, story_id)

        text = await story_service.compose_story_text(session, story)

        assert text.index("First.") < text.index("Second.")
        assert text.startswith("The Lighthouse")
        assert "[2] bob:" in text


class TestUpdateAndTransfer:

    async def test_new_word_limit_applies_to_next_segment_only(self, session, alice, make_story):
        story_id = await make_story(alice)
        long_text = " ".join(["word"] * 80)
        await segment_service.submit(session, story_id, alice.id, SegmentCreate(content=long_text))

        updated = await story_service.update_story(session, story_id, alice.id, StoryUpdate(word_limit=60))
        assert updated.success

        rejected = await segment_service.submit(session, story_id, alice.id, SegmentCreate(content=long_text))
        assert error_code(rejected) == ErrorCode.WORD_LIMIT_EXCEEDED
        assert await SegmentDAO.count_by_story(session, story_id) == 1

    async def test_only_author_updates(self, session, alice, bob, make_story):
        story_id = await make_story(alice, members=[bob])

        result = await story_service.update_story(session, story_id, bob.id, StoryUpdate(title="Mine now"))

        assert error_code(result) == ErrorCode.FORBIDDEN

    async def test_empty_update(self, session, alice, make_story):
        story_id = await make_story(alice)

        result = await story_service.update_story(session, story_id, alice.id, StoryUpdate())

        assert error_code(result) == ErrorCode.INVALID_PAYLOAD

    async def test_transfer_swaps_roles_and_keeps_creator(self, session, alice, bob, make_story):
        story_id = await make_story(alice, members=[bob])

        result = await story_service.transfer_ownership(session, story_id, alice.id, bob.id)

        assert result.success
        assert result.data["story"]["author_id"] == bob.id
        assert result.data["story"]["creator_id"] == alice.id
        assert (await ParticipantDAO.get(session, story_id, bob.id)).role == "author"
        assert (await ParticipantDAO.get(session, story_id, alice.id)).role == "participant"

    async def test_transfer_to_outsider(self, session, alice, carol, make_story):
        story_id = await make_story(alice)

        result = await story_service.transfer_ownership(session, story_id, alice.id, carol.id)

        assert error_code(result) == ErrorCode.NOT_A_PARTICIPANT

    async def test_transfer_to_self(self, session, alice, make_story):
        story_id = await make_story(alice)

        result = await story_service.transfer_ownership(session, story_id, alice.id, alice.id)

        assert error_code(result) == ErrorCode.INVALID_PAYLOAD


class TestListings:

    async def test_my_turn_and_waiting(self, session, alice, bob, make_story):
        first = await make_story(alice, members=[bob])
        second = await make_story(bob, members=[alice])

        my_turn = await story_service.get_my_turn_stories(session, alice.id)
        waiting = await story_service.get_waiting_stories(session, alice.id)

        assert [s["id"] for s in my_turn.data["stories"]] == [first]
        assert [s["id"] for s in waiting.data["stories"]] == [second]
        assert waiting.data["stories"][0]["turn"]["current_user"]["username"] == "bob"

    async def test_completed_stories_leave_turn_listings(self, session, alice, make_story):
        story_id = await make_story(alice)
        await story_service.complete_story(session, story_id, alice.id)

        my_turn = await story_service.get_my_turn_stories(session, alice.id)

        assert my_turn.data["stories"] == []

    async def test_public_listing_hides_private_stories(self, session, alice, make_story):
        public_id = await make_story(alice)
        await make_story(alice, is_public=False)

        result = await story_service.list_public_stories(session)

        assert [s["id"] for s in result.data["stories"]] == [public_id]
        assert result.data["limit"] == 20

    async def test_join_request_rows_removed_on_burn(self, session, alice, bob, make_story):
        story_id = await make_story(alice, is_public=False)
        await invitation_service.request_join(session, story_id, bob.id)

        await story_service.delete_story(session, story_id, alice.id)

        assert await JoinRequestDAO.get_pending(session, story_id, bob.id) is None
