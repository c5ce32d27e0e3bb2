from backend.db.dao import ParticipantDAO, TurnDAO
from backend.models import ParticipantRole
from backend.services.errors import ErrorCode, error_code
from backend.services.participant_service import participant_service
from backend.services.turn_service import turn_service
from backend.services.user_service import user_service


async def test_creator_is_registered_as_author(session, alice, make_story):
    story_id = await make_story(alice)

    result = await participant_service.list_participants(session, story_id)

    assert result.data["total"] == 1
    assert result.data["participants"][0]["user_id"] == alice.id
    assert result.data["participants"][0]["role"] == ParticipantRole.AUTHOR.value


async def test_participants_listed_in_join_order(session, alice, bob, carol, make_story):
    story_id = await make_story(alice, members=[carol, bob])

    result = await participant_service.list_participants(session, story_id)

    participants = result.data["participants"]
    assert [p["user"]["username"] for p in participants] == ["alice", "carol", "bob"]
    orders = [p["join_order"] for p in participants]
    assert orders == sorted(orders)


async def test_adding_twice_is_a_conflict(session, alice, bob, make_story):
    story_id = await make_story(alice, members=[bob])

    result = await participant_service.add_participant(session, story_id, bob.id)

    assert error_code(result) == ErrorCode.ALREADY_PARTICIPANT


async def test_deleted_account_cannot_be_added(session, alice, bob, make_story):
    story_id = await make_story(alice)
    await user_service.delete_account(session, bob.id)

    result = await participant_service.add_participant(session, story_id, bob.id)

    assert error_code(result) == ErrorCode.USER_NOT_FOUND


async def test_concurrent_add_rejected_by_unique_constraint(session, alice, bob, make_story, monkeypatch):
    story_id = await make_story(alice, members=[bob])

    # 另一个请求在 exists 检查之后、插入之前抢先加入
    async def not_yet(session, story_id, user_id):
        return False

    monkeypatch.setattr(ParticipantDAO, "exists", staticmethod(not_yet))

    result = await participant_service.add_participant(session, story_id, bob.id)

    assert error_code(result) == ErrorCode.ALREADY_PARTICIPANT


class TestLeave:

    async def test_turn_holder_cannot_leave(self, session, alice, bob, make_story):
        story_id = await make_story(alice, members=[bob])
        await turn_service.skip(session, story_id, alice.id)

        result = await participant_service.remove_participant(session, story_id, bob.id)

        assert error_code(result) == ErrorCode.TURN_CONFLICT
        assert result.error["current_user_id"] == bob.id
        assert await participant_service.is_participant(session, story_id, bob.id)

    async def test_author_cannot_leave(self, session, alice, bob, make_story):
        story_id = await make_story(alice, members=[bob])
        await turn_service.skip(session, story_id, alice.id)

        result = await participant_service.remove_participant(session, story_id, alice.id)

        assert error_code(result) == ErrorCode.FORBIDDEN

    async def test_author_holding_turn_gets_forbidden_first(self, session, alice, bob, make_story):
        story_id = await make_story(alice, members=[bob])

        result = await participant_service.remove_participant(session, story_id, alice.id)

        assert error_code(result) == ErrorCode.FORBIDDEN

    async def test_non_holder_leaves_and_rotation_shrinks(self, session, alice, bob, make_story):
        story_id = await make_story(alice, members=[bob])

        result = await participant_service.remove_participant(session, story_id, bob.id)
        assert result.success

        listed = await participant_service.list_participants(session, story_id)
        assert [p["user_id"] for p in listed.data["participants"]] == [alice.id]

        turn = await TurnDAO.get(session, story_id)
        await turn_service.advance(session, turn)
        assert turn.current_turn == 2
        assert turn.current_user_id == alice.id

    async def test_outsider_cannot_leave(self, session, alice, carol, make_story):
        story_id = await make_story(alice)

        result = await participant_service.remove_participant(session, story_id, carol.id)

        assert error_code(result) == ErrorCode.NOT_A_PARTICIPANT

    async def test_leave_unknown_story(self, session, bob):
        result = await participant_service.remove_participant(session, "missing", bob.id)
        assert error_code(result) == ErrorCode.STORY_NOT_FOUND
