from jose import jwt

from backend.config.settings import settings
from backend.db.dao import ParticipantDAO, StoryDAO, TurnDAO, UserDAO
from backend.models import UserCreate, UserLogin, UserStatus
from backend.services.errors import ErrorCode, error_code
from backend.services.turn_service import turn_service
from backend.services.user_service import user_service


async def test_register_and_login(session):
    registered = await user_service.register(
        session, UserCreate(username="erin", email="Erin@Example.com", password="secret123")
    )
    assert registered.success
    assert registered.data["email"] == "erin@example.com"
    claims = jwt.decode(registered.data["token"], settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    assert claims["sub"] == registered.data["user_id"]

    logged_in = await user_service.login(session, UserLogin(email="erin@example.com", password="secret123"))
    assert logged_in.success

    wrong = await user_service.login(session, UserLogin(email="erin@example.com", password="wrong-one"))
    assert error_code(wrong) == ErrorCode.INVALID_CREDENTIALS


async def test_duplicate_registration(session, alice):
    by_email = await user_service.register(
        session, UserCreate(username="other", email="alice@example.com", password="secret123")
    )
    by_name = await user_service.register(
        session, UserCreate(username="alice", email="other@example.com", password="secret123")
    )

    assert error_code(by_email) == ErrorCode.EMAIL_EXISTS
    assert error_code(by_name) == ErrorCode.USERNAME_EXISTS


async def test_deleted_account_identifiers_stay_taken(session, alice):
    await user_service.delete_account(session, alice.id)
    assert alice.status == UserStatus.DELETED.value

    by_email = await user_service.register(
        session, UserCreate(username="alice2", email="ALICE@example.com", password="secret123")
    )
    by_name = await user_service.register(
        session, UserCreate(username="alice", email="fresh@example.com", password="secret123")
    )

    assert error_code(by_email) == ErrorCode.EMAIL_EXISTS
    assert error_code(by_name) == ErrorCode.USERNAME_EXISTS


async def test_lookup_by_username_or_email(session, bob):
    assert (await user_service.lookup(session, "bob")).data["user_id"] == bob.id
    assert (await user_service.lookup(session, "BOB@example.com")).data["user_id"] == bob.id
    assert error_code(await user_service.lookup(session, "ghost")) == ErrorCode.USER_NOT_FOUND


class TestDeleteAccount:

    async def test_solo_story_is_burned(self, session, alice, make_story):
        story_id = await make_story(alice)

        result = await user_service.delete_account(session, alice.id)

        assert result.data["burned"] == [story_id]
        assert await StoryDAO.get_by_id(session, story_id) is None
        assert await UserDAO.get_by_id(session, alice.id) is None

    async def test_authorship_passes_to_next_in_join_order(self, session, alice, bob, carol, make_story):
        story_id = await make_story(alice, members=[carol, bob])

        result = await user_service.delete_account(session, alice.id)

        assert result.data["transferred"] == [story_id]
        story = await StoryDAO.get_by_id(session, story_id)
        assert story.author_id == carol.id
        assert story.creator_id == alice.id
        assert not await ParticipantDAO.exists(session, story_id, alice.id)

        # alice 持有回合，注销前先传给下一位
        turn = await TurnDAO.get(session, story_id)
        assert turn.current_user_id == carol.id
        assert turn.current_turn == 2

    async def test_member_holding_turn_passes_it_on(self, session, alice, bob, carol, make_story):
        story_id = await make_story(alice, members=[bob, carol])
        await turn_service.skip(session, story_id, alice.id)

        result = await user_service.delete_account(session, bob.id)

        assert result.data["left"] == [story_id]
        turn = await TurnDAO.get(session, story_id)
        assert turn.current_user_id == carol.id
        assert (await StoryDAO.get_by_id(session, story_id)).author_id == alice.id

    async def test_unknown_user(self, session):
        result = await user_service.delete_account(session, "missing")
        assert error_code(result) == ErrorCode.USER_NOT_FOUND
