from backend.db.dao import SegmentDAO, TurnDAO
from backend.models import SegmentCreate
from backend.services.errors import ErrorCode, error_code
from backend.services.segment_service import segment_service, resolve_counts
from backend.services.story_service import story_service
from backend.services.turn_service import turn_service
from backend.utils.background import pending_after_commit

from tests.conftest import words


async def submit(session, story_id, user, content, **counts):
    return await segment_service.submit(session, story_id, user.id, SegmentCreate(content=content, **counts))


async def test_single_participant_submission_advances_turn(session, alice, make_story):
    story_id = await make_story(alice)

    result = await submit(session, story_id, alice, words(50))

    assert result.success
    assert result.data["segment"]["turn"] == 1
    assert result.data["segment"]["word_count"] == 50
    assert result.data["turn"]["current_turn"] == 2
    assert result.data["turn"]["current_user_id"] == alice.id


async def test_over_word_limit_is_rejected_and_turn_unchanged(session, alice, make_story):
    story_id = await make_story(alice)
    await submit(session, story_id, alice, words(50))

    result = await submit(session, story_id, alice, words(150))

    assert error_code(result) == ErrorCode.WORD_LIMIT_EXCEEDED
    assert result.error["word_count"] == 150
    assert result.error["word_limit"] == 100
    turn = await TurnDAO.get(session, story_id)
    assert turn.current_turn == 2
    assert await SegmentDAO.count_by_story(session, story_id) == 1


async def test_two_participants_alternate(session, alice, bob, make_story):
    story_id = await make_story(alice, members=[bob])
    await submit(session, story_id, alice, "The lamp flickered once.")

    rejected = await submit(session, story_id, alice, "Then again.")
    assert error_code(rejected) == ErrorCode.NOT_YOUR_TURN
    assert rejected.error["current_turn"] == 2
    assert rejected.error["current_user_id"] == bob.id
    assert rejected.error["current_username"] == "bob"

    accepted = await submit(session, story_id, bob, "Footsteps on the stairs.")
    assert accepted.success
    assert accepted.data["turn"]["current_user_id"] == alice.id
    assert accepted.data["turn"]["current_turn"] == 3


async def test_skipped_turn_leaves_gap_in_segment_turns(session, alice, bob, carol, make_story):
    story_id = await make_story(alice, members=[bob, carol])
    await submit(session, story_id, alice, "The fog lifted.")

    skipped = await turn_service.skip(session, story_id, bob.id)
    assert skipped.data["skipped_turn"] == 2

    written = await submit(session, story_id, carol, "A gull cried out.")
    assert written.success
    assert written.data["segment"]["turn"] == 3

    segments = await SegmentDAO.list_by_story(session, story_id)
    assert [(s.turn, s.user_id) for s in segments] == [(1, alice.id), (3, carol.id)]
    turn = await TurnDAO.get(session, story_id)
    assert turn.current_turn == 4
    assert turn.current_user_id == alice.id


async def test_closed_story_checked_before_turn(session, alice, bob, make_story):
    story_id = await make_story(alice, members=[bob])
    await story_service.complete_story(session, story_id, bob.id)

    # bob 既不是持有者，故事也已完结：应返回 STORY_CLOSED
    result = await submit(session, story_id, bob, "Too late.")

    assert error_code(result) == ErrorCode.STORY_CLOSED


async def test_outsider_cannot_submit(session, alice, carol, make_story):
    story_id = await make_story(alice)

    result = await submit(session, story_id, carol, "Hello there.")

    assert error_code(result) == ErrorCode.NOT_A_PARTICIPANT


async def test_unknown_story(session, alice):
    result = await submit(session, "missing", alice, "Hello there.")
    assert error_code(result) == ErrorCode.STORY_NOT_FOUND


async def test_whitespace_only_content_has_zero_words(session, alice, make_story):
    story_id = await make_story(alice)

    result = await submit(session, story_id, alice, "   ")

    assert error_code(result) == ErrorCode.WORD_LIMIT_EXCEEDED
    assert result.error["word_count"] == 0


async def test_character_limit(session, alice, make_story):
    story_id = await make_story(alice, character_limit=20)

    result = await submit(session, story_id, alice, "This sentence is longer than twenty characters.")

    assert error_code(result) == ErrorCode.CHARACTER_LIMIT_EXCEEDED
    assert result.error["character_limit"] == 20


async def test_content_is_stored_stripped(session, alice, make_story):
    story_id = await make_story(alice)

    result = await submit(session, story_id, alice, "  Rain again.  \n")

    assert result.data["segment"]["content"] == "Rain again."
    assert result.data["segment"]["character_count"] == len("Rain again.")


async def test_client_counts_ignored_when_recomputing(session, alice, make_story):
    story_id = await make_story(alice)

    result = await submit(session, story_id, alice, words(150), word_count=10, character_count=10)

    assert error_code(result) == ErrorCode.WORD_LIMIT_EXCEEDED


async def test_client_counts_trusted_when_recompute_disabled(session, alice, make_story, monkeypatch):
    monkeypatch.setenv("RECOMPUTE_SEGMENT_COUNTS", "false")
    story_id = await make_story(alice)

    result = await submit(session, story_id, alice, "Short content here.", word_count=42)

    assert result.success
    assert result.data["segment"]["word_count"] == 42
    assert result.data["segment"]["character_count"] == len("Short content here.")


def test_resolve_counts_fills_missing_client_values(monkeypatch):
    monkeypatch.setenv("RECOMPUTE_SEGMENT_COUNTS", "false")
    assert resolve_counts("one two three", None, 5) == (3, 5)


async def test_segments_and_turn_stay_consistent(session, alice, bob, carol, make_story):
    story_id = await make_story(alice, members=[bob, carol])
    writers = [alice, bob, carol, alice, bob]

    for writer in writers:
        result = await submit(session, story_id, writer, f"{writer.username} writes a line.")
        assert result.success

    segments = await SegmentDAO.list_by_story(session, story_id)
    turn = await TurnDAO.get(session, story_id)
    assert [s.turn for s in segments] == [1, 2, 3, 4, 5]
    assert [s.user_id for s in segments] == [w.id for w in writers]
    assert max(s.turn for s in segments) < turn.current_turn
    assert turn.current_user_id == carol.id


async def test_next_holder_is_notified_after_commit(session, alice, bob, make_story):
    story_id = await make_story(alice, members=[bob])

    await submit(session, story_id, alice, "The door creaked.")

    names = [name for _, name in pending_after_commit(session)]
    assert names == ["notify:your_turn"]


async def test_list_segments_includes_prompt_and_writers(session, alice, bob, make_story):
    story_id = await make_story(alice, members=[bob])
    await submit(session, story_id, alice, "First.")
    await submit(session, story_id, bob, "Second.")

    result = await segment_service.list_segments(session, story_id)

    assert result.data["prompt"] == "The lamp went dark at midnight."
    assert result.data["total"] == 2
    assert [s["user"]["username"] for s in result.data["segments"]] == ["alice", "bob"]
