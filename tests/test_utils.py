import time

import pytest
from jose import jwt

from backend.config.settings import settings
from backend.services.errors import (
    ErrorCode, ErrorKind, error_kind, error_response, error_status
)
from backend.utils.auth import issue_user_token
from backend.utils.text import count_characters, count_words


@pytest.mark.parametrize("content, expected", [
    ("", 0),
    ("   ", 0),
    ("one", 1),
    ("one  two\nthree\tfour", 4),
    ("  leading and trailing  ", 3),
])
def test_count_words(content, expected):
    assert count_words(content) == expected


def test_count_characters_ignores_outer_whitespace():
    assert count_characters("  abc def  ") == 7
    assert count_characters("") == 0


@pytest.mark.parametrize("code, status", [
    (ErrorCode.STORY_NOT_FOUND, 404),
    (ErrorCode.NOT_YOUR_TURN, 403),
    (ErrorCode.NOT_A_PARTICIPANT, 403),
    (ErrorCode.TURN_CONFLICT, 409),
    (ErrorCode.ALREADY_RESOLVED, 409),
    (ErrorCode.STORY_CLOSED, 409),
    (ErrorCode.WORD_LIMIT_EXCEEDED, 422),
    (ErrorCode.INVITATION_EXPIRED, 410),
    (ErrorCode.INVALID_CREDENTIALS, 401),
])
def test_error_status(code, status):
    assert error_status(error_response(code, "failed")) == status


def test_error_response_carries_kind_and_details():
    result = error_response(ErrorCode.WORD_LIMIT_EXCEEDED, "Too long", word_count=150, word_limit=100)

    assert result.success is False
    assert result.message == "Too long"
    assert result.error["code"] == "WORD_LIMIT_EXCEEDED"
    assert result.error["kind"] == ErrorKind.VALIDATION.value
    assert result.error["word_count"] == 150
    assert error_kind(ErrorCode.STORY_DELETED) == ErrorKind.STATE_CONFLICT


def test_issued_token_carries_user_claims():
    token = issue_user_token("usr_1", "alice")
    claims = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    assert claims["sub"] == "usr_1"
    assert claims["username"] == "alice"
    assert claims["exp"] > time.time()
