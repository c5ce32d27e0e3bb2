import asyncio
import sys

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from backend.services.notification_service import (
    Notification, NotificationService, TEMPLATES, render
)
from backend.utils.background import (
    defer_after_commit, discard_after_commit, dispatch_after_commit, pending_after_commit
)
from backend.utils.redis_client import redis_client


def test_every_template_renders():
    for template_id in TEMPLATES:
        subject, body = render(template_id, {"story_title": "Tides"})
        assert subject
        assert body


def test_missing_placeholders_render_empty():
    subject, _ = render("edit_request_resolved", {})
    assert subject == "Your edit request was "


async def test_notify_rejects_unknown_template(session, alice):
    with pytest.raises(ValueError):
        await NotificationService().notify(session, [alice.id], "no_such_template", {})


async def test_notify_skips_excluded_and_duplicate_recipients(session, alice, bob):
    count = await NotificationService().notify(
        session, [alice.id, bob.id, bob.id], "your_turn", {"story_title": "Tides"}, exclude=[alice.id]
    )

    assert count == 1
    assert len(pending_after_commit(session)) == 1


async def test_disabled_notifications_are_not_queued(session, alice, monkeypatch):
    monkeypatch.setenv("NOTIFICATION_ENABLED", "false")

    await NotificationService().notify(session, [alice.id], "your_turn", {"story_title": "Tides"})

    assert pending_after_commit(session) == []


async def test_work_runs_only_after_dispatch(session):
    ran = []

    async def job():
        ran.append("sent")

    defer_after_commit(session, job, name="job")
    assert ran == []

    assert dispatch_after_commit(session) == 1
    await asyncio.sleep(0)
    await asyncio.sleep(0)

    assert ran == ["sent"]
    assert pending_after_commit(session) == []


async def test_rollback_discards_queued_work(session):
    ran = []

    async def job():
        ran.append("sent")

    defer_after_commit(session, job, name="job")

    assert discard_after_commit(session) == 1
    assert dispatch_after_commit(session) == 0
    await asyncio.sleep(0)
    assert ran == []


async def test_failed_background_task_is_contained(session):
    async def broken():
        raise RuntimeError("smtp down")

    defer_after_commit(session, broken, name="broken")
    dispatch_after_commit(session)
    await asyncio.sleep(0)
    await asyncio.sleep(0)


async def test_deliver_with_dummy_transport(monkeypatch):
    monkeypatch.setenv("EMAIL_TRANSPORT", "dummy")

    ok = await NotificationService().deliver(
        Notification(template_id="your_turn", payload={"story_title": "Tides"}, email="a@example.com")
    )

    assert ok is True


async def test_push_failure_is_logged_not_raised(monkeypatch):
    async def failing_publish(channel, message):
        raise RedisConnectionError("connection refused")

    monkeypatch.setattr(redis_client, "_client", object())
    monkeypatch.setattr(redis_client, "publish", failing_publish)

    ok = await NotificationService().deliver(
        Notification(template_id="your_turn", payload={"story_title": "Tides"}, user_id="usr_1")
    )

    assert ok is False


async def test_push_skipped_without_redis():
    assert not redis_client.connected
    assert await NotificationService().push("usr_1", {"type": "your_turn"}) == 0


async def test_smtp_failure_is_logged_not_raised(monkeypatch):
    monkeypatch.setenv("EMAIL_TRANSPORT", "smtp")

    def refuse(*args, **kwargs):
        raise ConnectionRefusedError("no smtp server")

    monkeypatch.setattr(sys.modules["backend.services.notification_service"], "_smtp_send", refuse)

    ok = await NotificationService().deliver(
        Notification(template_id="your_turn", payload={"story_title": "Tides"}, email="a@example.com")
    )

    assert ok is False
