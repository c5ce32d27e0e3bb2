"""
通知服务

邮件（SMTP / dummy）+ Redis 推送。服务层只负责登记通知，事务提交成功后才真正发送；
发送失败只记录日志，不影响已提交的状态变更。
"""

import smtplib
import ssl
from dataclasses import dataclass, field
from email.mime.text import MIMEText
from typing import Dict, Iterable, Optional

from loguru import logger
from redis.exceptions import RedisError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.config.settings import settings
from backend.db.dao import UserDAO
from backend.utils.background import defer_after_commit, run_sync
from backend.utils.redis_client import redis_client


# 模板ID -> (邮件标题, 正文)
TEMPLATES: Dict[str, tuple] = {
    "your_turn": (
        "It's your turn in \"{story_title}\"",
        "It's your turn to write the next part of \"{story_title}\" (turn {current_turn}).",
    ),
    "story_invitation": (
        "{inviter_name} invited you to \"{story_title}\"",
        "{inviter_name} invited you to write \"{story_title}\" together.\n\n"
        "Accept the invitation: {accept_url}\n\nThe invitation expires on {expires_at}.",
    ),
    "story_completed": (
        "\"{story_title}\" is complete",
        "{completed_by_name} marked \"{story_title}\" as complete.",
    ),
    "story_burned": (
        "\"{story_title}\" was burned",
        "The author burned \"{story_title}\". Here is the full story as it was written:\n\n{story_text}",
    ),
    "edit_request_created": (
        "New edit request for \"{story_title}\"",
        "{requester_name} proposed an edit to \"{story_title}\".\n\nReason: {reason}",
    ),
    "edit_request_resolved": (
        "Your edit request was {status}",
        "Your edit request for \"{story_title}\" was {status}.",
    ),
    "join_request_created": (
        "{requester_name} wants to join \"{story_title}\"",
        "{requester_name} asked to join \"{story_title}\".\n\nMessage: {message}",
    ),
    "join_request_resolved": (
        "Your request to join \"{story_title}\" was {status}",
        "Your request to join \"{story_title}\" was {status}.",
    ),
}


class _SafeDict(dict):
    def __missing__(self, key):
        return ""


@dataclass
class Notification:
    """一条待发送的通知"""
    template_id: str
    payload: dict = field(default_factory=dict)
    user_id: Optional[str] = None
    email: Optional[str] = None


def render(template_id: str, payload: dict) -> tuple:
    """
    渲染通知模板

    Returns:
        (subject, body)
    """
    subject, body = TEMPLATES[template_id]
    values = _SafeDict(payload)
    return subject.format_map(values), body.format_map(values)


def _smtp_send(to_email: str, subject: str, body: str) -> bool:
    """阻塞式 SMTP 发送（在线程池中执行）"""
    from_addr = settings.SMTP_FROM or settings.SMTP_USERNAME or "noreply@localhost"

    msg = MIMEText(body or "", "plain", "utf-8")
    msg["From"] = from_addr
    msg["To"] = to_email
    msg["Subject"] = subject

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30) as smtp:
        smtp.ehlo()
        if settings.SMTP_USE_TLS:
            smtp.starttls(context=ssl.create_default_context())
            smtp.ehlo()
        if settings.SMTP_USERNAME:
            smtp.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD or "")
        smtp.sendmail(from_addr, [to_email], msg.as_string())
    return True


class NotificationService:
    """通知服务"""

    async def notify(
        self,
        session: AsyncSession,
        user_ids: Iterable[str],
        template_id: str,
        payload: dict,
        exclude: Optional[Iterable[str]] = None
    ) -> int:
        """
        登记发给用户的通知（提交后发送）

        Args:
            session: 当前请求的数据库会话
            user_ids: 接收者
            template_id: 模板ID
            payload: 模板参数
            exclude: 不需要通知的用户（通常是操作者本人）

        Returns:
            登记的通知数量
        """
        if template_id not in TEMPLATES:
            raise ValueError(f"Unknown notification template: {template_id}")

        excluded = set(exclude or [])
        recipients = [uid for uid in dict.fromkeys(user_ids) if uid and uid not in excluded]
        if not recipients:
            return 0

        users = await UserDAO.get_by_ids(session, recipients)
        for user_id in recipients:
            user = users.get(user_id)
            self.enqueue(session, Notification(
                template_id=template_id,
                payload=dict(payload),
                user_id=user_id,
                email=user.email if user else None,
            ))
        return len(recipients)

    def notify_email(self, session: AsyncSession, email: str, template_id: str, payload: dict):
        """登记发给邮箱的通知（对方尚未注册）"""
        if template_id not in TEMPLATES:
            raise ValueError(f"Unknown notification template: {template_id}")
        self.enqueue(session, Notification(template_id=template_id, payload=dict(payload), email=email))

    def enqueue(self, session: AsyncSession, notification: Notification):
        if not settings.NOTIFICATION_ENABLED:
            return
        defer_after_commit(
            session,
            lambda: self.deliver(notification),
            name=f"notify:{notification.template_id}",
        )

    async def deliver(self, notification: Notification) -> bool:
        """
        发送一条通知（邮件 + 推送），失败只记录日志

        Returns:
            是否全部渠道成功
        """
        ok = True
        subject, body = render(notification.template_id, notification.payload)

        if notification.email:
            try:
                await self.send_email(notification.email, subject, body)
            except (smtplib.SMTPException, OSError) as e:
                ok = False
                logger.warning(f"⚠️  Email notification {notification.template_id} to {notification.email} failed: {e}")

        if notification.user_id:
            try:
                await self.push(notification.user_id, {
                    "type": notification.template_id,
                    "title": subject,
                    "message": body,
                    "data": notification.payload,
                })
            except (RedisError, OSError) as e:
                ok = False
                logger.warning(f"⚠️  Push notification {notification.template_id} to {notification.user_id} failed: {e}")

        return ok

    async def send_email(self, to_email: str, subject: str, body: str) -> bool:
        """发送邮件（dummy 模式只写日志）"""
        transport = (settings.EMAIL_TRANSPORT or "dummy").lower()
        if transport == "dummy":
            logger.info(f"📧 [dummy] To: {to_email} | Subject: {subject}")
            logger.debug(body)
            return True

        result = await run_sync(_smtp_send, to_email, subject, body)
        logger.info(f"📧 Email sent to {to_email}: {subject}")
        return result

    async def push(self, user_id: str, message: dict) -> int:
        """通过 Redis 频道推送（未连接 Redis 时跳过）"""
        if not redis_client.connected:
            logger.debug(f"Redis not connected, skip push to {user_id}")
            return 0
        return await redis_client.publish(f"{settings.PUSH_CHANNEL_PREFIX}:{user_id}", message)


# 全局服务实例
notification_service = NotificationService()
