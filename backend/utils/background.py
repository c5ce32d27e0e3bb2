"""
后台任务工具

提交成功后才派发的 fire-and-forget 任务（通知等），以及在线程池中执行阻塞调用
"""

import asyncio
from functools import partial
from typing import Any, Awaitable, Callable, List, Optional, Set

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

# 持有任务引用，避免任务完成前被回收
_background_tasks: Set[asyncio.Task] = set()

AFTER_COMMIT_KEY = "after_commit"


def spawn(coro: Awaitable[Any], name: Optional[str] = None) -> asyncio.Task:
    """
    创建并托管后台任务，任务异常只记录日志，不向调用方传播

    Args:
        coro: 协程
        name: 任务名称（日志用）

    Returns:
        asyncio.Task
    """
    task = asyncio.create_task(coro, name=name)
    _background_tasks.add(task)

    def _finished(t: asyncio.Task):
        _background_tasks.discard(t)
        if t.cancelled():
            logger.debug(f"Background task {name or t.get_name()} cancelled")
            return
        exc = t.exception()
        if exc is not None:
            logger.opt(exception=exc).error(f"❌ Background task {name or t.get_name()} failed: {exc}")

    task.add_done_callback(_finished)
    return task


async def run_sync(func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """在默认线程池中执行阻塞函数"""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, partial(func, *args, **kwargs))


def defer_after_commit(session: AsyncSession, factory: Callable[[], Awaitable[Any]], name: Optional[str] = None):
    """
    登记一个提交后才执行的任务

    Args:
        session: 当前请求的数据库会话
        factory: 返回协程的无参函数（提交后才调用）
        name: 任务名称
    """
    session.info.setdefault(AFTER_COMMIT_KEY, []).append((factory, name))


def pending_after_commit(session: AsyncSession) -> List[tuple]:
    """查看已登记但尚未派发的任务"""
    return list(session.info.get(AFTER_COMMIT_KEY, []))


def dispatch_after_commit(session: AsyncSession) -> int:
    """派发已登记的任务（必须在 commit 成功之后调用）"""
    callbacks = session.info.pop(AFTER_COMMIT_KEY, [])
    for factory, name in callbacks:
        spawn(factory(), name=name)
    return len(callbacks)


def discard_after_commit(session: AsyncSession) -> int:
    """回滚时丢弃已登记的任务"""
    return len(session.info.pop(AFTER_COMMIT_KEY, []))
