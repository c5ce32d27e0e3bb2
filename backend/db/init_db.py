"""
数据库初始化脚本

创建所有表（已存在的表跳过）
"""

import asyncio
from typing import Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from backend.config.settings import settings
from backend.db.base import get_database_url
from backend.db.models import Base


async def create_tables(engine: Optional[AsyncEngine] = None):
    """
    创建所有表

    Args:
        engine: 复用已有引擎；为空时临时创建并在结束后释放
    """
    owns_engine = engine is None
    if owns_engine:
        engine = create_async_engine(get_database_url(async_mode=True), echo=settings.DEBUG)

    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info(f"✅ Tables ready: {', '.join(sorted(Base.metadata.tables))}")
    finally:
        if owns_engine:
            await engine.dispose()


async def main():
    logger.info("🚀 Initializing database...")
    await create_tables()
    logger.success("🎉 Database initialization completed!")


if __name__ == "__main__":
    asyncio.run(main())
