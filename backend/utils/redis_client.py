"""
Redis 客户端

提供 Redis 连接和通知推送（pub/sub）的封装
"""

import json
import redis.asyncio as aioredis
from typing import Optional
from backend.config.settings import settings


class RedisClient:
    """Redis 异步客户端封装"""

    def __init__(self):
        self._client: Optional[aioredis.Redis] = None

    async def connect(self):
        """建立 Redis 连接"""
        if self._client is None:
            self._client = aioredis.from_url(
                f"redis://{settings.REDIS_HOST}:{settings.REDIS_PORT}/{settings.REDIS_DB}",
                password=settings.REDIS_PASSWORD,
                encoding="utf-8",
                decode_responses=True
            )

    async def close(self):
        """关闭 Redis 连接"""
        if self._client:
            await self._client.close()
            self._client = None

    @property
    def connected(self) -> bool:
        return self._client is not None

    @property
    def client(self) -> aioredis.Redis:
        """获取 Redis 客户端实例"""
        if self._client is None:
            raise RuntimeError("Redis client not connected. Call connect() first.")
        return self._client

    async def ping(self) -> bool:
        """检查连接"""
        return bool(await self.client.ping())

    async def publish(self, channel: str, message: dict) -> int:
        """
        发布消息到频道

        Args:
            channel: 频道名
            message: 消息体（JSON 序列化）

        Returns:
            收到消息的订阅者数量
        """
        return await self.client.publish(channel, json.dumps(message, ensure_ascii=False, default=str))


# 全局 Redis 客户端实例
redis_client = RedisClient()
