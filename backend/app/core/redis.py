"""Shared async Redis client used for real-time notification fan-out."""
from functools import lru_cache

import redis.asyncio as redis

from app.core.config import settings


@lru_cache
def get_redis() -> redis.Redis:
    # from_url does not connect; the pool opens on first command.
    return redis.from_url(settings.REDIS_URL, decode_responses=True)


def user_channel(user_id) -> str:
    """Per-user pub/sub channel the realtime gateway subscribes clients to."""
    return f"user_{user_id}"
