"""Redis connection management"""
from typing import Optional

import redis
from otp_recovery.config import settings


class RedisClient:
    """Process-wide Redis client"""
    _instance: Optional[redis.Redis] = None

    @classmethod
    def get_instance(cls) -> redis.Redis:
        if cls._instance is None:
            cls._instance = redis.from_url(
                settings.redis_url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True
            )
        assert cls._instance is not None
        return cls._instance

    @classmethod
    def close(cls):
        if cls._instance:
            cls._instance.close()
            cls._instance = None


def get_redis() -> redis.Redis:
    """Shared Redis client"""
    return RedisClient.get_instance()
