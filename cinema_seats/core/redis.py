"""
Redis configuration and connection management
"""

import redis.asyncio as redis
from typing import Optional, Any
import logging
import asyncio
import time

from cinema_seats.config import settings

logger = logging.getLogger(__name__)

# Global Redis client
redis_client: Optional[redis.Redis] = None


async def init_redis():
    """
    Initialize Redis connection
    """
    global redis_client
    try:
        redis_client = redis.from_url(
            settings.REDIS_URL,
            max_connections=settings.REDIS_MAX_CONNECTIONS,
            decode_responses=True
        )
        # Test connection
        await redis_client.ping()
        logger.info("Redis connection established")
    except Exception as e:
        logger.error(f"Failed to connect to Redis: {e}")
        raise


async def close_redis():
    """
    Close Redis connection
    """
    global redis_client
    if redis_client:
        await redis_client.aclose()
        redis_client = None
        logger.info("Redis connection closed")


async def get_redis() -> redis.Redis:
    """
    Get Redis client
    """
    if not redis_client:
        await init_redis()
    return redis_client


class CircuitBreakerOpenError(Exception):
    """Raised when calls are short-circuited"""


class CircuitBreaker:
    """
    Circuit breaker guarding Redis operations
    """
    def __init__(self, failure_threshold=5, recovery_timeout=30):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout

        self.failure_count = 0
        self.last_failure_time = None
        self.state = "CLOSED"  # CLOSED, OPEN, HALF_OPEN

        self._lock = asyncio.Lock()

    async def is_open(self) -> bool:
        async with self._lock:
            if self.state == "OPEN":
                if time.monotonic() - self.last_failure_time >= self.recovery_timeout:
                    self.state = "HALF_OPEN"
                    return False
                return True
            return False

    async def record_success(self):
        async with self._lock:
            self.failure_count = 0
            self.state = "CLOSED"

    async def record_failure(self):
        async with self._lock:
            self.failure_count += 1
            self.last_failure_time = time.monotonic()

            if self.state == "HALF_OPEN" or self.failure_count >= self.failure_threshold:
                self.state = "OPEN"

    async def call(self, func, *args, **kwargs):
        if await self.is_open():
            raise CircuitBreakerOpenError("Circuit breaker is open")

        try:
            result = await func(*args, **kwargs)
        except Exception:
            await self.record_failure()
            raise
        await self.record_success()
        return result


class RedisManager:
    """
    Redis access for the seat change feed, with circuit breaker on publish
    """

    def __init__(self):
        self.client: Optional[redis.Redis] = None
        self.circuit_breaker = CircuitBreaker()
        self.logger = logging.getLogger(__name__)

    async def get_client(self) -> redis.Redis:
        if not self.client:
            self.client = await get_redis()
        return self.client

    async def publish(self, channel: str, message: Any) -> int:
        """Publish a message, returns the number of receiving subscribers"""
        client = await self.get_client()
        return await self.circuit_breaker.call(client.publish, channel, message)

    async def subscribe(self, *channels):
        """Open a pub/sub handle subscribed to the given channels"""
        client = await self.get_client()
        pubsub = client.pubsub()
        await pubsub.subscribe(*channels)
        return pubsub

    def reset(self):
        self.client = None


# Global Redis manager
redis_manager = RedisManager()
