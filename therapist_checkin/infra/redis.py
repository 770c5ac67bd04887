"""
Redis access for API rate limiting.

One RedisClient is built at startup and kept with the other shared
resources. Rate limiting fails open: while Redis is unreachable every
request is allowed.
"""

import logging
from typing import Optional

import redis.asyncio as redis
from redis.asyncio import Redis
from redis.asyncio.retry import Retry
from redis.backoff import ExponentialBackoff
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

# Namespace for every key this service writes
APP_PREFIX = "checkin:v1:"


class RedisClient:
    """
    Lazily connected Redis handle.

    A failed connection attempt is logged and reported as None; the next
    call tries again.
    """

    def __init__(self, url: str, timeout: float = 5.0):
        self.url = url
        self.timeout = timeout
        self._client: Optional[Redis] = None

    async def get_client(self) -> Optional[Redis]:
        """Return a connected client, or None if Redis is unreachable."""
        if self._client is not None:
            return self._client

        client = redis.from_url(
            self.url,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=self.timeout,
            socket_timeout=self.timeout,
            retry_on_timeout=True,
            retry=Retry(ExponentialBackoff(), retries=3),
        )
        try:
            await client.ping()
        except RedisError as e:
            logger.error(f"Failed to connect to Redis: {e}")
            await client.aclose()
            return None

        logger.info("Redis connection established")
        self._client = client
        return client

    async def close(self) -> None:
        if self._client is None:
            return
        try:
            await self._client.aclose()
            logger.info("Redis connection closed")
        except RedisError as e:
            logger.error(f"Error closing Redis connection: {e}")
        finally:
            self._client = None


class RateLimiterStore:
    """
    Fixed window request counter.

    Key: checkin:v1:ratelimit:{identifier}, expiring one window after
    the first request in it.
    """

    KEY_PREFIX = f"{APP_PREFIX}ratelimit:"

    def __init__(
        self,
        redis_client: Optional[Redis],
        max_requests: int,
        window_seconds: int,
    ):
        self.redis = redis_client
        self.max_requests = max_requests
        self.window_seconds = window_seconds

    def _key(self, identifier: str) -> str:
        return f"{self.KEY_PREFIX}{identifier}"

    def _allow_all(self) -> tuple[bool, int, int, int]:
        return (True, self.max_requests, 0, self.window_seconds)

    async def hit(self, identifier: str) -> tuple[bool, int, int, int]:
        """
        Count one request for identifier.

        Returns:
            Tuple of (allowed, remaining, used, reset_seconds)
        """
        if self.redis is None:
            logger.warning(f"Redis unavailable - rate limiting bypassed for {identifier}")
            return self._allow_all()

        key = self._key(identifier)
        try:
            async with self.redis.pipeline(transaction=True) as pipe:
                pipe.incr(key)
                pipe.ttl(key)
                used, ttl = await pipe.execute()

            # New window (or a key that lost its expiry)
            if ttl < 0:
                await self.redis.expire(key, self.window_seconds)
                ttl = self.window_seconds
        except RedisError as e:
            logger.error(f"Rate limit check failed for {identifier}: {e} - allowing request")
            return self._allow_all()

        allowed = used <= self.max_requests
        if not allowed:
            logger.info(f"Rate limit exceeded for {identifier}")

        return (allowed, max(0, self.max_requests - used), used, ttl)


async def check_redis_health(client: RedisClient) -> bool:
    """True if Redis answers a PING."""
    connection = await client.get_client()
    if connection is None:
        return False

    try:
        await connection.ping()
    except RedisError as e:
        logger.error(f"Redis health check failed: {e}")
        return False
    return True
