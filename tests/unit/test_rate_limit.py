"""Tests for API token validation and rate limiting."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from therapist_checkin.api.middleware.auth import (
    hash_api_token,
    mask_api_token,
    validate_api_token,
)
from therapist_checkin.api.middleware.rate_limit import client_identifier
from therapist_checkin.infra.redis import RateLimiterStore, RedisClient, check_redis_health


class TestApiToken:
    def test_matching_token_validates(self):
        assert validate_api_token("secret-token", "secret-token")

    def test_wrong_token_rejected(self):
        assert not validate_api_token("wrong", "secret-token")

    def test_missing_values_rejected(self):
        assert not validate_api_token(None, "secret-token")
        assert not validate_api_token("", "secret-token")
        assert not validate_api_token("secret-token", "")

    def test_hash_is_stable_sha256(self):
        assert hash_api_token("abc") == hash_api_token("abc")
        assert len(hash_api_token("abc")) == 64

    def test_mask(self):
        assert mask_api_token("abcdefghijkl") == "abc...jkl"
        assert mask_api_token("short") == "***"


class TestClientIdentifier:
    def _request(self, headers: dict, host: str = "10.0.0.1"):
        request = MagicMock()
        request.headers = headers
        request.client.host = host
        return request

    def test_token_and_ip(self):
        identifier = client_identifier(self._request({"x-api-key": "secret"}))

        assert identifier.startswith("token:")
        assert identifier.endswith(":ip:10.0.0.1")
        assert "secret" not in identifier

    def test_ip_only(self):
        assert client_identifier(self._request({})) == "ip:10.0.0.1"


class TestRateLimiterStore:
    """Fixed-window counter with fail-open behavior."""

    @pytest.fixture
    def pipe(self):
        pipe = MagicMock()
        pipe.execute = AsyncMock(return_value=[1, -2])
        return pipe

    @pytest.fixture
    def redis_client(self, pipe):
        client = MagicMock()
        client.pipeline.return_value.__aenter__.return_value = pipe
        client.expire = AsyncMock()
        return client

    @pytest.mark.asyncio
    async def test_first_hit_starts_window(self, redis_client, pipe):
        store = RateLimiterStore(redis_client, max_requests=5, window_seconds=60)

        allowed, remaining, used, reset = await store.hit("ip:1")

        assert (allowed, remaining, used, reset) == (True, 4, 1, 60)
        pipe.incr.assert_called_once_with("checkin:v1:ratelimit:ip:1")
        redis_client.expire.assert_awaited_once_with("checkin:v1:ratelimit:ip:1", 60)

    @pytest.mark.asyncio
    async def test_existing_window_keeps_ttl(self, redis_client, pipe):
        pipe.execute.return_value = [3, 42]
        store = RateLimiterStore(redis_client, max_requests=5, window_seconds=60)

        allowed, remaining, used, reset = await store.hit("ip:1")

        assert (allowed, remaining, used, reset) == (True, 2, 3, 42)
        redis_client.expire.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_over_limit_denied(self, redis_client, pipe):
        pipe.execute.return_value = [6, 30]
        store = RateLimiterStore(redis_client, max_requests=5, window_seconds=60)

        allowed, remaining, used, _ = await store.hit("ip:1")

        assert not allowed
        assert remaining == 0
        assert used == 6

    @pytest.mark.asyncio
    async def test_no_redis_fails_open(self):
        store = RateLimiterStore(None, max_requests=5, window_seconds=60)

        assert await store.hit("ip:1") == (True, 5, 0, 60)

    @pytest.mark.asyncio
    async def test_redis_error_fails_open(self, redis_client, pipe):
        pipe.execute.side_effect = RedisConnectionError("down")
        store = RateLimiterStore(redis_client, max_requests=5, window_seconds=60)

        allowed, _, _, _ = await store.hit("ip:1")

        assert allowed


class TestRedisClient:
    @pytest.mark.asyncio
    async def test_unreachable_redis_returns_none(self):
        connection = MagicMock()
        connection.ping = AsyncMock(side_effect=RedisConnectionError("refused"))
        connection.aclose = AsyncMock()

        with patch("therapist_checkin.infra.redis.redis.from_url", return_value=connection):
            client = RedisClient("redis://localhost:6379/0")
            assert await client.get_client() is None

        connection.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_health_check(self):
        connection = MagicMock()
        connection.ping = AsyncMock(return_value=True)

        with patch("therapist_checkin.infra.redis.redis.from_url", return_value=connection):
            client = RedisClient("redis://localhost:6379/0")
            assert await check_redis_health(client)
            assert await client.get_client() is connection

        connection.ping.assert_awaited()
