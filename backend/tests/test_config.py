"""
Tests for settings loading, SQL splitting and the rate limiter.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pydantic
import pytest
from fastapi import HTTPException

from railcast.config import load_settings
from railcast.database.schema import SCHEMA_PATH, split_sql
from railcast.services.rate_limit import WINDOW_SECONDS, rate_limit


class TestSettings:
    def test_defaults(self):
        settings = load_settings({})
        assert settings.port == 5000
        assert settings.cors_origins == ["*"]
        assert settings.redis_url is None
        assert settings.log_level == "INFO"

    def test_reads_environment(self):
        settings = load_settings(
            {
                "DATABASE_URL": "postgresql://u:p@db/railcast",
                "DB_NAME": "railcast_test",
                "PORT": "8080",
                "CORS_ORIGINS": "http://localhost:3000, http://localhost:5173",
                "LOG_LEVEL": "debug",
            }
        )
        assert settings.port == 8080
        assert settings.db_name == "railcast_test"
        assert settings.cors_origins == ["http://localhost:3000", "http://localhost:5173"]
        assert settings.log_level == "DEBUG"

    def test_blank_values_use_defaults(self):
        assert load_settings({"PORT": "  "}).port == 5000

    @pytest.mark.parametrize(
        "env",
        [{"PORT": "eighty"}, {"PORT": "0"}, {"LOG_LEVEL": "LOUD"}, {"UPSTREAM_READ_TIMEOUT": "-1"}],
    )
    def test_malformed_values_fail(self, env):
        with pytest.raises(pydantic.ValidationError):
            load_settings(env)


class TestSchema:
    def test_split_sql(self):
        sql = "-- comment\nCREATE TABLE a (\n  id INT\n);\n\nCREATE TABLE b (id INT);\n"
        assert split_sql(sql) == ["CREATE TABLE a (\n  id INT\n);", "CREATE TABLE b (id INT);"]

    def test_schema_file_has_both_tables(self):
        statements = split_sql(SCHEMA_PATH.read_text())
        assert len(statements) == 2
        assert "stations" in statements[0]
        assert "trains" in statements[1]


class TestRateLimit:
    def _request(self, host="10.0.0.1"):
        return SimpleNamespace(client=SimpleNamespace(host=host))

    @pytest.mark.asyncio
    async def test_first_hit_sets_expiry(self):
        fake = AsyncMock()
        fake.incr.return_value = 1
        with patch("railcast.redis.redis_client", fake):
            await rate_limit(self._request())
        fake.incr.assert_awaited_once_with("rate_limit:10.0.0.1:audio")
        fake.expire.assert_awaited_once_with("rate_limit:10.0.0.1:audio", WINDOW_SECONDS)

    @pytest.mark.asyncio
    async def test_over_limit_raises_429(self):
        fake = AsyncMock()
        fake.incr.return_value = 61
        with patch("railcast.redis.redis_client", fake):
            with pytest.raises(HTTPException) as exc:
                await rate_limit(self._request())
        assert exc.value.status_code == 429

    @pytest.mark.asyncio
    async def test_redis_failure_fails_open(self):
        fake = AsyncMock()
        fake.incr.side_effect = ConnectionError("redis down")
        with patch("railcast.redis.redis_client", fake):
            await rate_limit(self._request())

    @pytest.mark.asyncio
    async def test_disabled_without_redis(self):
        with patch("railcast.redis.redis_client", None):
            await rate_limit(self._request())
