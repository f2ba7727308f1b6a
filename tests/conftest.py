"""
Pytest configuration for the kvsession test suite.

This configuration sets up:
- Test discovery paths
- Shared fixtures following the FakeRepository pattern (fakeredis)
- Test markers for categorization
"""

import sys
from pathlib import Path

import fakeredis.aioredis
import pytest
import pytest_asyncio

# Add project root to Python path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


def pytest_configure(config):
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests for service interactions")


# =============================================================================
# FakeRedis Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def fake_redis():
    """
    Provide a fake Redis client for testing.

    fakeredis gives a fully functional Redis-compatible interface (including
    TTLs) without a real Redis instance.
    """
    redis = fakeredis.aioredis.FakeRedis(decode_responses=True)
    yield redis
    await redis.aclose()


@pytest.fixture
def redis_backend(fake_redis):
    """RedisBackend over fakeredis."""
    from kvsession.backends.redis_backend import RedisBackend

    return RedisBackend(fake_redis)


@pytest.fixture
def session_store(redis_backend):
    """Unencrypted store with default options."""
    from kvsession.sessions.store import KeyValueSessionStore

    return KeyValueSessionStore(redis_backend)


@pytest.fixture
def encrypted_store(redis_backend):
    """Store encrypting with the default algorithm."""
    from kvsession.sessions.store import KeyValueSessionStore

    return KeyValueSessionStore(redis_backend, secret="keyboard cat")


@pytest.fixture
def sample_record():
    """A session record as a host framework would hand it over."""
    return {
        "cookie": {
            "originalMaxAge": 3600000,
            "maxAge": 3600000,
            "expires": "2026-10-19T12:00:00.000Z",
            "httpOnly": True,
            "path": "/",
        },
        "user": {"id": 42, "name": "Zoë"},
        "flash": [],
        "views": 3,
    }


# =============================================================================
# Settings Fixture
# =============================================================================


@pytest.fixture
def test_settings():
    """Settings with safe defaults, independent of the environment."""
    from kvsession.core.config import Settings

    return Settings(
        prefix="test:sess:",
        redis_url="redis://localhost:6379",
    )


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Clear the get_settings() cache around each test."""
    from kvsession.core.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
