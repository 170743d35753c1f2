"""Pytest configuration: set test env before any app imports so DB, storage and limits use test values."""

import asyncio
import os
import tempfile

import pytest

# Set before files_manager.db.session or files_manager.config are used so engine and settings use test paths
_tmp = tempfile.mkdtemp(prefix="files_manager_test_")
os.environ.setdefault("FILES_MANAGER_DB_PATH", os.path.join(_tmp, "test.db"))
os.environ.setdefault("FILES_MANAGER_FOLDER_PATH", os.path.join(_tmp, "files"))
os.environ.setdefault("FILES_MANAGER_RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("FILES_MANAGER_REDIS_URL", "redis://localhost:6379/15")
os.environ.setdefault("FILES_MANAGER_BROKER_URL", "memory://")


@pytest.fixture(scope="session")
def init_test_db():
    """Create tables once per test session."""
    from files_manager.db.session import init_db

    asyncio.run(init_db())


@pytest.fixture
def session_factory(init_test_db):
    """Yield get_session so tests can use async with session_factory() as session."""
    from files_manager.db.session import get_session
    return get_session


@pytest.fixture
def fake_redis():
    """In-memory async Redis (decode_responses like the real client), isolated per test."""
    from fakeredis import FakeServer, aioredis

    return aioredis.FakeRedis(server=FakeServer(), decode_responses=True)


@pytest.fixture
def cache(fake_redis):
    from files_manager.cache.client import CacheClient

    return CacheClient(client=fake_redis)
