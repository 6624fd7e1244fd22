"""Tests for SessionSeeder."""

import pytest

from session_handoff.errors import SeedingError
from session_handoff.session.models import CookieRecord
from session_handoff.session.seeder import SessionSeeder, SESSION_POOL_SIZE


@pytest.mark.asyncio
async def test_seed_attaches_exactly_one_cookie(platform):
    cookie = CookieRecord(value="abc123", domain=".example.com")

    session = await SessionSeeder(platform).seed(cookie)

    assert session.id == "session-1"
    assert platform.sessions[0].cookies == [cookie]
    assert [c for c in platform.calls if c[0] == "set_cookies"] == [("set_cookies", [cookie])]


@pytest.mark.asyncio
@pytest.mark.parametrize("value", ["a", "a" * 500])
async def test_pool_size_is_always_one(platform, value):
    await SessionSeeder(platform).seed(CookieRecord(value=value, domain="example.com"))

    assert SESSION_POOL_SIZE == 1
    assert platform.pool_sizes == [1]


@pytest.mark.asyncio
async def test_seed_fetches_nothing_else(platform):
    await SessionSeeder(platform).seed(CookieRecord(value="v", domain="d"))

    assert [c[0] for c in platform.calls] == ["create_session_pool", "new_session", "set_cookies"]


@pytest.mark.asyncio
async def test_pool_failure_becomes_seeding_error(platform):
    platform.session_error = RuntimeError("pool exploded")

    with pytest.raises(SeedingError) as exc_info:
        await SessionSeeder(platform).seed(CookieRecord(value="v", domain="d"))

    assert "pool exploded" in exc_info.value.message
    assert isinstance(exc_info.value.__cause__, RuntimeError)
