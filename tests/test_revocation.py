"""Tests for the revoked-token store."""

import asyncio
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from authgate.models.revoked_token import RevokedToken
from authgate.services.errors import StorageError
from authgate.services.revocation import RevocationStore

pytestmark = pytest.mark.asyncio


def _in(hours: float) -> datetime:
    return datetime.now(UTC) + timedelta(hours=hours)


async def _count(session) -> int:
    result = await session.execute(select(func.count()).select_from(RevokedToken))
    return result.scalar_one()


async def test_record_then_is_revoked(db_session):
    store = RevocationStore(db_session)
    await store.record("token-a", _in(72))

    assert await store.is_revoked("token-a") is True


async def test_unknown_token_is_not_revoked(db_session):
    store = RevocationStore(db_session)
    await store.record("token-a", _in(72))

    assert await store.is_revoked("token-b") is False


async def test_record_twice_is_idempotent(db_session):
    """Revoking an already revoked token neither fails nor adds a row."""
    store = RevocationStore(db_session)
    await store.record("token-a", _in(72))
    await store.record("token-a", _in(72))

    assert await store.is_revoked("token-a") is True
    assert await _count(db_session) == 1


async def test_record_is_visible_to_other_sessions(session_factory):
    """A committed revocation is seen by a session opened afterwards."""
    async with session_factory() as writer:
        await RevocationStore(writer).record("token-a", _in(72))

    async with session_factory() as reader:
        assert await RevocationStore(reader).is_revoked("token-a") is True


async def test_concurrent_logouts_store_one_row(session_factory):
    """Two sessions revoking the same token both succeed with a single row kept."""
    async with session_factory() as first, session_factory() as second:
        await RevocationStore(first).record("token-a", _in(72))
        await RevocationStore(second).record("token-a", _in(72))

    async with session_factory() as reader:
        assert await _count(reader) == 1


async def test_expired_token_can_be_recorded(db_session):
    store = RevocationStore(db_session)
    await store.record("old-token", _in(-1))

    assert await store.is_revoked("old-token") is True


async def test_purge_expired(db_session):
    """Only entries past their expiry are removed."""
    store = RevocationStore(db_session)
    await store.record("expired", _in(-1))
    await store.record("live", _in(1))

    removed = await store.purge_expired()

    assert removed == 1
    assert await store.is_revoked("expired") is False
    assert await store.is_revoked("live") is True


async def test_purge_expired_with_explicit_time(db_session):
    store = RevocationStore(db_session)
    await store.record("a", _in(1))
    await store.record("b", _in(2))

    assert await store.purge_expired(now=_in(3)) == 2
    assert await _count(db_session) == 0


async def test_purge_nothing(db_session):
    assert await RevocationStore(db_session).purge_expired() == 0


async def test_lookup_timeout_raises_storage_error():
    """A hung lookup is an error, never a 'not revoked' answer."""
    session = MagicMock()
    session.execute = MagicMock(side_effect=lambda *args, **kwargs: asyncio.sleep(5))

    with pytest.raises(StorageError):
        await RevocationStore(session, timeout=0.01).is_revoked("token-a")


async def test_lookup_failure_raises_storage_error():
    session = MagicMock()
    session.execute = AsyncMock(
        side_effect=OperationalError("SELECT", {}, Exception("connection refused"))
    )

    with pytest.raises(StorageError):
        await RevocationStore(session, timeout=1.0).is_revoked("token-a")


async def test_record_failure_raises_storage_error():
    session = MagicMock()
    session.commit = AsyncMock(
        side_effect=OperationalError("INSERT", {}, Exception("connection refused"))
    )

    with pytest.raises(StorageError):
        await RevocationStore(session, timeout=1.0).record("token-a", _in(72))
