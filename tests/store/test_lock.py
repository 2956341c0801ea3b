"""Tests for the resource lock."""

import asyncio

import pytest

from zealot.exceptions import FatalError, LockException, StoreException
from zealot.store import InMemoryBackend, Namespace, ResourceLock


@pytest.fixture(name="backend")
async def backend_fixture() -> InMemoryBackend:
    backend = InMemoryBackend()
    await backend.connect()
    return backend


async def test_acquire_release(backend: InMemoryBackend) -> None:
    """Test the lock is held inside the context and released after."""
    job = Namespace.job(backend, "demo")
    lock = ResourceLock(job, "zealot/demo")
    assert lock.key == "jobconfig/zealot/demo/lock"
    async with lock:
        assert lock.held
        assert "jobconfig/zealot/demo/lock" in backend.locks
    assert not lock.held
    assert backend.locks == {}


async def test_contention(backend: InMemoryBackend) -> None:
    """Test a second run against the same resource can't take the lock."""
    job = Namespace.job(backend, "demo")
    async with ResourceLock(job, "zealot/demo"):
        with pytest.raises(LockException, match="held by another run") as exc_info:
            async with ResourceLock(job, "zealot/demo"):
                pass
        assert isinstance(exc_info.value, FatalError)
    # Free again once the first run is done
    async with ResourceLock(job, "zealot/demo"):
        pass


async def test_distinct_resources(backend: InMemoryBackend) -> None:
    """Test runs against different names don't contend."""
    async with ResourceLock(Namespace.job(backend, "one"), "zealot/one"):
        async with ResourceLock(Namespace.job(backend, "two"), "zealot/two"):
            assert len(backend.locks) == 2


async def test_released_on_error(backend: InMemoryBackend) -> None:
    """Test the lock is released when the body raises."""
    job = Namespace.job(backend, "demo")
    with pytest.raises(ValueError):
        async with ResourceLock(job, "zealot/demo"):
            raise ValueError("boom")
    assert backend.locks == {}


async def test_store_unavailable() -> None:
    """Test a lock that can't reach the store."""
    job = Namespace.job(InMemoryBackend(), "demo")
    with pytest.raises(LockException, match="Unable to acquire lock"):
        await ResourceLock(job, "zealot/demo").acquire()


class FailingAcquireBackend(InMemoryBackend):
    """Store that creates sessions but fails the lock request."""

    async def acquire(self, key: str, session_id: str) -> bool:
        raise StoreException("rpc error")


async def test_session_destroyed_on_acquire_error() -> None:
    """Test the session is not left behind when taking the lock fails."""
    backend = FailingAcquireBackend()
    await backend.connect()
    lock = ResourceLock(Namespace.job(backend, "demo"), "zealot/demo")
    with pytest.raises(LockException, match="rpc error"):
        await lock.acquire()
    assert not lock.held
    assert backend.sessions == {}


async def test_session_destroyed_on_contention(backend: InMemoryBackend) -> None:
    """Test the session of a refused lock is destroyed."""
    job = Namespace.job(backend, "demo")
    async with ResourceLock(job, "zealot/demo"):
        with pytest.raises(LockException):
            await ResourceLock(job, "zealot/demo").acquire()
        assert len(backend.sessions) == 1
    assert backend.sessions == {}


async def test_renewed_while_held(backend: InMemoryBackend) -> None:
    """Test the session is renewed in the background while the lock is held."""
    job = Namespace.job(backend, "demo")
    async with ResourceLock(job, "zealot/demo", ttl=10, renew_interval=0.01):
        await asyncio.sleep(0.1)
        (renewals,) = backend.sessions.values()
        assert renewals >= 1
    assert backend.sessions == {}


async def test_renew_failure_keeps_running(backend: InMemoryBackend) -> None:
    """Test a failed renewal is logged and the lock can still be released."""
    job = Namespace.job(backend, "demo")
    lock = ResourceLock(job, "zealot/demo", ttl=10, renew_interval=0.01)
    async with lock:
        backend.sessions.clear()
        await asyncio.sleep(0.05)
        assert lock.held
    assert not lock.held
    assert backend.locks == {}
