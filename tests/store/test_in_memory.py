import pytest

from zealot.exceptions import StoreConnectionError, StoreException
from zealot.store import InMemoryBackend


@pytest.fixture
async def store() -> InMemoryBackend:
    backend = InMemoryBackend({"seed": b"value"})
    await backend.connect()
    return backend


async def test_get_and_put(store: InMemoryBackend) -> None:
    """Test reading seeded values and writing new ones."""
    assert await store.get("seed") == b"value"
    assert await store.get("missing") is None
    await store.put("new", b"data")
    assert store.data["new"] == b"data"


async def test_requires_connect() -> None:
    """Test the backend refuses requests before connect and after close."""
    backend = InMemoryBackend()
    with pytest.raises(StoreConnectionError):
        await backend.get("seed")
    await backend.connect()
    await backend.put("key", b"value")
    await backend.close()
    with pytest.raises(StoreConnectionError):
        await backend.put("key", b"value")


async def test_session_locks(store: InMemoryBackend) -> None:
    """Test locks are held per session and freed with the session."""
    first = await store.create_session("first", 15)
    second = await store.create_session("second", 15)
    assert await store.acquire("lock", first)
    assert await store.acquire("lock", first)
    assert not await store.acquire("lock", second)
    await store.release("lock", second)
    assert store.locks == {"lock": first}
    await store.destroy_session(first)
    assert store.locks == {}
    assert await store.acquire("lock", second)


async def test_unknown_session(store: InMemoryBackend) -> None:
    """Test a lock can't be taken with a session that was never created."""
    assert not await store.acquire("lock", "no-such-session")


async def test_renew_session(store: InMemoryBackend) -> None:
    """Test renewing an open session and one that was destroyed."""
    session_id = await store.create_session("first", 15)
    await store.renew_session(session_id)
    assert store.sessions == {session_id: 1}
    await store.destroy_session(session_id)
    with pytest.raises(StoreException, match="not found"):
        await store.renew_session(session_id)
