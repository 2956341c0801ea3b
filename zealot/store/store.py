"""Key-value backend interface used to hold configuration and run state."""

from abc import ABC, abstractmethod


class Backend(ABC):
    """Abstract base class for a flat key-value store with session locks.

    Keys are full paths (including any namespace prefix) and values are raw
    bytes. Implementations raise `StoreConnectionError` when the store can't
    be reached and `StoreException` for any other failed request.
    """

    @property
    @abstractmethod
    def address(self) -> str:
        """Return the address of the store, as used by terraform's backend."""

    @abstractmethod
    async def connect(self) -> None:
        """Establish a session with the store."""

    @abstractmethod
    async def close(self) -> None:
        """Release any resources held by the backend."""

    @abstractmethod
    async def get(self, key: str) -> bytes | None:
        """Return the value stored under the key, or None if it does not exist."""

    @abstractmethod
    async def put(self, key: str, value: bytes) -> None:
        """Store the value under the key."""

    @abstractmethod
    async def create_session(self, name: str, ttl: int) -> str:
        """Create a session used to hold locks, returning its id.

        The store invalidates the session, releasing its locks, once `ttl`
        seconds pass without a renewal.
        """

    @abstractmethod
    async def renew_session(self, session_id: str) -> None:
        """Reset the ttl of the session."""

    @abstractmethod
    async def destroy_session(self, session_id: str) -> None:
        """Destroy the session, releasing any locks it still holds."""

    @abstractmethod
    async def acquire(self, key: str, session_id: str) -> bool:
        """Try to lock the key for the session, returning True on success."""

    @abstractmethod
    async def release(self, key: str, session_id: str) -> None:
        """Release the lock on the key held by the session."""
