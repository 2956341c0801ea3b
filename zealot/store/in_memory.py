"""Module for in memory key-value backend."""

import logging
import uuid

from zealot.exceptions import StoreConnectionError, StoreException

from .store import Backend

_LOGGER = logging.getLogger(__name__)


class InMemoryBackend(Backend):
    """In-memory implementation of the Backend interface.

    Used for tests and for rendering without a running store. Values written
    here are lost when the process exits.
    """

    def __init__(
        self, data: dict[str, bytes] | None = None, address: str = "in-memory"
    ) -> None:
        """Initialize the InMemoryBackend."""
        self._address = address
        self._data: dict[str, bytes] = dict(data or {})
        self._sessions: dict[str, int] = {}
        self._locks: dict[str, str] = {}
        self._connected = False

    @property
    def address(self) -> str:
        return self._address

    @property
    def data(self) -> dict[str, bytes]:
        """Return all stored keys and values."""
        return self._data

    @property
    def locks(self) -> dict[str, str]:
        """Return the currently held locks keyed by path."""
        return self._locks

    @property
    def sessions(self) -> dict[str, int]:
        """Return the open sessions with the number of times each was renewed."""
        return self._sessions

    async def connect(self) -> None:
        self._connected = True

    async def close(self) -> None:
        self._connected = False

    def _check_connected(self) -> None:
        if not self._connected:
            raise StoreConnectionError("In-memory store is not connected")

    async def get(self, key: str) -> bytes | None:
        self._check_connected()
        return self._data.get(key)

    async def put(self, key: str, value: bytes) -> None:
        self._check_connected()
        _LOGGER.debug("Setting key %s (%d bytes)", key, len(value))
        self._data[key] = value

    async def create_session(self, name: str, ttl: int) -> str:
        self._check_connected()
        session_id = str(uuid.uuid4())
        self._sessions[session_id] = 0
        return session_id

    async def renew_session(self, session_id: str) -> None:
        self._check_connected()
        if session_id not in self._sessions:
            raise StoreException(f"Session {session_id} not found")
        self._sessions[session_id] += 1

    async def destroy_session(self, session_id: str) -> None:
        self._check_connected()
        self._sessions.pop(session_id, None)
        for key, holder in list(self._locks.items()):
            if holder == session_id:
                del self._locks[key]

    async def acquire(self, key: str, session_id: str) -> bool:
        self._check_connected()
        if session_id not in self._sessions:
            return False
        holder = self._locks.get(key)
        if holder is not None and holder != session_id:
            return False
        self._locks[key] = session_id
        self._data.setdefault(key, session_id.encode())
        return True

    async def release(self, key: str, session_id: str) -> None:
        self._check_connected()
        if self._locks.get(key) == session_id:
            del self._locks[key]
