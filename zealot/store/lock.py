"""Lock on a resource namespace, held for the whole run of a job.

The lock is a session lock on `<namespace>lock`. The session has a ttl and
is renewed in the background while the lock is held, so a run that is killed
without releasing it only blocks other runs until the ttl runs out.
"""

import asyncio
from contextlib import suppress
from types import TracebackType
import logging

from zealot.exceptions import LockException, StoreException

from .namespace import Namespace

_LOGGER = logging.getLogger(__name__)

LOCK_KEY = "lock"
DEFAULT_TTL = 15


class ResourceLock:
    """Async context manager holding a session lock on `<namespace>lock`.

    Two runs against the same resource name contend for the same key, so the
    second fails fast instead of planning against state the first is about
    to change.
    """

    def __init__(
        self,
        namespace: Namespace,
        holder: str,
        ttl: int = DEFAULT_TTL,
        renew_interval: float | None = None,
    ) -> None:
        """Initialize ResourceLock.

        The session is renewed every `renew_interval` seconds, half the ttl
        by default.
        """
        self._namespace = namespace
        self._holder = holder
        self._ttl = ttl
        self._renew_interval = (
            renew_interval if renew_interval is not None else ttl / 2
        )
        self._session_id: str | None = None
        self._renew_task: asyncio.Task[None] | None = None

    @property
    def key(self) -> str:
        """Return the full path of the lock key."""
        return self._namespace.key(LOCK_KEY)

    @property
    def held(self) -> bool:
        """Return True if the lock is currently held."""
        return self._session_id is not None

    async def _destroy_session(self, session_id: str) -> None:
        try:
            await self._namespace.backend.destroy_session(session_id)
        except StoreException as err:
            _LOGGER.warning(
                "Unable to destroy session %s of lock %s: %s", session_id, self.key, err
            )

    async def acquire(self) -> None:
        """Acquire the lock, raising LockException if another run holds it."""
        backend = self._namespace.backend
        try:
            session_id = await backend.create_session(self._holder, self._ttl)
        except StoreException as err:
            raise LockException(f"Unable to acquire lock {self.key}: {err}") from err
        try:
            acquired = await backend.acquire(self.key, session_id)
        except StoreException as err:
            await self._destroy_session(session_id)
            raise LockException(f"Unable to acquire lock {self.key}: {err}") from err
        if not acquired:
            await self._destroy_session(session_id)
            raise LockException(
                f"Lock {self.key} is held by another run of this resource"
            )
        _LOGGER.info("Acquired lock %s", self.key)
        self._session_id = session_id
        self._renew_task = asyncio.create_task(
            self._renew(session_id), name=f"renew {self.key}"
        )

    async def _renew(self, session_id: str) -> None:
        backend = self._namespace.backend
        while True:
            await asyncio.sleep(self._renew_interval)
            try:
                await backend.renew_session(session_id)
            except StoreException as err:
                _LOGGER.warning("Unable to renew lock %s: %s", self.key, err)
            else:
                _LOGGER.debug("Renewed lock %s", self.key)

    async def release(self) -> None:
        """Release the lock and destroy the session holding it."""
        if self._session_id is None:
            return
        if self._renew_task is not None:
            self._renew_task.cancel()
            with suppress(asyncio.CancelledError):
                await self._renew_task
            self._renew_task = None
        backend = self._namespace.backend
        session_id = self._session_id
        self._session_id = None
        try:
            await backend.release(self.key, session_id)
        finally:
            await backend.destroy_session(session_id)
        _LOGGER.info("Released lock %s", self.key)

    async def __aenter__(self) -> "ResourceLock":
        await self.acquire()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.release()
