"""Typed accessor for keys under a namespace prefix in a backend.

A namespace is a fixed key prefix such as `jobconfig/zealot/demo/`. All
reads and writes made through a `Namespace` are relative to that prefix:

```python
from zealot.store import ConsulBackend, Namespace

backend = ConsulBackend("localhost:8500")
job = Namespace.job(backend, "demo")
await job.connect()
workdir = await job.get_string("WorkingDir", fail_fast=True)
await job.set_value("PlanText", "No changes.")
```

Reads accept a `fail_fast` flag. When it is set, any failure to read the
value is logged and raised as a `FatalError` so the run controller stops
the run, instead of a recoverable `StoreException`.
"""

import logging
from collections.abc import Callable
from typing import TypeVar

from zealot.exceptions import (
    FatalError,
    InvalidValueError,
    KeyNotFoundError,
    StoreException,
    StoreUnreachableError,
    StoreWriteError,
)

from .store import Backend

__all__ = [
    "Namespace",
]

_LOGGER = logging.getLogger(__name__)

JOB_ROOT = "jobconfig"
APP_ROOT = "appconfig"
STATE_KEY = "state"

_TRUE_VALUES = ("true", "True")

T = TypeVar("T")


class Namespace:
    """Read and write typed values under a key prefix."""

    def __init__(self, backend: Backend, base: str) -> None:
        """Initialize Namespace with a prefix ending in `/`."""
        if not base.endswith("/"):
            base = f"{base}/"
        self._backend = backend
        self._base = base

    @classmethod
    def job(cls, backend: Backend, name: str, app_name: str = "zealot") -> "Namespace":
        """Return the namespace holding the config and results of a named job."""
        return cls(backend, f"{JOB_ROOT}/{app_name}/{name}/")

    @classmethod
    def app(cls, backend: Backend, app_name: str = "zealot") -> "Namespace":
        """Return the namespace holding application wide config such as templates."""
        return cls(backend, f"{APP_ROOT}/{app_name}/")

    @property
    def base(self) -> str:
        """Return the prefix of all keys in this namespace."""
        return self._base

    @property
    def backend(self) -> Backend:
        """Return the backend used for this namespace."""
        return self._backend

    @property
    def state_path(self) -> str:
        """Return the path terraform uses to store remote state for this namespace."""
        return f"{self._base}{STATE_KEY}"

    def key(self, name: str) -> str:
        """Return the full path of a key in this namespace."""
        return f"{self._base}{name}"

    async def connect(self) -> None:
        """Connect to the backing store.

        A run can do nothing without the store, so any failure is fatal.
        """
        try:
            await self._backend.connect()
        except StoreException as err:
            _LOGGER.error(
                "Unable to connect to store at %s: %s", self._backend.address, err
            )
            raise StoreUnreachableError(
                f"Unable to connect to store at {self._backend.address}: {err}"
            ) from err

    async def _get_bytes(self, name: str) -> bytes:
        key = self.key(name)
        value = await self._backend.get(key)
        if value is None:
            raise KeyNotFoundError(key)
        return value

    async def _get(
        self,
        name: str,
        decode: Callable[[bytes], T],
        fail_fast: bool,
    ) -> T:
        try:
            return decode(await self._get_bytes(name))
        except StoreException as err:
            if not fail_fast:
                raise
            _LOGGER.error("Unable to read required key '%s': %s", self.key(name), err)
            raise FatalError(
                f"Unable to read required key '{self.key(name)}': {err}"
            ) from err

    async def get_string(self, name: str, fail_fast: bool = False) -> str:
        """Return the value of the key as a string."""
        return await self._get(name, _decode_string, fail_fast)

    async def get_integer(self, name: str, fail_fast: bool = False) -> int:
        """Return the value of the key as an integer."""
        return await self._get(name, _decode_integer, fail_fast)

    async def get_bool(self, name: str, fail_fast: bool = False) -> bool:
        """Return the value of the key as a boolean.

        Only the exact values `true` and `True` are considered true, any
        other value such as `1`, `yes` or an empty string is false.
        """
        return await self._get(name, _decode_bool, fail_fast)

    async def set_value(self, name: str, value: str | bytes) -> None:
        """Write the value of the key.

        A failed write always raises `StoreWriteError` since the store is
        shared with other runs.
        """
        if isinstance(value, str):
            value = value.encode("utf-8")
        key = self.key(name)
        try:
            await self._backend.put(key, value)
        except StoreException as err:
            _LOGGER.error("Unable to write key '%s': %s", key, err)
            raise StoreWriteError(f"Unable to write key '{key}': {err}") from err

    def __str__(self) -> str:
        return self._base


def _decode_string(value: bytes) -> str:
    try:
        return value.decode("utf-8")
    except UnicodeDecodeError as err:
        raise InvalidValueError(f"Value is not valid utf-8 text: {err}") from err


def _decode_integer(value: bytes) -> int:
    text = _decode_string(value)
    try:
        return int(text)
    except ValueError as err:
        raise InvalidValueError(f"Value '{text}' is not an integer") from err


def _decode_bool(value: bytes) -> bool:
    return _decode_string(value) in _TRUE_VALUES
