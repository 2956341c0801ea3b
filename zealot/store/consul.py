"""Consul KV backend using the Consul HTTP API.

Only the small part of the API needed here is used:

- `GET /v1/status/leader` to check the agent is reachable
- `GET /v1/kv/<key>?raw` and `PUT /v1/kv/<key>` for values
- `PUT /v1/session/create`, `PUT /v1/session/renew/<id>`,
  `PUT /v1/session/destroy/<id>` and the `acquire` / `release`
  parameters of `PUT /v1/kv/<key>` for locks
"""

import logging
from typing import Any

import httpx

from zealot.exceptions import StoreConnectionError, StoreException

from .store import Backend

_LOGGER = logging.getLogger(__name__)

_TIMEOUT = 30.0


def base_url(address: str) -> str:
    """Return the http url for a consul address such as `localhost:8500`."""
    if "://" in address:
        return address.rstrip("/")
    return f"http://{address}"


class ConsulBackend(Backend):
    """Backend that reads and writes keys in Consul."""

    def __init__(
        self, address: str, http_client: httpx.AsyncClient | None = None
    ) -> None:
        """Initialize ConsulBackend."""
        self._address = address
        self._client = http_client
        self._owns_client = http_client is None

    @property
    def address(self) -> str:
        """Return the address of the consul agent."""
        return self._address

    def _url(self, path: str) -> str:
        return f"{base_url(self._address)}{path}"

    @property
    def client(self) -> httpx.AsyncClient:
        """Return the http client, failing if connect() was never called."""
        if self._client is None:
            raise StoreConnectionError(
                f"Not connected to consul at {self._address}, call connect() first"
            )
        return self._client

    async def connect(self) -> None:
        """Open the http client and check the agent responds."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=_TIMEOUT)
        await self._request("GET", "/v1/status/leader")
        _LOGGER.debug("Connected to consul at %s", self._address)

    async def close(self) -> None:
        """Close the http client if it was created by this backend."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        path: str,
        allow_missing: bool = False,
        **kwargs: Any,
    ) -> httpx.Response | None:
        try:
            response = await self.client.request(method, self._url(path), **kwargs)
        except httpx.TransportError as err:
            _LOGGER.error("Unable to communicate with consul at %s", self._address)
            raise StoreConnectionError(
                f"Unable to communicate with consul at {self._address}: {err}"
            ) from err
        if allow_missing and response.status_code == 404:
            return None
        if response.is_error:
            raise StoreException(
                f"Consul request {method} {path} failed with status "
                f"{response.status_code}: {response.text}"
            )
        return response

    async def get(self, key: str) -> bytes | None:
        """Return the raw value of the key."""
        response = await self._request(
            "GET", f"/v1/kv/{key}", allow_missing=True, params={"raw": ""}
        )
        if response is None:
            return None
        return response.content

    async def put(self, key: str, value: bytes) -> None:
        """Write the raw value of the key."""
        response = await self._request("PUT", f"/v1/kv/{key}", content=value)
        assert response is not None
        if response.text.strip() != "true":
            raise StoreException(f"Consul refused write of key '{key}'")

    async def create_session(self, name: str, ttl: int) -> str:
        """Create a session that releases its locks when destroyed or expired."""
        response = await self._request(
            "PUT",
            "/v1/session/create",
            json={
                "Name": name,
                "Behavior": "release",
                "TTL": f"{ttl}s",
                "LockDelay": "0s",
            },
        )
        assert response is not None
        session_id: str = response.json()["ID"]
        _LOGGER.debug("Created consul session %s (%s)", session_id, name)
        return session_id

    async def renew_session(self, session_id: str) -> None:
        """Renew the session, failing if consul already invalidated it."""
        await self._request("PUT", f"/v1/session/renew/{session_id}")

    async def destroy_session(self, session_id: str) -> None:
        """Destroy the session."""
        await self._request("PUT", f"/v1/session/destroy/{session_id}")

    async def acquire(self, key: str, session_id: str) -> bool:
        """Try to acquire the lock on the key."""
        response = await self._request(
            "PUT", f"/v1/kv/{key}", params={"acquire": session_id}, content=session_id
        )
        assert response is not None
        return response.text.strip() == "true"

    async def release(self, key: str, session_id: str) -> None:
        """Release the lock on the key."""
        await self._request("PUT", f"/v1/kv/{key}", params={"release": session_id})
