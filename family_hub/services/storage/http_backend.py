"""
HTTP Backend for the household REST API

Resource contract (per resource, e.g. /api/tasks):
- GET    /api/<resource>            -> list of records
- POST   /api/<resource>            -> created record (body: fields without id/timestamps)
- PUT    /api/<resource>            -> updated record (body: {id, ...changes})
- DELETE /api/<resource>?id=<id>    -> {"success": true}
- POST   /api/init                  -> ensure tables exist, seed example data

Only idempotent reads are retried. Writes are sent exactly once so a
timeout can never create a duplicate record.
"""

from typing import Any, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from family_hub.config import ApiSettings, get_settings
from family_hub.services.storage.interface import (
    BackendUnavailableError,
    EntityBackend,
    NotFoundError,
    StorageError,
)


class HttpEntityBackend(EntityBackend):
    """
    httpx implementation of the remote resource contract.

    Pass `client` to reuse an existing AsyncClient (tests inject one
    built on httpx.MockTransport).
    """

    def __init__(
        self,
        settings: Optional[ApiSettings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._settings = settings or get_settings().api
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self._settings.base_url,
            timeout=self._settings.timeout_seconds,
            headers={"Content-Type": "application/json"},
        )

    @property
    def identity(self) -> str:
        return str(self._client.base_url).rstrip("/") or self._settings.base_url

    def _path(self, resource: str) -> str:
        return f"/api/{resource}"

    async def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Send one request, mapping transport failures to storage errors."""
        try:
            return await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise BackendUnavailableError(f"{method} {path} timed out: {e}")
        except httpx.TransportError as e:
            raise BackendUnavailableError(f"{method} {path} failed: {e}")

    def _payload(self, response: httpx.Response) -> Any:
        """Decode a response body, raising StorageError for non-2xx."""
        if response.status_code == 404:
            raise NotFoundError(
                f"{response.request.method} {response.request.url.path}: not found",
                status_code=404,
            )
        if response.is_error:
            detail = response.text[:200]
            raise StorageError(
                f"{response.request.method} {response.request.url.path} "
                f"returned {response.status_code}: {detail}",
                status_code=response.status_code,
            )
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise StorageError(f"Invalid JSON from {response.request.url.path}: {e}")

    async def list_records(self, resource: str) -> list[dict]:
        """Fetch all records, retrying transient transport failures."""
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._settings.max_retries),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
            retry=retry_if_exception_type(BackendUnavailableError),
            reraise=True,
        ):
            with attempt:
                response = await self._send("GET", self._path(resource))

        data = self._payload(response)
        if not isinstance(data, list):
            # The API answers {"error": "..."} with a 200 on some failures
            raise StorageError(f"Expected a list from {resource}, got {type(data).__name__}")
        return data

    async def create_record(self, resource: str, body: dict) -> dict:
        response = await self._send("POST", self._path(resource), json=body)
        data = self._payload(response)
        if not isinstance(data, dict) or not data.get("id"):
            raise StorageError(f"Create on {resource} returned no record")
        return data

    async def update_record(self, resource: str, record_id: str, body: dict) -> dict:
        response = await self._send(
            "PUT",
            self._path(resource),
            json={"id": record_id, **body},
        )
        data = self._payload(response)
        if not isinstance(data, dict) or not data:
            # The API selects the row back after updating; nothing means no such id
            raise NotFoundError(f"{resource} record not found: {record_id}", status_code=404)
        return data

    async def delete_record(self, resource: str, record_id: str) -> bool:
        try:
            response = await self._send(
                "DELETE",
                self._path(resource),
                params={"id": record_id},
            )
            data = self._payload(response)
        except NotFoundError:
            return False
        if isinstance(data, dict) and "success" in data:
            return bool(data["success"])
        return True

    async def bootstrap(self, seed: bool = False) -> bool:
        # The init endpoint always seeds when the tables are empty
        response = await self._send("POST", "/api/init")
        data = self._payload(response)
        return not (isinstance(data, dict) and data.get("success") is False)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
