"""Transport session for a remote chat gateway, using httpx."""

from collections.abc import AsyncIterator, Sequence
from typing import Any

import httpx
from loguru import logger
from pydantic import ValidationError

from chatpuppet.config.schema import TransportConfig
from chatpuppet.directory import Contact
from chatpuppet.errors import TransportError
from chatpuppet.schema import MessagePayload
from chatpuppet.transport.base import Ack, Target, TransportSession, target_type


class HttpTransport(TransportSession):
    """
    Transport speaking the gateway's JSON protocol.

    Endpoints (relative to ``base_url``):
        GET  /self                       -> {"id": ...}
        GET  /messages/{id}              -> payload
        GET  /messages/{id}/attachment   -> attachment bytes
        POST /messages                   -> {"id": ...}
    """

    name = "http"

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None
        self._self_id: str | None = None

    @classmethod
    def from_config(cls, config: TransportConfig, client: httpx.AsyncClient | None = None) -> "HttpTransport":
        """Build a transport from the saved gateway settings."""
        return cls(config.base_url, token=config.token or None, timeout=config.timeout, client=client)

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Send a request and return the decoded JSON body."""
        url = f"{self.base_url}{path}"
        try:
            response = await self.client.request(method, url, headers=self._headers(), **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"Gateway error ({e.response.status_code}) for {method} {path}: {e.response.text[:200]}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(f"Gateway unreachable for {method} {path}: {e}") from e
        except ValueError as e:
            raise TransportError(f"Gateway returned invalid JSON for {method} {path}") from e

    async def self_id(self) -> str:
        if self._self_id is None:
            data = await self._request("GET", "/self")
            if not data.get("id"):
                raise TransportError("Gateway did not report the logged-in account")
            self._self_id = str(data["id"])
        return self._self_id

    async def fetch_payload(self, message_id: str) -> MessagePayload:
        data = await self._request("GET", f"/messages/{message_id}")
        try:
            return MessagePayload.model_validate(data)
        except ValidationError as e:
            raise TransportError(
                f"Gateway returned a malformed payload for {message_id}: {e}",
                message_id=message_id,
            ) from e

    async def open_attachment_stream(self, message_id: str) -> AsyncIterator[bytes]:
        path = f"/messages/{message_id}/attachment"
        request = self.client.build_request("GET", f"{self.base_url}{path}", headers=self._headers())
        try:
            response = await self.client.send(request, stream=True)
        except httpx.HTTPError as e:
            raise TransportError(f"Gateway unreachable for GET {path}: {e}", message_id=message_id) from e

        if response.is_error:
            await response.aclose()
            raise TransportError(
                f"Gateway error ({response.status_code}) for GET {path}",
                status_code=response.status_code,
                message_id=message_id,
            )
        return self._iter_response(response)

    @staticmethod
    async def _iter_response(response: httpx.Response) -> AsyncIterator[bytes]:
        try:
            async for chunk in response.aiter_bytes():
                yield chunk
        finally:
            await response.aclose()

    async def send(
        self,
        target: Target,
        content: str | MessagePayload,
        mentions: Sequence[Contact] | None = None,
    ) -> Ack:
        body: dict[str, Any] = {
            "target": {"type": target_type(target), "id": target.id},
            "mentions": [m.id for m in mentions or ()],
        }
        if isinstance(content, MessagePayload):
            body["payload"] = content.to_wire()
        else:
            body["text"] = content

        data = await self._request("POST", "/messages", json=body)
        logger.debug("http transport: sent {} to {}", data.get("id"), target.id)
        return Ack(message_id=str(data.get("id", "")), target_id=target.id)

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self) -> "HttpTransport":
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()
