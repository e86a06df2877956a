"""
HTTP transport for the Admin/Monitor API.

Each request is POSTed as JSON to ``<url><endpoint>`` and the body of the reply is the
response frame.
"""

import json
from typing import Any, Optional

import httpx

from janus_gateway.decoder import Decoder
from janus_gateway.errors import TransportError
from janus_gateway.registry import ADMIN_REGISTRY

DEFAULT_HTTP_TIMEOUT = 10.0


class HttpAdminTransport:
    def __init__(
        self,
        url: str,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        decoder: Optional[Decoder] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._url = url.rstrip("/")
        self._decoder = decoder or Decoder(ADMIN_REGISTRY)
        self._client = httpx.AsyncClient(
            headers={"User-Agent": "janus-gateway/0.1.0", "Accept": "application/json"},
            timeout=httpx.Timeout(timeout, connect=5.0),
            transport=transport,
        )

    @property
    def url(self) -> str:
        return self._url

    async def request(self, request: Any) -> Any:
        resp = await self._client.post(
            self._url + request.endpoint(),
            content=json.dumps(request.payload()),
            headers={"Content-Type": "application/json; charset=utf-8"},
        )
        if resp.status_code >= 400:
            raise TransportError(resp.status_code, resp.reason_phrase or resp.text[:200])
        message, _ = self._decoder.decode_response(resp.content, request)
        return message

    async def close(self) -> None:
        await self._client.aclose()
