# src/erp_session/transport.py

import logging
from typing import Optional

import httpx

from .config import SessionConfig
from .models import ApiRequest

lib_logger = logging.getLogger("erp_session")


class HttpTransport:
    """
    Sends an ApiRequest over httpx and returns the raw response.

    Status codes are not interpreted here. Network-level failures propagate
    as httpx.RequestError (including httpx.TimeoutException).
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        config: Optional[SessionConfig] = None,
    ):
        self.config = config or SessionConfig()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=self.config.timeout(),
            follow_redirects=self.config.follow_redirects,
        )

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client

    async def send(self, request: ApiRequest) -> httpx.Response:
        timeout = (
            httpx.Timeout(request.timeout)
            if request.timeout is not None
            else self.config.timeout()
        )
        lib_logger.debug(f"{request.method} {request.url}")
        return await self._client.request(
            request.method,
            request.url,
            headers=dict(request.headers),
            params=request.params,
            data=request.data,
            json=request.json,
            content=request.content,
            timeout=timeout,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
