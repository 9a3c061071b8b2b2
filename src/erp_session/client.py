# src/erp_session/client.py

from typing import Any, Mapping, Optional

import httpx

from .authenticator import RequestAuthenticator
from .config import SessionConfig
from .credential_store import CredentialStore
from .gatekeeper import ResponseGatekeeper
from .models import ApiRequest
from .pipeline import RequestPipeline, check_status
from .refresh import TeardownHook
from .session import SessionContext


class AuthenticatedClient:
    """
    HTTP client for the ERP backend.

    Relative paths are resolved against the stored base URL plus the API
    prefix, every request carries the current bearer token, and requests
    rejected with 401/403 are replayed once after a single shared token
    refresh.

    Returns the httpx.Response for 2xx answers. Other statuses raise
    httpx.HTTPStatusError, network failures raise httpx.RequestError, and
    session failures raise a SessionError subclass.
    """

    def __init__(self, session: SessionContext):
        self.session = session
        self.authenticator = RequestAuthenticator(session.tokens, session.config)
        self.pipeline = RequestPipeline(session.transport)
        self.gatekeeper = ResponseGatekeeper(
            session.coordinator, session.config, resubmit=self.pipeline.execute
        )
        self.pipeline.request_stages.append(self.authenticator)
        self.pipeline.response_stages.extend([check_status, self.gatekeeper])

    async def send(self, request: ApiRequest) -> httpx.Response:
        return await self.pipeline.execute(request)

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        params: Optional[Mapping[str, Any]] = None,
        data: Optional[Mapping[str, Any]] = None,
        json: Any = None,
        content: Optional[bytes] = None,
        timeout: Optional[float] = None,
        skip_auth: bool = False,
    ) -> httpx.Response:
        return await self.send(
            ApiRequest(
                method=method,
                url=url,
                headers=headers or {},
                params=params,
                data=data,
                json=json,
                content=content,
                timeout=timeout,
                skip_auth=skip_auth,
            )
        )

    async def get(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def put(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("PUT", url, **kwargs)

    async def patch(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("PATCH", url, **kwargs)

    async def delete(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("DELETE", url, **kwargs)

    async def aclose(self) -> None:
        await self.session.aclose()

    async def __aenter__(self) -> "AuthenticatedClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


def create_client(
    store: CredentialStore,
    config: Optional[SessionConfig] = None,
    on_teardown: Optional[TeardownHook] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> AuthenticatedClient:
    """Build a session around the given store and return a client bound to it."""
    session = SessionContext(
        store, config=config, http_client=http_client, on_teardown=on_teardown
    )
    return AuthenticatedClient(session)
