"""Fake ERP backend served through httpx.MockTransport."""

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

import httpx

BASE_URL = "https://example.com"
REFRESH_URL = f"{BASE_URL}/api/method/employee_app.gauth.create_refresh_token"
TOKEN_URL = f"{BASE_URL}/api/method/employee_app.gauth.generate_token_secure"
DATA_URL = f"{BASE_URL}/api/data"

ResponseSpec = Tuple[int, Any]
Responder = Callable[[httpx.Request], Union[httpx.Response, Awaitable[httpx.Response]]]


def _url_key(url: httpx.URL) -> str:
    return str(url).split("?", 1)[0]


def reply(status: int, body: Any = None) -> Responder:
    """Responder that always answers with the same status and JSON body."""

    def responder(request: httpx.Request) -> httpx.Response:
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    return responder


def sequence(*specs: ResponseSpec) -> Responder:
    """Responder answering with each (status, body) in turn, then repeating the last."""
    remaining = list(specs)

    def responder(request: httpx.Request) -> httpx.Response:
        status, body = remaining.pop(0) if len(remaining) > 1 else remaining[0]
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    return responder


def bearer_required(token: str, body: Any = None) -> Responder:
    """200 with body when the request carries `Bearer <token>`, else 401."""

    def responder(request: httpx.Request) -> httpx.Response:
        if request.headers.get("Authorization") == f"Bearer {token}":
            return httpx.Response(200, json=body if body is not None else {"ok": True})
        return httpx.Response(401, json={"message": "Unauthorized"})

    return responder


def refresh_success(access: str, refresh: Optional[str] = None) -> Responder:
    data = {"access_token": access}
    if refresh is not None:
        data["refresh_token"] = refresh
    return reply(200, {"data": data})


def network_error(message: str = "connection refused") -> Responder:
    def responder(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError(message, request=request)

    return responder


def gated(responder: Responder, gate: Callable[[], Awaitable[None]]) -> Responder:
    """Delay a responder until the gate coroutine returns."""

    async def wrapper(request: httpx.Request) -> httpx.Response:
        await gate()
        result = responder(request)
        if inspect.isawaitable(result):
            result = await result
        return result

    return wrapper


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Poll the event loop until predicate() holds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached before timeout")
        await asyncio.sleep(0.005)


class ERPBackend:
    """
    Routes requests by full URL (query string ignored) and records every call.

    Unrouted URLs answer 404.
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self._routes: Dict[Tuple[str, str], Responder] = {}

    def route(self, method: str, url: str, responder: Responder) -> "ERPBackend":
        self._routes[(method.upper(), url)] = responder
        return self

    def calls(self, method: str, url: str) -> List[httpx.Request]:
        return [
            r
            for r in self.requests
            if r.method == method.upper() and _url_key(r.url) == url
        ]

    @property
    def refresh_calls(self) -> List[httpx.Request]:
        return self.calls("POST", REFRESH_URL)

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        responder = self._routes.get((request.method, _url_key(request.url)))
        if responder is None:
            return httpx.Response(404, json={"message": "Not found"})
        result = responder(request)
        if inspect.isawaitable(result):
            result = await result
        return result

    def http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))
