# src/erp_session/models.py

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional

import httpx

from .errors import is_auth_status

SKIP_AUTH_HEADER = "x-skip-auth"


def _freeze_headers(headers: Optional[Mapping[str, str]]) -> Mapping[str, str]:
    return MappingProxyType(dict(headers or {}))


@dataclass(frozen=True)
class ApiRequest:
    """
    Immutable description of one outgoing call.

    Pipeline stages never mutate a request; they derive a new one. The
    `retried` flag is the retry marker: it is set on the copy that is
    resubmitted after a token refresh, and a retried request is never
    refreshed again.
    """

    method: str
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    params: Optional[Mapping[str, Any]] = None
    data: Optional[Mapping[str, Any]] = None
    json: Any = None
    content: Optional[bytes] = None
    timeout: Optional[float] = None
    skip_auth: bool = False
    retried: bool = False

    def __post_init__(self):
        headers = dict(self.headers or {})
        skip_flag = None
        for name in list(headers):
            if name.lower() == SKIP_AUTH_HEADER:
                skip_flag = headers.pop(name)
        if skip_flag is not None and str(skip_flag).lower() == "true":
            object.__setattr__(self, "skip_auth", True)
        object.__setattr__(self, "method", self.method.upper())
        object.__setattr__(self, "headers", _freeze_headers(headers))

    def header(self, name: str) -> Optional[str]:
        """Case-insensitive header lookup."""
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None

    def with_url(self, url: str) -> "ApiRequest":
        return replace(self, url=url)

    def with_header(self, name: str, value: str) -> "ApiRequest":
        headers = {k: v for k, v in self.headers.items() if k.lower() != name.lower()}
        headers[name] = value
        return replace(self, headers=headers)

    def with_bearer(self, token: str) -> "ApiRequest":
        return self.with_header("Authorization", f"Bearer {token}")

    def mark_retried(self, token: str) -> "ApiRequest":
        """Copy carrying the retry marker and the refreshed bearer token."""
        return replace(self.with_bearer(token), retried=True)

    def matches_path(self, markers: Iterable[str]) -> bool:
        return any(marker and marker in self.url for marker in markers)


@dataclass
class Outcome:
    """
    Result of sending a request: either a response or an error, never both.

    Response stages take an Outcome and return an Outcome; the caller finally
    gets unwrap(), which returns the response or raises the error.
    """

    request: ApiRequest
    response: Optional[httpx.Response] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.response is not None

    @property
    def status_code(self) -> Optional[int]:
        if self.response is not None:
            return self.response.status_code
        if isinstance(self.error, httpx.HTTPStatusError):
            return self.error.response.status_code
        return None

    def is_auth_failure(self, statuses: Iterable[int]) -> bool:
        return self.error is not None and is_auth_status(self.status_code, statuses)

    def unwrap(self) -> httpx.Response:
        if self.error is not None:
            raise self.error
        if self.response is None:
            raise RuntimeError(f"No response recorded for {self.request.method} {self.request.url}")
        return self.response
