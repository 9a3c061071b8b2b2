# src/erp_session/config.py
"""
Session configuration.

Defaults match the employee app backend. Every value can be overridden via
environment variables:
    ERP_SESSION_REQUEST_TIMEOUT - Per-request timeout in seconds (default: 30s)
    ERP_SESSION_REFRESH_FAILURE_THRESHOLD - Consecutive refresh failures before
        the session is torn down (default: 3)
    ERP_SESSION_API_PREFIX - Path prefix joined to the base URL for relative
        requests (default: /api)
    ERP_SESSION_REFRESH_PATH - Refresh endpoint path (default:
        /api/method/employee_app.gauth.create_refresh_token)
    ERP_SESSION_TOKEN_PATH - Token generation endpoint path (default:
        /api/method/employee_app.gauth.generate_token_secure)
"""

import os
import logging
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

import httpx

lib_logger = logging.getLogger("erp_session")


class StorageKeys:
    """Credential store keys shared with the rest of the app."""

    BASE_URL = "baseUrl"
    ACCESS_TOKEN = "access_token"
    REFRESH_TOKEN = "refresh_token"
    EMPLOYEE_CODE = "employee_code"
    EMPLOYEE_ID = "employee_id"


DEFAULT_REQUEST_TIMEOUT = 30.0
DEFAULT_REFRESH_FAILURE_THRESHOLD = 3
DEFAULT_API_PREFIX = "/api"
DEFAULT_REFRESH_PATH = "/api/method/employee_app.gauth.create_refresh_token"
DEFAULT_TOKEN_PATH = "/api/method/employee_app.gauth.generate_token_secure"


def _get_env_float(
    environ: Mapping[str, str], key: str, default: float
) -> float:
    """Get a positive float from the environment, or return default."""
    value = environ.get(key)
    if value is not None:
        try:
            parsed = float(value)
            if parsed > 0:
                return parsed
        except ValueError:
            pass
        lib_logger.warning(f"Invalid value for {key}: {value}. Using default: {default}")
    return default


def _get_env_int(environ: Mapping[str, str], key: str, default: int) -> int:
    """Get an integer >= 1 from the environment, or return default."""
    value = environ.get(key)
    if value is not None:
        try:
            parsed = int(value)
            if parsed >= 1:
                return parsed
        except ValueError:
            pass
        lib_logger.warning(f"Invalid value for {key}: {value}. Using default: {default}")
    return default


@dataclass(frozen=True)
class SessionConfig:
    """
    Tunables for the authenticated client.

    Attributes:
        request_timeout: Seconds before the transport abandons a request.
        refresh_failure_threshold: Consecutive refresh failures that end the session.
        api_prefix: Prefix joined between the base URL and a relative request path.
        refresh_path: Path of the refresh endpoint, relative to the base URL.
        token_path: Path of the token generation (login) endpoint.
        auth_statuses: Status codes treated as authentication failures.
        follow_redirects: Whether the transport follows redirects.
    """

    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    refresh_failure_threshold: int = DEFAULT_REFRESH_FAILURE_THRESHOLD
    api_prefix: str = DEFAULT_API_PREFIX
    refresh_path: str = DEFAULT_REFRESH_PATH
    token_path: str = DEFAULT_TOKEN_PATH
    auth_statuses: Tuple[int, ...] = (401, 403)
    follow_redirects: bool = True

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "SessionConfig":
        """Build a config from environment variables, falling back to defaults."""
        env = os.environ if environ is None else environ
        return cls(
            request_timeout=_get_env_float(
                env, "ERP_SESSION_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT
            ),
            refresh_failure_threshold=_get_env_int(
                env,
                "ERP_SESSION_REFRESH_FAILURE_THRESHOLD",
                DEFAULT_REFRESH_FAILURE_THRESHOLD,
            ),
            api_prefix=env.get("ERP_SESSION_API_PREFIX") or DEFAULT_API_PREFIX,
            refresh_path=env.get("ERP_SESSION_REFRESH_PATH") or DEFAULT_REFRESH_PATH,
            token_path=env.get("ERP_SESSION_TOKEN_PATH") or DEFAULT_TOKEN_PATH,
        )

    @property
    def refresh_marker(self) -> str:
        """Final path segment used to recognise calls to the refresh endpoint."""
        return self.refresh_path.rstrip("/").rsplit("/", 1)[-1]

    def timeout(self) -> httpx.Timeout:
        """Timeout applied to every request sent by the transport."""
        return httpx.Timeout(self.request_timeout)
