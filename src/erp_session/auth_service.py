# src/erp_session/auth_service.py
"""
Login and session helpers used by the app's screens and business services.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

import httpx

from .client import AuthenticatedClient
from .config import StorageKeys
from .errors import MissingCredentialsError, SessionExpiredError, TokenGenerationError
from .session import SessionContext
from .token_cache import TokenPair
from .url_utils import join_api_url

lib_logger = logging.getLogger("erp_session")


@dataclass(frozen=True)
class AuthContext:
    base_url: str
    token: str
    employee_code: Optional[str] = None


async def configure_base_url(session: SessionContext, raw: str) -> str:
    """Store the backend URL scanned from the onboarding QR code."""
    base_url = await session.tokens.set_base_url(raw)
    lib_logger.info(f"Base URL set to {base_url}")
    return base_url


async def generate_token(
    client: AuthenticatedClient, api_key: str, app_key: str, api_secret: str
) -> TokenPair:
    """
    Log in with the employee's API credentials and persist the issued tokens.

    The call bypasses the refresh logic: a 401 here means bad credentials,
    not an expired token.
    """
    session = client.session
    base_url = await session.tokens.get_base_url()
    if not base_url:
        raise MissingCredentialsError(
            "Base URL not found. Please scan QR code first.",
            missing=[StorageKeys.BASE_URL],
        )

    response = await client.post(
        join_api_url(base_url, "", session.config.token_path),
        data={"api_key": api_key, "app_key": app_key, "api_secret": api_secret},
        headers={"Content-Type": "application/x-www-form-urlencoded"},
        skip_auth=True,
    )

    try:
        body = response.json()
    except ValueError as e:
        raise TokenGenerationError("Token not returned from server") from e

    token_data = body.get("data") if isinstance(body, dict) else None
    access = token_data.get("access_token") if isinstance(token_data, dict) else None
    if not access:
        raise TokenGenerationError("Token not returned from server")

    pair = await session.tokens.save_tokens(access, token_data.get("refresh_token") or "")
    session.coordinator.reset()
    lib_logger.info("Login succeeded, tokens stored.")
    return pair


async def get_auth_context(session: SessionContext) -> AuthContext:
    """
    Base URL, access token and employee code in one read.

    Raises:
        SessionExpiredError: No base URL or no access token is stored.
    """
    base_url = await session.tokens.get_base_url()
    token = await session.tokens.access_token()
    if not base_url or not token:
        raise SessionExpiredError("Session expired")
    employee_code = await session.store.get(StorageKeys.EMPLOYEE_CODE)
    return AuthContext(base_url=base_url, token=token, employee_code=employee_code)


def build_headers(token: str, content_type: str = "application/json") -> Dict[str, str]:
    return {
        "Authorization": f"Bearer {token}",
        "Content-Type": content_type,
    }


def describe_http_error(error: httpx.HTTPError) -> str:
    """Short message for an HTTP failure, preferring the server's own message."""
    if isinstance(error, httpx.HTTPStatusError):
        try:
            body = error.response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("message"):
            return f"HTTP {error.response.status_code}: {body['message']}"
        return f"HTTP {error.response.status_code}"
    return str(error) or error.__class__.__name__
