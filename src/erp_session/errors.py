# src/erp_session/errors.py

from typing import Iterable, List, Optional


class SessionError(Exception):
    """Base class for every error raised by the session core."""

    def __init__(self, message: str = ""):
        self.message = message or self.__class__.__name__
        super().__init__(self.message)


class MissingCredentialsError(SessionError):
    """
    Raised before any network call when the refresh token or base URL is absent.

    This is a precondition failure: it is never counted toward the refresh
    failure threshold and must not be retried by the caller.

    Attributes:
        missing: Storage keys that were empty when the call was attempted
    """

    def __init__(self, message: str = "", missing: Optional[Iterable[str]] = None):
        self.missing: List[str] = list(missing or [])
        super().__init__(message or "Missing refresh token or base URL")


class RefreshNetworkError(SessionError):
    """
    Raised when the refresh endpoint answered with a non-2xx status, a
    malformed body, an empty access token, or could not be reached at all.

    Counted toward the consecutive refresh failure threshold.

    Attributes:
        status_code: HTTP status from the refresh endpoint, if one was received
    """

    def __init__(self, message: str = "", status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message or "Token refresh failed")


class SessionExpiredError(SessionError):
    """Terminal error: the stored session can no longer be used and the user must log in again."""

    def __init__(self, message: str = ""):
        super().__init__(message or "Session expired. Please login again.")


class RefreshAttemptsExhaustedError(SessionExpiredError):
    """Raised to the caller whose refresh failure reached the consecutive failure threshold."""

    def __init__(self, attempts: int, message: str = ""):
        self.attempts = attempts
        super().__init__(
            message
            or f"Too many failed refresh attempts ({attempts}). Please login again."
        )


class TokenGenerationError(SessionError):
    """Raised when the token generation endpoint does not return an access token."""

    pass


class CredentialStoreError(SessionError):
    """Raised when the credential store cannot persist a change."""

    pass


def is_auth_status(status_code: Optional[int], auth_statuses: Iterable[int]) -> bool:
    """Return True when the status code signals an authentication failure."""
    return status_code is not None and status_code in tuple(auth_statuses)


def mask_token(token: Optional[str]) -> str:
    """Mask a bearer or refresh token for safe logging."""
    if not token:
        return "<none>"
    if len(token) <= 8:
        return "****"
    return f"{token[:4]}...{token[-4:]}"
