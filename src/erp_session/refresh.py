# src/erp_session/refresh.py
"""
Single-flight access token refresh.

However many requests fail authentication at the same time, at most one call
to the refresh endpoint is in flight. Every caller that asks for a refresh
while one is running gets its own pending future, and all of them settle with
the same token or the same error once the refresh finishes.

Consecutive refresh failures are counted; reaching the configured threshold
ends the session (tokens cleared, teardown hook fired once) and the counter
starts over. Ending the session also invalidates a refresh that is still in
flight: its result is discarded and its waiters get SessionExpiredError.
"""

import asyncio
import inspect
import logging
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Union

import httpx

from .config import SessionConfig, StorageKeys
from .errors import (
    MissingCredentialsError,
    RefreshAttemptsExhaustedError,
    RefreshNetworkError,
    SessionError,
    SessionExpiredError,
    is_auth_status,
    mask_token,
)
from .models import ApiRequest
from .token_cache import TokenCache
from .transport import HttpTransport
from .url_utils import join_api_url

lib_logger = logging.getLogger("erp_session")

TeardownHook = Callable[[], Union[None, Awaitable[None]]]


class RefreshState(Enum):
    IDLE = "idle"
    REFRESHING = "refreshing"


class RefreshCoordinator:
    def __init__(
        self,
        tokens: TokenCache,
        transport: HttpTransport,
        config: Optional[SessionConfig] = None,
        on_teardown: Optional[TeardownHook] = None,
    ):
        self.tokens = tokens
        self.transport = transport
        self.config = config or SessionConfig()
        self.on_teardown = on_teardown

        self._state = RefreshState.IDLE
        self._refresh_task: Optional[asyncio.Task] = None
        self._pending: List[asyncio.Future] = []

        self._consecutive_failures = 0
        self._refresh_calls = 0
        self._teardowns = 0
        # Bumped by every teardown; a refresh started before it must not persist tokens
        self._generation = 0

    @property
    def state(self) -> RefreshState:
        return self._state

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def refresh_calls(self) -> int:
        """Number of refresh network calls issued so far."""
        return self._refresh_calls

    @property
    def teardowns(self) -> int:
        return self._teardowns

    def request_refresh(self) -> "asyncio.Future[str]":
        """
        Join the in-flight refresh, or start one if none is running.

        Must stay synchronous: the state check and the transition to
        REFRESHING happen in one step, before control returns to the event
        loop, so two callers can never both start a refresh.

        Returns:
            A future resolved with the new access token, or failed with the
            refresh error. Cancelling it does not cancel the shared refresh.
        """
        loop = asyncio.get_running_loop()
        waiter = loop.create_future()
        self._pending.append(waiter)

        if self._refresh_task is None:
            self._state = RefreshState.REFRESHING
            self._refresh_task = loop.create_task(self._run_refresh())
            lib_logger.info("Access token rejected, starting token refresh.")
        else:
            lib_logger.debug(
                f"Token refresh already in progress, {len(self._pending)} caller(s) waiting."
            )
        return waiter

    async def _run_refresh(self) -> None:
        token: Optional[str] = None
        error: Optional[BaseException] = None
        try:
            token = await self.refresh_access_token()
            self._consecutive_failures = 0
        except MissingCredentialsError as e:
            lib_logger.warning(f"Token refresh not attempted: {e.message}")
            error = e
        except SessionExpiredError as e:
            error = e
        except asyncio.CancelledError:
            self._settle(None, SessionError("Token refresh was cancelled"))
            raise
        except Exception as e:
            error = await self._record_failure(e)
        self._settle(token, error)

    async def _record_failure(self, error: Exception) -> Exception:
        self._consecutive_failures += 1
        attempts = self._consecutive_failures
        threshold = self.config.refresh_failure_threshold

        if attempts < threshold:
            lib_logger.warning(f"Token refresh failed ({attempts}/{threshold}): {error}")
            return error

        lib_logger.error(
            f"Token refresh failed {attempts} times in a row, ending the session: {error}"
        )
        exhausted = RefreshAttemptsExhaustedError(attempts)
        exhausted.__cause__ = error
        return await self.expire_session("too many failed refresh attempts", exhausted)

    def _settle(self, token: Optional[str], error: Optional[BaseException]) -> None:
        waiters, self._pending = self._pending, []
        self._refresh_task = None
        self._state = RefreshState.IDLE

        for waiter in waiters:
            if waiter.done():
                # Waiter gave up (cancelled) while the refresh ran
                continue
            if error is not None:
                waiter.set_exception(error)
            else:
                waiter.set_result(token)

        if error is None:
            lib_logger.info(
                f"Token refresh succeeded, releasing {len(waiters)} waiting request(s)."
            )

    async def refresh_access_token(self) -> str:
        """
        Exchange the stored refresh token for a new access token.

        This is the single network call the coordinator guards. It can also be
        called directly; direct calls are not counted toward the failure
        threshold.

        Returns:
            The new access token, already persisted.

        Raises:
            MissingCredentialsError: No refresh token or base URL (no request sent).
            SessionExpiredError: The refresh endpoint itself rejected the token, or
                the session was ended while the refresh was in flight.
            RefreshNetworkError: Any other failure of the refresh call.
        """
        generation = self._generation
        pair = await self.tokens.load_tokens()
        base_url = await self.tokens.get_base_url()

        missing = [
            key
            for key, value in (
                (StorageKeys.REFRESH_TOKEN, pair.refresh),
                (StorageKeys.BASE_URL, base_url),
            )
            if not value
        ]
        if missing:
            raise MissingCredentialsError(missing=missing)

        request = ApiRequest(
            method="POST",
            url=join_api_url(base_url, "", self.config.refresh_path),
            headers={
                "Content-Type": "application/x-www-form-urlencoded",
                "Accept": "application/json",
            },
            data={"refresh_token": pair.refresh},
            skip_auth=True,
        )

        self._refresh_calls += 1
        lib_logger.debug(f"Refreshing with refresh token {mask_token(pair.refresh)}")
        try:
            response = await self.transport.send(request)
        except httpx.RequestError as e:
            self._check_generation(generation)
            raise RefreshNetworkError(f"Refresh request failed: {e}") from e
        self._check_generation(generation)

        status = response.status_code
        if is_auth_status(status, self.config.auth_statuses):
            lib_logger.warning(f"Refresh endpoint rejected the refresh token (HTTP {status}).")
            expired = await self.expire_session(f"refresh endpoint answered HTTP {status}")
            raise expired

        if not response.is_success:
            raise RefreshNetworkError(
                f"Refresh endpoint returned HTTP {status}", status_code=status
            )

        try:
            body = response.json()
        except ValueError as e:
            raise RefreshNetworkError(
                "Refresh returned a malformed body", status_code=status
            ) from e

        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, dict) or not data.get("access_token"):
            raise RefreshNetworkError("Refresh returned empty token", status_code=status)

        access = data["access_token"]
        await self.tokens.save_tokens(access, data.get("refresh_token") or None)
        return access

    def _check_generation(self, generation: int) -> None:
        if generation != self._generation:
            lib_logger.info(
                "Session ended while the token refresh was in flight, discarding result."
            )
            raise SessionExpiredError()

    async def end_session(self, reason: str) -> None:
        """
        Clear stored tokens, reset the failure counter and fire the teardown hook.

        Any refresh still in flight is invalidated and will not persist its
        tokens. The hook fires even if clearing the store fails; the store
        error is raised afterwards.
        """
        self._consecutive_failures = 0
        self._generation += 1
        self._teardowns += 1
        try:
            await self.tokens.clear_tokens()
        finally:
            lib_logger.info(f"Session ended: {reason}.")
            await self._fire_teardown_hook()

    async def expire_session(
        self, reason: str, error: Optional[SessionExpiredError] = None
    ) -> SessionExpiredError:
        """
        End the session and return the terminal error for the caller.

        A failure to clear the store is logged and chained onto the returned
        error instead of replacing it.
        """
        error = error or SessionExpiredError()
        try:
            await self.end_session(reason)
        except Exception as e:
            lib_logger.error(f"Failed to clear stored tokens: {e}")
            error.__cause__ = e
        return error

    async def _fire_teardown_hook(self) -> None:
        if self.on_teardown is None:
            return
        try:
            result = self.on_teardown()
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            lib_logger.error(f"Session teardown hook failed: {e}")

    def reset(self) -> None:
        """Forget past failures (used on sign-out and fresh login)."""
        self._consecutive_failures = 0
        if self._refresh_task is None:
            self._state = RefreshState.IDLE
