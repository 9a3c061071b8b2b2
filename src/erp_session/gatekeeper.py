# src/erp_session/gatekeeper.py

import logging
from dataclasses import replace
from typing import Awaitable, Callable

import httpx

from .config import SessionConfig
from .models import ApiRequest, Outcome
from .refresh import RefreshCoordinator

lib_logger = logging.getLogger("erp_session")

Resubmit = Callable[[ApiRequest], Awaitable[httpx.Response]]


class ResponseGatekeeper:
    """
    Inbound stage deciding, per failed response, whether to pass the error
    through, end the session, or refresh the token and replay the request.

    Decision order:
    1. Successful outcomes, skip_auth requests and requests already carrying
       the retry marker pass through untouched.
    2. Anything that is not an authentication failure passes through.
    3. An authentication failure from the refresh endpoint itself ends the
       session; refreshing a refresh is never attempted.
    4. Any other authentication failure waits for the shared refresh and is
       replayed exactly once, with the retry marker set, through the full
       pipeline. A refresh error becomes the caller's error.
    """

    def __init__(
        self,
        coordinator: RefreshCoordinator,
        config: SessionConfig,
        resubmit: Resubmit,
    ):
        self.coordinator = coordinator
        self.config = config
        self.resubmit = resubmit

    async def __call__(self, outcome: Outcome) -> Outcome:
        request = outcome.request
        if outcome.ok or request.skip_auth or request.retried:
            return outcome

        if not outcome.is_auth_failure(self.config.auth_statuses):
            return outcome

        status = outcome.status_code
        if request.matches_path([self.config.refresh_marker]):
            lib_logger.warning(
                f"Refresh endpoint answered HTTP {status}; not refreshing again."
            )
            expired = await self.coordinator.expire_session(
                f"refresh endpoint answered HTTP {status}"
            )
            return Outcome(request, error=expired)

        # Marked before waiting so this request can never enter a second cycle
        marked = replace(request, retried=True)
        try:
            token = await self.coordinator.request_refresh()
        except Exception as e:
            lib_logger.debug(f"Not replaying {request.method} {request.url}: {e}")
            return Outcome(marked, error=e)

        replay = request.mark_retried(token)
        lib_logger.debug(f"Replaying {replay.method} {replay.url} with refreshed token")
        try:
            response = await self.resubmit(replay)
        except Exception as e:
            return Outcome(replay, error=e)
        return Outcome(replay, response=response)
