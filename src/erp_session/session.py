# src/erp_session/session.py

import logging
from typing import Optional

import httpx

from .config import SessionConfig
from .credential_store import CredentialStore
from .refresh import RefreshCoordinator, TeardownHook
from .token_cache import TokenCache
from .transport import HttpTransport

lib_logger = logging.getLogger("erp_session")


class SessionContext:
    """
    Owner of all per-login mutable state: the token cache, the refresh
    coordinator (in-flight refresh, failure counter) and the transport.

    Build one at app start and share it with every client; tear it down on
    logout or reinitialisation. Nothing here lives at module level.
    """

    def __init__(
        self,
        store: CredentialStore,
        config: Optional[SessionConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        on_teardown: Optional[TeardownHook] = None,
    ):
        self.config = config or SessionConfig()
        self.store = store
        self.tokens = TokenCache(store)
        self.transport = HttpTransport(http_client, self.config)
        self.coordinator = RefreshCoordinator(
            self.tokens, self.transport, self.config, on_teardown=on_teardown
        )

    async def sign_out(self) -> None:
        """Explicit logout: same teardown as a failed session."""
        await self.coordinator.end_session("signed out")

    async def aclose(self) -> None:
        await self.transport.aclose()

    async def __aenter__(self) -> "SessionContext":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
