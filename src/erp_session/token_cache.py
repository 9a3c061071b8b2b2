# src/erp_session/token_cache.py

import logging
from dataclasses import dataclass
from typing import Optional

from .config import StorageKeys
from .credential_store import CredentialStore
from .url_utils import clean_base_url

lib_logger = logging.getLogger("erp_session")


@dataclass(frozen=True)
class TokenPair:
    access: Optional[str] = None
    refresh: Optional[str] = None


class TokenCache:
    """
    Read/write access to the base URL and token pair.

    The in-process values are authoritative once set: a warm field is never
    replaced by a store read, only by save_tokens, set_base_url or
    clear_tokens. Cold fields fall back to the credential store and are
    backfilled. Writes go to the store FIRST; the cache is only updated once
    the store accepted the change.
    """

    def __init__(self, store: CredentialStore):
        self.store = store
        self._access: Optional[str] = None
        self._refresh: Optional[str] = None
        self._base_url: Optional[str] = None

    async def load_tokens(self) -> TokenPair:
        if not self._access:
            self._access = await self.store.get(StorageKeys.ACCESS_TOKEN) or None
        if not self._refresh:
            self._refresh = await self.store.get(StorageKeys.REFRESH_TOKEN) or None
        return TokenPair(access=self._access, refresh=self._refresh)

    async def access_token(self) -> Optional[str]:
        return (await self.load_tokens()).access

    async def save_tokens(self, access: str, refresh: Optional[str] = None) -> TokenPair:
        """
        Persist a new token pair.

        A refresh value of None keeps the currently stored refresh token, since
        the refresh endpoint does not always rotate it.
        """
        if refresh is None:
            refresh = (await self.load_tokens()).refresh

        pairs = [(StorageKeys.ACCESS_TOKEN, access)]
        if refresh is not None:
            pairs.append((StorageKeys.REFRESH_TOKEN, refresh))
        await self.store.set_many(pairs)

        self._access = access
        self._refresh = refresh
        return TokenPair(access=access, refresh=refresh)

    async def clear_tokens(self) -> None:
        self._access = None
        self._refresh = None
        await self.store.remove_many(
            [StorageKeys.ACCESS_TOKEN, StorageKeys.REFRESH_TOKEN]
        )
        lib_logger.debug("Cleared stored access and refresh tokens.")

    async def get_base_url(self) -> Optional[str]:
        """Cleaned base URL, or None if none has been configured."""
        if not self._base_url:
            raw = await self.store.get(StorageKeys.BASE_URL)
            self._base_url = clean_base_url(raw) or None
        return self._base_url

    async def set_base_url(self, raw: str) -> str:
        cleaned = clean_base_url(raw)
        if not cleaned:
            raise ValueError(f"Not a usable base URL: {raw!r}")
        await self.store.set(StorageKeys.BASE_URL, cleaned)
        self._base_url = cleaned
        return cleaned
