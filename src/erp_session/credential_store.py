# src/erp_session/credential_store.py

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, Optional, Sequence, Tuple, Union

from .errors import CredentialStoreError
from .utils.resilient_io import read_json_file, safe_write_json

lib_logger = logging.getLogger("erp_session")

KeyValuePairs = Sequence[Tuple[str, str]]


class CredentialStore(ABC):
    """
    Async key-value persistence for the base URL, tokens and employee identifiers.

    Values are always strings; a missing key reads as None.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    async def set_many(self, pairs: KeyValuePairs) -> None:
        """Write several keys as one operation."""
        pass

    @abstractmethod
    async def remove(self, key: str) -> None:
        pass

    @abstractmethod
    async def clear(self) -> None:
        pass

    async def remove_many(self, keys: Iterable[str]) -> None:
        for key in keys:
            await self.remove(key)


class MemoryCredentialStore(CredentialStore):
    """Process-local store. Nothing survives a restart."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def set_many(self, pairs: KeyValuePairs) -> None:
        self._data.update(dict(pairs))

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    async def remove_many(self, keys: Iterable[str]) -> None:
        for key in keys:
            self._data.pop(key, None)

    async def clear(self) -> None:
        self._data.clear()


class JsonFileCredentialStore(CredentialStore):
    """
    Store backed by a single JSON file with owner-only permissions.

    Every mutation rewrites the whole file atomically. The file is written
    FIRST and the in-memory mapping is only updated after the write succeeds,
    so memory and disk never disagree. A failed write raises
    CredentialStoreError and leaves both untouched.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._data: Optional[Dict[str, str]] = None

    def _load(self) -> Dict[str, str]:
        if self._data is None:
            raw = read_json_file(self.path, lib_logger)
            if raw is None:
                lib_logger.warning(
                    f"Credential file '{self.path.name}' is unreadable, starting empty."
                )
                raw = {}
            self._data = {
                str(k): str(v) for k, v in raw.items() if v is not None
            }
        return self._data

    def _commit(self, updated: Dict[str, str]) -> None:
        if not safe_write_json(self.path, updated, lib_logger, secure_permissions=True):
            raise CredentialStoreError(
                f"Failed to write credential file '{self.path.name}'"
            )
        self._data = updated

    async def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    async def set(self, key: str, value: str) -> None:
        updated = dict(self._load())
        updated[key] = value
        self._commit(updated)

    async def set_many(self, pairs: KeyValuePairs) -> None:
        updated = dict(self._load())
        updated.update(dict(pairs))
        self._commit(updated)

    async def remove(self, key: str) -> None:
        await self.remove_many([key])

    async def remove_many(self, keys: Iterable[str]) -> None:
        doomed = set(keys)
        current = self._load()
        updated = {k: v for k, v in current.items() if k not in doomed}
        if len(updated) != len(current):
            self._commit(updated)

    async def clear(self) -> None:
        self._commit({})
