from __future__ import annotations

import time
from typing import Callable, Dict, Iterable, Optional, Protocol, Tuple

from .config import Settings

Entry = Tuple[str, int]  # (value, ttl_sec)


class CredentialStore(Protocol):
    async def set(self, name: str, value: str, ttl_sec: int) -> None:
        ...

    async def get(self, name: str) -> Optional[str]:
        ...

    async def delete(self, name: str) -> None:
        ...

    async def set_many(self, entries: Dict[str, Entry]) -> None:
        ...

    async def get_many(self, names: Iterable[str]) -> Dict[str, Optional[str]]:
        ...

    async def delete_many(self, names: Iterable[str]) -> None:
        ...


class MemoryCredentialStore:
    """Process-local store. Every batch call completes without yielding to the loop."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock
        self._data: Dict[str, Tuple[str, float]] = {}

    async def set(self, name: str, value: str, ttl_sec: int) -> None:
        self._put(name, value, ttl_sec)

    async def get(self, name: str) -> Optional[str]:
        return self._read(name)

    async def delete(self, name: str) -> None:
        self._data.pop(name, None)

    async def set_many(self, entries: Dict[str, Entry]) -> None:
        for name, (value, ttl_sec) in entries.items():
            self._put(name, value, ttl_sec)

    async def get_many(self, names: Iterable[str]) -> Dict[str, Optional[str]]:
        return {name: self._read(name) for name in names}

    async def delete_many(self, names: Iterable[str]) -> None:
        for name in names:
            self._data.pop(name, None)

    def _put(self, name: str, value: str, ttl_sec: int) -> None:
        # same as a cookie written with a past expiry
        if ttl_sec <= 0:
            self._data.pop(name, None)
            return
        self._data[name] = (value, self.clock() + ttl_sec)

    def _read(self, name: str) -> Optional[str]:
        item = self._data.get(name)
        if item is None:
            return None
        value, expires_at = item
        if self.clock() >= expires_at:
            del self._data[name]
            return None
        return value


def build_store(cfg: Settings) -> CredentialStore:
    backend = (cfg.STORE_BACKEND or "").lower()
    if backend == "memory":
        return MemoryCredentialStore()
    if backend == "redis":
        from .redis_repo import RedisCredentialStore

        return RedisCredentialStore(cfg.REDIS_HOST, cfg.REDIS_PORT, cfg.REDIS_DB, prefix=cfg.STORE_KEY_PREFIX)
    raise ValueError(f"unknown STORE_BACKEND: {cfg.STORE_BACKEND!r}")
