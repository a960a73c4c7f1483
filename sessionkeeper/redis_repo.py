from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from .errors import StoreUnavailable
from .store import Entry

logger = logging.getLogger(__name__)


class RedisCredentialStore:
    def __init__(self, host: str, port: int, db: int = 0, prefix: str = "session:", client: Optional[redis.Redis] = None):
        self.r = client or redis.Redis(host=host, port=port, db=db, decode_responses=True)
        self.prefix = prefix

    def _key(self, name: str) -> str:
        return f"{self.prefix}{name}"

    async def set(self, name: str, value: str, ttl_sec: int) -> None:
        await self.set_many({name: (value, ttl_sec)})

    async def get(self, name: str) -> Optional[str]:
        values = await self.get_many([name])
        return values[name]

    async def delete(self, name: str) -> None:
        await self.delete_many([name])

    async def set_many(self, entries: Dict[str, Entry]) -> None:
        if not entries:
            return
        try:
            # MULTI/EXEC: readers see either the old pair or the new one
            async with self.r.pipeline(transaction=True) as pipe:
                for name, (value, ttl_sec) in entries.items():
                    if ttl_sec <= 0:
                        pipe.delete(self._key(name))
                    else:
                        pipe.set(self._key(name), value, ex=ttl_sec)
                await pipe.execute()
        except (RedisError, OSError) as e:
            logger.warning("redis write failed: %s", e)
            raise StoreUnavailable(str(e)) from e

    async def get_many(self, names: Iterable[str]) -> Dict[str, Optional[str]]:
        names = list(names)
        if not names:
            return {}
        try:
            raw = await self.r.mget([self._key(n) for n in names])
        except (RedisError, OSError) as e:
            logger.warning("redis read failed: %s", e)
            raise StoreUnavailable(str(e)) from e
        return {name: (value or None) for name, value in zip(names, raw)}

    async def delete_many(self, names: Iterable[str]) -> None:
        keys = [self._key(n) for n in names]
        if not keys:
            return
        try:
            await self.r.delete(*keys)
        except (RedisError, OSError) as e:
            logger.warning("redis delete failed: %s", e)
            raise StoreUnavailable(str(e)) from e

    async def close(self) -> None:
        await self.r.aclose()
