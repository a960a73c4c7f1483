from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Optional, Tuple

from .auth_client import AuthClient
from .codec import is_expired, seconds_left
from .errors import RefreshRejected, RefreshTransientFailure, StoreUnavailable
from .models import CredentialPair, SessionCheck, SessionReason, SessionState
from .store import CredentialStore

logger = logging.getLogger(__name__)

REFRESH_TTL_SEC = 7 * 24 * 60 * 60


class SessionManager:
    """Keeps one logical session usable.

    The store is the only place credentials live. The manager itself holds
    nothing between calls except the task of a refresh that is still in
    flight, which every concurrent caller shares.
    """

    def __init__(
        self,
        store: CredentialStore,
        auth_client: AuthClient,
        access_name: str = "jwt",
        refresh_name: str = "jwt_refresh",
        refresh_ttl_sec: int = REFRESH_TTL_SEC,
        leeway_sec: int = 0,
        token_type: str = "bearer",
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.auth = auth_client
        self.access_name = access_name
        self.refresh_name = refresh_name
        self.refresh_ttl = refresh_ttl_sec
        self.leeway = leeway_sec
        self.token_type = token_type
        self.clock = clock

        self._pending: Optional[asyncio.Task] = None
        # bumped by establish/terminate so a late refresh cannot overwrite them
        self._generation = 0

    # public surface

    async def ensure_fresh(self) -> Optional[CredentialPair]:
        return (await self.check()).credentials

    async def check(self) -> SessionCheck:
        if self._pending is not None:
            return await self._join(self._pending)

        try:
            access, refresh = await self._read()
        except StoreUnavailable as e:
            logger.warning("credential store unavailable: %s", e)
            return SessionCheck(None, SessionReason.STORE_UNAVAILABLE)

        if not refresh:
            return SessionCheck(None, SessionReason.ANONYMOUS)
        if access and not self._expired(access):
            return SessionCheck(self._pair(access, refresh), SessionReason.VALID)

        # another caller may have started a refresh while we were reading
        if self._pending is None:
            logger.info("access credential expired, refreshing session")
            task = asyncio.create_task(self._refresh(refresh, self._generation))
            task.add_done_callback(self._refresh_done)
            self._pending = task
        return await self._join(self._pending)

    async def establish(self, pair: CredentialPair) -> None:
        self._generation += 1
        await self._write(pair)
        logger.info("session established")

    async def terminate(self, notify_server: bool = False) -> None:
        self._generation += 1
        if notify_server:
            try:
                access = await self.store.get(self.access_name)
            except StoreUnavailable:
                access = None
            if access:
                await self.auth.safe_logout(access)
        await self.store.delete_many([self.access_name, self.refresh_name])
        logger.info("session terminated")

    async def current_state(self) -> SessionState:
        if self._pending is not None:
            return SessionState.REFRESHING
        access, refresh = await self._read()
        if not refresh:
            return SessionState.ANONYMOUS
        if access and not self._expired(access):
            return SessionState.VALID
        return SessionState.EXPIRED

    async def on_focus(self) -> SessionCheck:
        logger.debug("focus trigger")
        return await self.check()

    # refresh protocol

    async def _join(self, task: asyncio.Task) -> SessionCheck:
        # a cancelled caller must not cancel the refresh other callers wait on
        return await asyncio.shield(task)

    def _refresh_done(self, task: asyncio.Task) -> None:
        if self._pending is task:
            self._pending = None

    async def _refresh(self, refresh_token: str, generation: int) -> SessionCheck:
        try:
            pair = await self.auth.refresh(refresh_token)
        except RefreshRejected as e:
            if generation != self._generation:
                return await self._peek()
            return await self._on_rejected(refresh_token, e)
        except RefreshTransientFailure as e:
            logger.warning("refresh failed, keeping stored session: %s", e)
            return SessionCheck(None, SessionReason.TRANSIENT)
        except Exception:
            logger.exception("unexpected error during refresh")
            return SessionCheck(None, SessionReason.TRANSIENT)

        if generation != self._generation:
            logger.info("session changed during refresh, discarding refreshed pair")
            return await self._peek()

        try:
            await self._write(pair)
        except StoreUnavailable as e:
            logger.error("refreshed pair could not be stored: %s", e)
            return SessionCheck(pair, SessionReason.STORE_UNAVAILABLE)
        logger.info("session refreshed")
        return SessionCheck(pair, SessionReason.REFRESHED)

    async def _on_rejected(self, used_refresh: str, err: RefreshRejected) -> SessionCheck:
        try:
            access, refresh = await self._read()
            if refresh and refresh != used_refresh:
                logger.info("refresh credential was rotated by another writer, keeping it")
                if access and not self._expired(access):
                    return SessionCheck(self._pair(access, refresh), SessionReason.VALID)
                return SessionCheck(None, SessionReason.TRANSIENT)
            await self.store.delete_many([self.access_name, self.refresh_name])
        except StoreUnavailable as e:
            logger.warning("could not clear rejected session: %s", e)
            return SessionCheck(None, SessionReason.STORE_UNAVAILABLE)
        logger.info("refresh rejected with status %s, session cleared", err.status_code)
        return SessionCheck(None, SessionReason.REJECTED)

    async def _peek(self) -> SessionCheck:
        try:
            access, refresh = await self._read()
        except StoreUnavailable:
            return SessionCheck(None, SessionReason.STORE_UNAVAILABLE)
        if refresh and access and not self._expired(access):
            return SessionCheck(self._pair(access, refresh), SessionReason.VALID)
        return SessionCheck(None, SessionReason.ANONYMOUS)

    # store helpers

    async def _read(self) -> Tuple[Optional[str], Optional[str]]:
        values = await self.store.get_many([self.access_name, self.refresh_name])
        return values.get(self.access_name), values.get(self.refresh_name)

    async def _write(self, pair: CredentialPair) -> None:
        refresh_ttl = max(self.refresh_ttl, pair.expires_in)
        await self.store.set_many(
            {
                self.access_name: (pair.access_token, pair.expires_in),
                self.refresh_name: (pair.refresh_token, refresh_ttl),
            }
        )

    def _expired(self, access: str) -> bool:
        return is_expired(access, now=self.clock(), leeway=self.leeway)

    def _pair(self, access: str, refresh: str) -> CredentialPair:
        return CredentialPair(
            access_token=access,
            refresh_token=refresh,
            expires_in=max(1, seconds_left(access, now=self.clock())),
            token_type=self.token_type,
        )
