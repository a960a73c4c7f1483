from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from .errors import RefreshRejected, RefreshTransientFailure
from .models import CredentialPair

logger = logging.getLogger(__name__)

# 4xx that say nothing about the refresh credential itself
RETRYABLE_CLIENT_STATUSES = {408, 429}


class AuthClient:
    def __init__(
        self,
        base_url: str,
        timeout_sec: float = 8.0,
        api_prefix: str = "/v1",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or "").rstrip("/")
        prefix = (api_prefix or "").strip("/")
        self.api_prefix = f"/{prefix}" if prefix else ""
        self.timeout = timeout_sec
        self.transport = transport

    def _url(self, path: str) -> str:
        if not path.startswith("/"):
            raise ValueError("path must start with a forward slash")
        return f"{self.base_url}{self.api_prefix}{path}"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    async def refresh(self, refresh_token: str) -> CredentialPair:
        if not self.base_url:
            raise RefreshTransientFailure("auth base url is not configured")
        try:
            async with self._client() as client:
                r = await client.post(
                    self._url("/auth/refresh"),
                    headers={
                        "Content-Type": "application/json",
                        "Authorization": f"Bearer {refresh_token}",
                    },
                )
        except httpx.HTTPError as e:
            raise RefreshTransientFailure(f"refresh request failed: {e!r}") from e

        if 400 <= r.status_code < 500 and r.status_code not in RETRYABLE_CLIENT_STATUSES:
            raise RefreshRejected(r.status_code, r.text or None)
        if not r.is_success:
            raise RefreshTransientFailure(f"refresh returned status {r.status_code}")

        try:
            return CredentialPair.model_validate(r.json())
        except (ValueError, ValidationError) as e:
            raise RefreshTransientFailure(f"refresh returned an unreadable body: {e}") from e

    async def safe_login(self, email: str, password: str) -> Optional[CredentialPair]:
        if not self.base_url:
            return None
        try:
            async with self._client() as client:
                r = await client.post(self._url("/auth/login"), json={"email": email, "password": password})
                r.raise_for_status()
                return CredentialPair.model_validate(r.json())
        except Exception as e:
            logger.warning("login failed for %s: %s", email, e)
            return None

    async def safe_register(self, email: str, password: str) -> Optional[CredentialPair]:
        if not self.base_url:
            return None
        try:
            async with self._client() as client:
                r = await client.post(self._url("/auth/register"), json={"email": email, "password": password})
                r.raise_for_status()
                body: Any = r.json() if r.content else None
        except Exception as e:
            logger.warning("registration failed for %s: %s", email, e)
            return None

        if isinstance(body, dict):
            try:
                return CredentialPair.model_validate(body)
            except ValidationError:
                pass
        # account created without a session, sign in with the same credentials
        return await self.safe_login(email, password)

    async def safe_logout(self, access_token: str) -> bool:
        if not self.base_url:
            return False
        try:
            async with self._client() as client:
                r = await client.post(
                    self._url("/auth/logout"),
                    headers={"Authorization": f"Bearer {access_token}"},
                )
                return r.status_code < 400
        except Exception as e:
            logger.warning("logout request failed: %s", e)
            return False
