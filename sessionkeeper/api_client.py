from __future__ import annotations

from typing import Any, Optional

import httpx

from .service import SessionManager


class AuthorizedClient:
    """HTTP helper that checks the session before every request."""

    def __init__(
        self,
        base_url: str,
        manager: SessionManager,
        timeout_sec: float = 8.0,
        api_prefix: str = "/v1",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or "").rstrip("/")
        prefix = (api_prefix or "").strip("/")
        self.api_prefix = f"/{prefix}" if prefix else ""
        self.manager = manager
        self.timeout = timeout_sec
        self.transport = transport

    def _headers(self, access: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {access}"}

    async def _request(self, method: str, path: str, params: Optional[dict] = None, json: Optional[Any] = None):
        if not path.startswith("/"):
            raise ValueError("path must start with a forward slash")

        pair = await self.manager.ensure_fresh()
        if pair is None:
            return 401, {"detail": "not authenticated"}

        url = f"{self.base_url}{self.api_prefix}{path}"
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            r = await client.request(method, url, headers=self._headers(pair.access_token), params=params, json=json)

        try:
            data = r.json()
        except ValueError:
            data = r.text
        return r.status_code, data

    async def get(self, path, params=None): return await self._request("GET", path, params=params)
    async def post(self, path, body=None): return await self._request("POST", path, json=body)
    async def put(self, path, body=None): return await self._request("PUT", path, json=body)
    async def patch(self, path, body=None): return await self._request("PATCH", path, json=body)
    async def delete(self, path): return await self._request("DELETE", path)
