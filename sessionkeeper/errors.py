from __future__ import annotations

from typing import Optional


class SessionError(Exception):
    pass


class MalformedCredential(SessionError):
    """The access credential is not a three-segment token with a readable exp claim."""


class RefreshRejected(SessionError):
    """The server refused the refresh credential. Terminal for the session."""

    def __init__(self, status_code: int, detail: Optional[str] = None):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"refresh rejected with status {status_code}")


class RefreshTransientFailure(SessionError):
    """Network, timeout or server-side failure. The stored session stays intact."""


class StoreUnavailable(SessionError):
    pass
