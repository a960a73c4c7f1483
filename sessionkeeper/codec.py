"""Offline reading of the access credential's ``exp`` claim.

Only the claims are read. Signatures are left to the server.
"""
from __future__ import annotations

import math
import re
import time
from typing import Optional, Union

import jwt

from .errors import MalformedCredential

# three non-empty base64url segments, nothing else
_STRUCTURE = re.compile(r"[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+")

Number = Union[int, float]


def decode_expiry(access_token: str) -> Number:
    if not isinstance(access_token, str):
        raise MalformedCredential("credential is not a string")
    if not _STRUCTURE.fullmatch(access_token):
        raise MalformedCredential("expected three base64url segments")

    try:
        payload = jwt.decode(access_token, options={"verify_signature": False})
    except jwt.InvalidTokenError as e:
        raise MalformedCredential(f"unreadable credential: {e}") from e

    if "exp" not in payload:
        raise MalformedCredential("payload has no exp claim")

    exp = payload["exp"]
    # bool is an int subclass
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        raise MalformedCredential("exp claim is not numeric")
    if isinstance(exp, float) and not math.isfinite(exp):
        raise MalformedCredential("exp claim is not finite")
    return exp


def is_expired(access_token: Optional[str], now: Optional[float] = None, leeway: int = 0) -> bool:
    if not access_token:
        return True
    try:
        exp = decode_expiry(access_token)
    except MalformedCredential:
        return True
    if now is None:
        now = time.time()
    return exp - leeway < math.floor(now)


def seconds_left(access_token: Optional[str], now: Optional[float] = None) -> int:
    if not access_token:
        return 0
    try:
        exp = decode_expiry(access_token)
    except MalformedCredential:
        return 0
    if now is None:
        now = time.time()
    return max(0, int(exp - now))
