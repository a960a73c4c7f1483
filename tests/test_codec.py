"""Tests for offline expiry decoding."""

import base64
import json
import time

import jwt
import pytest

from sessionkeeper.codec import decode_expiry, is_expired, seconds_left
from sessionkeeper.errors import MalformedCredential


def _make_token(exp_offset=900, **claims):
    payload = {"sub": "1", "type": "access", **claims}
    if exp_offset is not None:
        payload["exp"] = int(time.time()) + exp_offset
    return jwt.encode(payload, "test-secret", algorithm="HS256")


def _raw_token(payload_bytes):
    seg = base64.urlsafe_b64encode(payload_bytes).decode().rstrip("=")
    return f"eyJhbGciOiJIUzI1NiJ9.{seg}.c2ln"


class TestDecodeExpiry:
    def test_reads_exp_from_signed_token(self):
        token = jwt.encode({"exp": 1700000000}, "test-secret", algorithm="HS256")
        assert decode_expiry(token) == 1700000000

    def test_header_that_is_not_json_is_malformed(self):
        # fail-closed: such a credential reads as expired and gets refreshed
        with pytest.raises(MalformedCredential):
            decode_expiry("A.eyJleHAiOjB9.sig")
        assert is_expired("A.eyJleHAiOjB9.sig")

    def test_reads_exp_zero(self):
        assert decode_expiry(_raw_token(b'{"exp": 0}')) == 0

    @pytest.mark.parametrize(
        "token",
        [
            "A\n.eyJleHAiOjB9.sig\n",
            "eyJhbGciOiJIUzI1NiJ9.eyJleHAiOjB9.c2ln\n",
            " eyJhbGciOiJIUzI1NiJ9.eyJleHAiOjB9.c2ln",
            "eyJhbGciOiJIUzI1NiJ9.eyJl\nHAiOjB9.c2ln",
        ],
    )
    def test_rejects_embedded_whitespace(self, token):
        with pytest.raises(MalformedCredential):
            decode_expiry(token)

    def test_float_exp(self):
        assert decode_expiry(_raw_token(b'{"exp": 12.5}')) == 12.5

    @pytest.mark.parametrize(
        "token",
        [
            "",
            "abc",
            "a.b",
            "a.b.c.d",
            "a..c",
            "a.e30!.c",
            "a.eyJleHAiOjB9.",
        ],
    )
    def test_rejects_bad_structure(self, token):
        with pytest.raises(MalformedCredential):
            decode_expiry(token)

    def test_rejects_non_string(self):
        with pytest.raises(MalformedCredential):
            decode_expiry(None)

    def test_rejects_payload_that_is_not_json(self):
        with pytest.raises(MalformedCredential):
            decode_expiry(_raw_token(b"not json"))

    def test_rejects_payload_that_is_not_an_object(self):
        with pytest.raises(MalformedCredential):
            decode_expiry(_raw_token(b"[1, 2]"))

    def test_rejects_missing_exp(self):
        with pytest.raises(MalformedCredential, match="no exp"):
            decode_expiry(_make_token(exp_offset=None))

    @pytest.mark.parametrize("exp", ['"1700000000"', "true", "null", "{}"])
    def test_rejects_non_numeric_exp(self, exp):
        with pytest.raises(MalformedCredential):
            decode_expiry(_raw_token(f'{{"exp": {exp}}}'.encode()))

    def test_rejects_undecodable_payload(self):
        # a single base64 character can never decode
        with pytest.raises(MalformedCredential):
            decode_expiry("a.b.c")


class TestIsExpired:
    def test_future_exp_is_not_expired(self):
        assert not is_expired(_make_token(900))

    def test_past_exp_is_expired(self):
        assert is_expired(_make_token(-60))

    def test_exp_zero_is_expired(self):
        assert is_expired("A.eyJleHAiOjB9.sig")

    @pytest.mark.parametrize("token", [None, "", "garbage", "a.b.c", "A.e30.sig"])
    def test_missing_or_malformed_fails_closed(self, token):
        assert is_expired(token) is True

    def test_uses_supplied_clock(self):
        token = _raw_token(b'{"exp": 1000}')
        assert not is_expired(token, now=999.9)
        assert not is_expired(token, now=1000.5)
        assert is_expired(token, now=1001)

    def test_leeway_expires_early(self):
        token = _raw_token(b'{"exp": 1000}')
        assert not is_expired(token, now=950)
        assert is_expired(token, now=950, leeway=60)


def test_seconds_left():
    token = _raw_token(b'{"exp": 1000}')
    assert seconds_left(token, now=100) == 900
    assert seconds_left(token, now=2000) == 0
    assert seconds_left("garbage", now=0) == 0
    assert seconds_left(None) == 0
