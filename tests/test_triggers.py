"""Tests for the keepalive trigger loop."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from sessionkeeper.models import SessionCheck, SessionReason
from sessionkeeper.triggers import tick_loop


@pytest.mark.asyncio
async def test_tick_checks_session_then_sleeps():
    manager = MagicMock()
    manager.check = AsyncMock(return_value=SessionCheck(None, SessionReason.TRANSIENT))

    with patch("sessionkeeper.triggers.asyncio.sleep", AsyncMock(side_effect=asyncio.CancelledError)) as sleep:
        with pytest.raises(asyncio.CancelledError):
            await tick_loop(manager, 30)

    manager.check.assert_awaited_once()
    sleep.assert_awaited_once_with(30)


@pytest.mark.asyncio
async def test_tick_survives_errors():
    manager = MagicMock()
    manager.check = AsyncMock(side_effect=[RuntimeError("boom"), SessionCheck(None, SessionReason.REJECTED)])
    sleeps = []

    async def fake_sleep(interval):
        sleeps.append(interval)
        if len(sleeps) == 2:
            raise asyncio.CancelledError

    with patch("sessionkeeper.triggers.asyncio.sleep", fake_sleep):
        with pytest.raises(asyncio.CancelledError):
            await tick_loop(manager, 5)

    assert manager.check.await_count == 2
    assert sleeps == [5, 5]
