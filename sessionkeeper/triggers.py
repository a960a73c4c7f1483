from __future__ import annotations

import asyncio
import logging

from .models import SessionReason
from .service import SessionManager

logger = logging.getLogger(__name__)


async def tick_loop(manager: SessionManager, interval_sec: float) -> None:
    """Keepalive trigger: checks the session every ``interval_sec`` seconds.

    Shares the single in-flight refresh with focus and pre-request triggers.
    """
    while True:
        try:
            result = await manager.check()
            if result.reason in (SessionReason.TRANSIENT, SessionReason.STORE_UNAVAILABLE):
                logger.warning("keepalive: session not usable (%s), retrying next tick", result.reason.value)
            elif result.reason == SessionReason.REJECTED:
                logger.info("keepalive: session ended by server")
        except Exception as e:
            logger.warning(f"tick error: {e}")

        await asyncio.sleep(interval_sec)
