import asyncio
import logging
from typing import Awaitable, Callable, Optional

import websockets
from websockets.exceptions import WebSocketException

from .config import ReconnectPolicy

logger = logging.getLogger(__name__)

Session = Callable[[object, asyncio.Event], Awaitable[None]]


async def _sleep_unless_stopped(stop: asyncio.Event, delay: float):
    try:
        await asyncio.wait_for(stop.wait(), timeout=delay)
    except asyncio.TimeoutError:
        pass


async def run_with_reconnect(url: str, session: Session, policy: ReconnectPolicy,
                             stop: Optional[asyncio.Event] = None, *, connect=None) -> bool:
    """
    Keep a producer session attached to the relay.

    `session(ws, stop)` runs for as long as the socket lives. When the
    connection drops (or cannot be opened) we back off per `policy` and try
    again; the attempt counter resets after every successful connect.
    Returns True when stopped on request, False when retries ran out.
    """
    stop = stop or asyncio.Event()
    connect = connect or websockets.connect
    attempt = 0
    while not stop.is_set():
        try:
            logger.info(f"📡 Connecting to {url}...")
            async with connect(url) as ws:
                attempt = 0
                logger.info("✅ Connected to relay")
                await session(ws, stop)
        except (OSError, asyncio.TimeoutError, WebSocketException) as e:
            logger.warning(f"❌ Connection lost: {e!r}")

        if stop.is_set():
            break

        attempt += 1
        if policy.exhausted(attempt):
            logger.error(f"🛑 Giving up after {policy.max_attempts} reconnect attempts")
            return False
        delay = policy.delay_for(attempt)
        logger.info(f"🔄 Reconnecting in {delay:.1f}s (attempt {attempt})")
        await _sleep_unless_stopped(stop, delay)
    return True
