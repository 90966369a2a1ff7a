import asyncio
import logging
from typing import Optional

from . import config
from .classifier import Payload
from .models import Connection
from .registry import ConnectionRegistry

logger = logging.getLogger(__name__)


class BroadcastHub:
    def __init__(self, registry: ConnectionRegistry, *, send_timeout: Optional[float] = None):
        self.registry = registry
        self.send_timeout = config.SEND_TIMEOUT if send_timeout is None else send_timeout

    async def _send(self, peer: Connection, message: Payload) -> bool:
        try:
            if isinstance(message, bytes):
                coro = peer.transport.send_bytes(message)
            else:
                coro = peer.transport.send_text(message)
            await asyncio.wait_for(coro, timeout=self.send_timeout)
            return True
        except asyncio.TimeoutError:
            logger.warning(f"Send to {peer.id} timed out after {self.send_timeout}s")
        except Exception as e:
            # peer is likely mid-close; its own handler will clean it up
            logger.warning(f"Send to {peer.id} failed: {e!r}")
        return False

    async def broadcast(self, message: Payload, origin_id: str) -> int:
        """Send `message` to every open connection except the origin. Returns the number of successful deliveries."""
        peers = [c for c in self.registry.live_set() if c.id != origin_id]
        if not peers:
            return 0
        results = await asyncio.gather(*(self._send(p, message) for p in peers))
        delivered = sum(results)
        logger.debug(f"Broadcast from {origin_id}: {delivered}/{len(peers)} delivered")
        return delivered
