"""
Relay core: ties the registry, classifier, normalizer and hub together.

Transport-agnostic. The WebSocket endpoint in server.py (or any other
transport) drives it through four calls:

    conn = relay.connect(ws, remote="1.2.3.4:5555")   # before accept
    relay.open(conn)                                  # after accept
    await relay.handle_message(conn, raw)             # per inbound message
    relay.disconnect(conn) / relay.fail(conn, exc)    # on close / error
"""

import logging
from typing import Any, Optional

from .classifier import Payload, classify
from .hub import BroadcastHub
from .models import Connection, ConnectionState
from .normalizer import normalize
from .registry import ConnectionRegistry

logger = logging.getLogger(__name__)


class Relay:
    def __init__(self, registry: Optional[ConnectionRegistry] = None,
                 hub: Optional[BroadcastHub] = None, *, send_timeout: Optional[float] = None):
        self.registry = registry or ConnectionRegistry()
        self.hub = hub or BroadcastHub(self.registry, send_timeout=send_timeout)

    # ------------------ lifecycle ------------------

    def connect(self, transport: Any, *, remote: Optional[str] = None,
                connection_id: Optional[str] = None) -> Connection:
        conn = Connection(transport, connection_id=connection_id, remote=remote)
        return self.registry.add(conn)

    def open(self, conn: Connection) -> bool:
        if conn.transition(ConnectionState.OPEN):
            logger.info(f"Client connected: {conn.id} ({conn.remote or 'unknown address'})")
            return True
        return False

    def _release(self, conn: Connection):
        conn.transition(ConnectionState.CLOSED)
        self.registry.remove(conn.id)

    def disconnect(self, conn: Connection):
        """Orderly close. Safe to call any number of times."""
        if conn.state is ConnectionState.CLOSED:
            return
        conn.transition(ConnectionState.CLOSING)
        self._release(conn)
        logger.info(f"Client disconnected: {conn.id} (type: {conn.category.value})")

    def fail(self, conn: Connection, error: BaseException):
        """Abrupt error/disconnect: open -> closed directly."""
        if conn.state is ConnectionState.CLOSED:
            return
        self._release(conn)
        logger.error(f"WebSocket error for {conn.id}: {error!r}")

    # ------------------ messages ------------------

    async def handle_message(self, conn: Connection, raw: Payload) -> int:
        """
        Classify (first message only), normalize and broadcast one inbound
        message. Returns the number of peers it reached.
        """
        async with conn.lock:
            if not conn.is_open:
                logger.debug(f"Dropping message from {conn.id} in state {conn.state.value}")
                return 0

            logger.debug(f"Received from {conn.id}: {raw!r}")
            if not conn.is_classified:
                conn.assign_category(classify(raw))
                logger.info(f"Client type identified: {conn.id} -> {conn.category.value}")

            message = normalize(conn.category, raw)
            return await self.hub.broadcast(message, conn.id)
