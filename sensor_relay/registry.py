import logging
import threading
from typing import Dict, List, Optional

from .models import Connection, ConnectionState

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """
    Live connection bookkeeping, keyed by connection id.

    All reads and writes go through one lock so a broadcast snapshot never
    sees a half-applied add/remove. Snapshots are plain lists; callers send
    outside the lock.
    """

    def __init__(self):
        self._connections: Dict[str, Connection] = {}
        self._lock = threading.Lock()

    def __len__(self):
        with self._lock:
            return len(self._connections)

    def __contains__(self, connection_id: str):
        with self._lock:
            return connection_id in self._connections

    def add(self, connection: Connection) -> Connection:
        with self._lock:
            existing = self._connections.get(connection.id)
            if existing is not None:
                return existing
            self._connections[connection.id] = connection
            total = len(self._connections)
        logger.info(f"Client {connection.id} registered ({total} connected)")
        return connection

    def remove(self, connection_id: str) -> Optional[Connection]:
        """Drop a connection. Unknown or already removed ids are ignored."""
        with self._lock:
            connection = self._connections.pop(connection_id, None)
            total = len(self._connections)
        if connection is not None:
            logger.info(f"Client {connection_id} removed ({total} connected)")
        return connection

    def get(self, connection_id: str) -> Optional[Connection]:
        with self._lock:
            return self._connections.get(connection_id)

    def live_set(self) -> List[Connection]:
        with self._lock:
            return [c for c in self._connections.values() if c.state is ConnectionState.OPEN]

    def snapshot(self) -> List[Connection]:
        with self._lock:
            return list(self._connections.values())
