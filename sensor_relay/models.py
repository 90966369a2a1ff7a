import asyncio
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from .errors import CategoryAlreadyAssigned


class Category(str, Enum):
    UNCLASSIFIED = "unclassified"
    JSON_CLIENT = "json_client"
    NUMERIC_CLIENT = "numeric_client"
    TEXT_CLIENT = "text_client"


class ConnectionState(str, Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


# forward-only ordering; a transition must move strictly up this list
_STATE_RANK = {
    ConnectionState.CONNECTING: 0,
    ConnectionState.OPEN: 1,
    ConnectionState.CLOSING: 2,
    ConnectionState.CLOSED: 3,
}


class Connection:
    """
    Relay-side record for one accepted WebSocket.

    The transport handle is only used for sending; classification and
    lifecycle state live here so nothing is bolted onto the socket object.
    `transport` must expose async `send_text(str)` and `send_bytes(bytes)`.
    """

    def __init__(self, transport: Any, *, connection_id: Optional[str] = None,
                 remote: Optional[str] = None):
        self.id = connection_id or uuid.uuid4().hex
        self.transport = transport
        self.remote = remote
        self.connected_at = datetime.now(timezone.utc)
        self._state = ConnectionState.CONNECTING
        self._category = Category.UNCLASSIFIED
        # serializes classify -> normalize -> broadcast per connection
        self.lock = asyncio.Lock()

    def __repr__(self):
        return f"Connection(id={self.id!r}, state={self._state.value}, category={self._category.value})"

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def category(self) -> Category:
        return self._category

    @property
    def is_open(self) -> bool:
        return self._state is ConnectionState.OPEN

    @property
    def is_classified(self) -> bool:
        return self._category is not Category.UNCLASSIFIED

    def assign_category(self, category: Category):
        if category is Category.UNCLASSIFIED:
            raise ValueError("cannot assign the unclassified category")
        if self.is_classified:
            raise CategoryAlreadyAssigned(self.id, self._category.value, category.value)
        self._category = category

    def transition(self, new_state: ConnectionState) -> bool:
        """Move to `new_state`. Returns False (and changes nothing) for backward or repeated moves."""
        if _STATE_RANK[new_state] <= _STATE_RANK[self._state]:
            return False
        self._state = new_state
        return True

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "state": self._state.value,
            "category": self._category.value,
            "connected_at": self.connected_at.isoformat(),
            "remote": self.remote,
        }
