class RelayError(Exception):
    """Base class for relay errors."""


class CategoryAlreadyAssigned(RelayError):
    def __init__(self, connection_id: str, current: str, requested: str):
        super().__init__(
            f"Connection {connection_id} is already classified as {current}; "
            f"refusing to reclassify as {requested}"
        )
        self.connection_id = connection_id
        self.current = current
        self.requested = requested
