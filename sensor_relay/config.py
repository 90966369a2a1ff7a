"""
Relay configuration.

Plain module constants come from the environment (read once at import);
structured settings are pydantic models so bad values fail loudly at startup.
"""

import math
import os
from typing import Iterator, Optional

from pydantic import BaseModel, Field, model_validator

# ---- Server ----
HOST = os.getenv("RELAY_HOST", "0.0.0.0")
PORT = int(os.getenv("RELAY_PORT", "8080"))
DEBUG = os.getenv("RELAY_DEBUG", "false").lower() == "true"
LOG_LEVEL = os.getenv("RELAY_LOG_LEVEL", "INFO").upper()

# ---- Broadcast ----
SEND_TIMEOUT = float(os.getenv("RELAY_SEND_TIMEOUT", "5.0"))  # seconds per peer send
SOURCE_NAME = os.getenv("RELAY_SOURCE_NAME", "arduino")

# ---- Producers ----
RELAY_URL = os.getenv("RELAY_URL", f"ws://localhost:{PORT}")
SERIAL_PORT = os.getenv("RELAY_SERIAL_PORT", "/dev/ttyACM0")
SERIAL_BAUD = int(os.getenv("RELAY_SERIAL_BAUD", "9600"))


class ReconnectPolicy(BaseModel):
    """
    Bounded exponential backoff for producer reconnects.

    max_attempts=None retries forever; otherwise the producer gives up after
    that many consecutive failed connection attempts.
    """
    initial_delay: float = Field(1.0, gt=0)
    max_delay: float = Field(30.0, gt=0)
    max_attempts: Optional[int] = Field(None, ge=1)
    multiplier: float = Field(2.0, ge=1.0)

    @model_validator(mode="after")
    def _check_bounds(self):
        if self.max_delay < self.initial_delay:
            raise ValueError("max_delay must be >= initial_delay")
        return self

    def delay_for(self, attempt: int) -> float:
        """Delay before retry number `attempt` (1-based)."""
        if attempt < 1:
            raise ValueError("attempt numbers start at 1")
        exponent = attempt - 1
        if self.multiplier > 1.0:
            # past this exponent the delay is already capped
            exponent = min(exponent, math.ceil(math.log(self.max_delay / self.initial_delay, self.multiplier)))
        return min(self.max_delay, self.initial_delay * self.multiplier ** exponent)

    def exhausted(self, attempt: int) -> bool:
        return self.max_attempts is not None and attempt > self.max_attempts

    def delays(self) -> Iterator[float]:
        attempt = 1
        while not self.exhausted(attempt):
            yield self.delay_for(attempt)
            attempt += 1
