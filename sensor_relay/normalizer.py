import json
import logging
import math
from datetime import datetime, timezone
from typing import Optional

from . import config
from .classifier import Payload, parse_numeric
from .models import Category

logger = logging.getLogger(__name__)


def iso_timestamp(now: Optional[datetime] = None) -> str:
    """UTC ISO-8601 with millisecond precision and a Z suffix, e.g. 2024-01-01T12:00:00.123Z"""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def reading_envelope(value: float, *, now: Optional[datetime] = None,
                     source: Optional[str] = None) -> str:
    return json.dumps({
        "value": value,
        "timestamp": iso_timestamp(now),
        "source": source or config.SOURCE_NAME,
    }, separators=(",", ":"), allow_nan=False)


def normalize(category: Category, payload: Payload, *, now: Optional[datetime] = None) -> Payload:
    """
    Turn a raw inbound payload into what gets broadcast.

    Numeric clients get their reading wrapped into the envelope; everything
    else goes out byte-for-byte as received.
    """
    if category is not Category.NUMERIC_CLIENT:
        return payload

    value = parse_numeric(payload)
    if value is None:
        # classified numeric on first contact but this one isn't a number; forward as-is
        logger.debug(f"Numeric client sent non-numeric payload, forwarding raw: {payload!r}")
        return payload
    if not math.isfinite(value):
        logger.debug(f"Numeric reading overflows a float, forwarding raw: {payload!r}")
        return payload
    return reading_envelope(value, now=now)
