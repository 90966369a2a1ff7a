"""
First-message classification.

A bare number like "512" is also a valid JSON document, but it is what Arduino
sketches print over the wire, so the numeric grammar is checked before the JSON
parse. Anything that is neither is plain text.
"""

import json
import re
from typing import Optional, Union

from .models import Category

NUMERIC_RE = re.compile(r"[0-9]+(?:\.[0-9]+)?")

Payload = Union[str, bytes]


def _reject_constant(name: str):
    # json.loads accepts NaN/Infinity; standard JSON does not
    raise ValueError(f"non-standard JSON constant {name}")


def as_text(payload: Payload) -> Optional[str]:
    if isinstance(payload, bytes):
        try:
            return payload.decode("utf-8")
        except UnicodeDecodeError:
            return None
    return payload


def parse_numeric(payload: Payload) -> Optional[float]:
    """Float value of a bare numeric literal (surrounding whitespace allowed), else None."""
    text = as_text(payload)
    if text is None:
        return None
    # JS trim() also drops a leading byte-order mark
    text = text.strip().strip("\ufeff").strip()
    if not NUMERIC_RE.fullmatch(text):
        return None
    return float(text)


def is_json_document(text: str) -> bool:
    try:
        json.loads(text, parse_constant=_reject_constant)
    except (ValueError, RecursionError):
        return False
    return True


def classify(payload: Payload) -> Category:
    text = as_text(payload)
    if text is None:
        return Category.TEXT_CLIENT
    if parse_numeric(text) is not None:
        return Category.NUMERIC_CLIENT
    if is_json_document(text):
        return Category.JSON_CLIENT
    return Category.TEXT_CLIENT
