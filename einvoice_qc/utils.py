"""
Helpers for reading loosely-typed invoice dicts.
"""

import math
import re
from datetime import date
from typing import Any, Optional


def as_number(value: Any) -> Optional[float]:
    """Return value as a float, or None if it is not numeric."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    if isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def as_date(value: Any) -> Optional[date]:
    """Parse a YYYY-MM-DD string, returning None for anything else."""
    if not isinstance(value, str) or not re.fullmatch(r'[0-9]{4}-[0-9]{2}-[0-9]{2}', value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def error_key(message: str) -> str:
    """
    Reduce an error message to a stable key for aggregate counts.

    Positions are dropped so that the same rule failing on different lines
    counts under one key, e.g. 'Line 3: Quantity must be positive' and
    'Line 7: Quantity must be positive' both become 'Quantity must be positive'.
    """
    message = re.sub(r'^Line \d+: ', '', message)
    message = re.sub(r' at index \d+', '', message)
    return message.split(':')[0].strip()
