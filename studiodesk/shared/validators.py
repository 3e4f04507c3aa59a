"""Shared validation utilities"""

import re
import uuid
from typing import Optional

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def validate_uuid(value: Optional[str]) -> bool:
    """Validate UUID format"""
    try:
        uuid.UUID(value)
        return True
    except (ValueError, AttributeError, TypeError):
        return False


def is_durable_id(value: Optional[str]) -> bool:
    """
    True when the identifier was issued by the data store.

    Records created while offline carry a client-side id (a timestamp) until they are
    saved; those never have dependent rows and must not be used in lookups.
    """
    return bool(value) and validate_uuid(value)


def normalize_time(value: Optional[str]) -> Optional[str]:
    """Trim 'HH:MM:SS' to 'HH:MM' and reject anything that is not a clock time"""
    if not value:
        return None
    trimmed = value.strip()[:5]
    if not TIME_PATTERN.match(trimmed):
        raise ValueError(f"Invalid time '{value}', expected HH:MM")
    return trimmed


def positive_amount(value: Optional[float]) -> float:
    """Coerce an optional monetary value, treating None and negatives as zero"""
    if not value or value < 0:
        return 0.0
    return round(float(value), 2)
