"""
SQL utilities for consistent handling of aggregate results.

SQLModel/SQLAlchemy may return COUNT/MAX results as a bare value or as a 1-tuple/Row.
"""
from typing import Any, Optional


def scalar_int(x: Any) -> int:
    """Convert COUNT result to int. Handles int or 1-tuple/Row."""
    try:
        return int(x[0])
    except TypeError:
        return int(x)


def scalar_optional_int(x: Any) -> Optional[int]:
    """Convert MAX/MIN result to int, keeping None for empty aggregates."""
    if x is None:
        return None
    try:
        value = x[0]
    except TypeError:
        value = x
    return None if value is None else int(value)
