"""JSON serialization helper for log records."""

from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any


def json_serializer(obj: Any) -> Any:
    """
    ``default=`` hook for json.dumps used by the JSON log formatter.

    - datetime/date -> ISO 8601 string
    - Enum -> its value
    - Path -> string
    - set/frozenset -> sorted list
    - Everything else -> string
    """
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, (set, frozenset)):
        return sorted(str(item) for item in obj)
    return str(obj)


__all__ = ["json_serializer"]
