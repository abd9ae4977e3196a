from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any


def utcnow() -> datetime:
    """Naive UTC timestamp (DB columns are timezone=False)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def safe_text(v: Any) -> str:
    """Safely convert any value to stripped string."""
    if v is None:
        return ""
    return str(v).strip()


def dump_json(value: Any) -> str | None:
    if value is None:
        return None
    return json.dumps(value, sort_keys=True, default=str)


def load_json(raw: str | None) -> Any:
    """Decode a stored JSON column; undecodable text is returned as-is."""
    if raw is None or raw == "":
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def parse_int_arg(raw: str | None, *, default: int, minimum: int = 0, maximum: int | None = None) -> int:
    """
    Parse an integer query arg. Raises ValueError on non-integers; clamps to range.
    """
    if raw is None or raw.strip() == "":
        return default
    value = int(raw.strip())
    if value < minimum:
        value = minimum
    if maximum is not None and value > maximum:
        value = maximum
    return value
