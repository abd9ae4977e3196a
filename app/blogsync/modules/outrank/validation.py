from __future__ import annotations

from datetime import datetime, timezone
from typing import Any


def parse_timestamp(value: Any) -> datetime:
    """
    Parse an ISO-8601 timestamp ("2024-01-15T10:30:00.123456Z", "+00:00" offsets,
    or a bare date). Naive values are taken as UTC. Raises ValueError.
    """
    if isinstance(value, datetime):
        dt = value
    else:
        raw = str(value or "").strip()
        if not raw:
            raise ValueError("empty timestamp")
        if raw.endswith(("Z", "z")):
            raw = raw[:-1] + "+00:00"
        dt = datetime.fromisoformat(raw)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_iso_timestamp(value: Any) -> str:
    """UTC, millisecond precision, trailing Z (microseconds are truncated)."""
    dt = parse_timestamp(value)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def validate_article(article: Any) -> list[str]:
    """Return the list of validation errors for one webhook article (empty = valid)."""
    if not isinstance(article, dict):
        return ["Article must be an object"]

    errors: list[str] = []
    title = article.get("title")
    if not title or not isinstance(title, str):
        errors.append("Missing or invalid title")
    slug = article.get("slug")
    if not slug or not isinstance(slug, str):
        errors.append("Missing or invalid slug")
    if not article.get("content_html") and not article.get("content_markdown"):
        errors.append("Missing content (neither HTML nor Markdown provided)")

    created_at = article.get("created_at")
    if not created_at:
        errors.append("Missing created_at timestamp")
    else:
        try:
            parse_timestamp(created_at)
        except (TypeError, ValueError, OverflowError):
            errors.append("Invalid created_at timestamp")
    return errors
