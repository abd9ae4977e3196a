from __future__ import annotations

from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from app.blogsync.modules.webhook_logs.models import WebhookLog
from app.blogsync.utils import dump_json, load_json


def record_webhook_call(
    s: Session,
    *,
    webhook_type: str,
    request_method: str,
    request_headers: dict[str, str],
    request_body: Any,
    response_status: int,
    response_body: Any,
    error_message: str | None,
    ip_address: str | None,
    user_agent: str | None,
    processing_time_ms: int,
) -> WebhookLog:
    row = WebhookLog(
        webhook_type=webhook_type,
        request_method=request_method,
        request_headers=dump_json(request_headers),
        request_body=dump_json(request_body),
        response_status=response_status,
        response_body=dump_json(response_body),
        error_message=error_message,
        ip_address=ip_address,
        user_agent=user_agent,
        processing_time_ms=processing_time_ms,
    )
    s.add(row)
    return row


def serialize_log(row: WebhookLog) -> dict[str, Any]:
    return {
        "id": row.id,
        "webhook_type": row.webhook_type,
        "request_method": row.request_method,
        "request_headers": load_json(row.request_headers),
        "request_body": load_json(row.request_body),
        "response_status": row.response_status,
        "response_body": load_json(row.response_body),
        "error_message": row.error_message,
        "ip_address": row.ip_address,
        "user_agent": row.user_agent,
        "processing_time_ms": row.processing_time_ms,
        "created_at": row.created_at.isoformat() if row.created_at else None,
    }


def list_logs(
    s: Session,
    *,
    webhook_type: str,
    limit: int,
    offset: int,
    status: int | None = None,
) -> tuple[list[WebhookLog], int]:
    """Newest-first page of logs plus the total count for the same filter."""
    filters = [WebhookLog.webhook_type == webhook_type]
    if status is not None:
        filters.append(WebhookLog.response_status == status)

    rows = (
        s.execute(
            select(WebhookLog)
            .where(*filters)
            .order_by(WebhookLog.created_at.desc(), WebhookLog.id.desc())
            .limit(limit)
            .offset(offset)
        )
        .scalars()
        .all()
    )
    total = s.execute(select(func.count(WebhookLog.id)).where(*filters)).scalar() or 0
    return list(rows), int(total)


def status_breakdown(s: Session, *, webhook_type: str) -> dict[str, int]:
    rows = s.execute(
        select(WebhookLog.response_status, func.count(WebhookLog.id))
        .where(WebhookLog.webhook_type == webhook_type)
        .group_by(WebhookLog.response_status)
        .order_by(WebhookLog.response_status)
    ).all()
    return {str(code): int(cnt) for code, cnt in rows}


def prune_logs(s: Session, *, webhook_type: str, keep: int) -> int:
    """Delete all but the newest `keep` logs of one type. Returns rows deleted."""
    keep_ids = (
        select(WebhookLog.id)
        .where(WebhookLog.webhook_type == webhook_type)
        .order_by(WebhookLog.created_at.desc(), WebhookLog.id.desc())
        .limit(max(keep, 0))
    )
    # MySQL rejects LIMIT inside a NOT IN subquery on the same table.
    keep_set = list(s.execute(keep_ids).scalars().all())
    stmt = delete(WebhookLog).where(WebhookLog.webhook_type == webhook_type)
    if keep_set:
        stmt = stmt.where(WebhookLog.id.not_in(keep_set))
    res = s.execute(stmt.execution_options(synchronize_session=False))
    return int(res.rowcount or 0)
