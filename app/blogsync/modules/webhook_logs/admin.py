from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from app.blogsync.admin_guard import ADMIN_ACTOR, require_admin_request
from app.blogsync.audit import record_event
from app.blogsync.constants import WEBHOOK_LOG_PAGE_MAX, WEBHOOK_TYPE_OUTRANK
from app.blogsync.db import db_session
from app.blogsync.modules.webhook_logs.service import list_logs, prune_logs, serialize_log, status_breakdown
from app.blogsync.utils import parse_int_arg

bp = Blueprint("webhook_logs", __name__)


@bp.get("/webhook-logs")
@require_admin_request
def webhook_logs_list():
    try:
        limit = parse_int_arg(request.args.get("limit"), default=50, minimum=1, maximum=WEBHOOK_LOG_PAGE_MAX)
        offset = parse_int_arg(request.args.get("offset"), default=0)
        raw_status = (request.args.get("status") or "").strip()
        status = int(raw_status) if raw_status else None
    except ValueError:
        return jsonify({"error": "limit, offset and status must be integers"}), 400

    s = db_session()
    try:
        rows, total = list_logs(s, webhook_type=WEBHOOK_TYPE_OUTRANK, limit=limit, offset=offset, status=status)
        breakdown = status_breakdown(s, webhook_type=WEBHOOK_TYPE_OUTRANK)
    except Exception:
        current_app.logger.exception("Error fetching webhook logs")
        return jsonify({"error": "Failed to fetch webhook logs"}), 500

    return jsonify(
        {
            "logs": [serialize_log(r) for r in rows],
            "total": total,
            "statusBreakdown": breakdown,
        }
    )


@bp.delete("/webhook-logs")
@require_admin_request
def webhook_logs_prune():
    keep = int(current_app.config.get("WEBHOOK_LOG_RETENTION") or 1000)
    s = db_session()
    try:
        deleted = prune_logs(s, webhook_type=WEBHOOK_TYPE_OUTRANK, keep=keep)
        record_event(
            s,
            actor=ADMIN_ACTOR,
            action="webhook_logs.prune",
            entity_type="WebhookLog",
            metadata={"deleted": deleted, "kept": keep, "webhook_type": WEBHOOK_TYPE_OUTRANK},
        )
        s.commit()
    except Exception:
        s.rollback()
        current_app.logger.exception("Error deleting webhook logs")
        return jsonify({"error": "Failed to delete webhook logs"}), 500

    current_app.logger.info("Pruned %s webhook logs (kept newest %s)", deleted, keep)
    return jsonify({"success": True, "message": "Old logs deleted successfully", "deleted": deleted})
