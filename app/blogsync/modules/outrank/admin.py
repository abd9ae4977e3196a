from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from app.blogsync.admin_guard import ADMIN_ACTOR, require_admin_request
from app.blogsync.audit import record_event
from app.blogsync.db import db_session
from app.blogsync.modules.outrank.config_service import config_payload, get_or_create_config, update_config
from app.blogsync.modules.richtext.markdown import markdown_to_rich_text
from app.blogsync.modules.richtext.render import render_html

bp = Blueprint("outrank_admin", __name__)


def _env_secret() -> str:
    return current_app.config.get("OUTRANK_WEBHOOK_SECRET") or ""


def _parse_bool(value) -> bool | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        v = value.strip().lower()
        if v in ("true", "1", "yes", "on"):
            return True
        if v in ("false", "0", "no", "off"):
            return False
    raise ValueError(f"auto_publish must be a boolean (got {value!r})")


@bp.get("/blog/outrank-config")
@require_admin_request
def outrank_config_get():
    s = db_session()
    try:
        cfg = get_or_create_config(s)
        s.commit()
        return jsonify(config_payload(cfg, _env_secret()))
    except Exception:
        s.rollback()
        current_app.logger.exception("Error fetching Outrank config")
        return jsonify({"error": "Failed to fetch Outrank configuration"}), 500


@bp.post("/blog/outrank-config")
@require_admin_request
def outrank_config_save():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Request body must be a JSON object"}), 400

    secret = data.get("webhook_secret")
    if secret is not None and not isinstance(secret, str):
        return jsonify({"error": "webhook_secret must be a string"}), 400
    try:
        auto_publish = _parse_bool(data.get("auto_publish"))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    s = db_session()
    try:
        cfg = update_config(s, webhook_secret=secret, auto_publish=auto_publish)
        record_event(
            s,
            actor=ADMIN_ACTOR,
            action="outrank_config.update",
            entity_type="OutrankConfig",
            entity_id=str(cfg.id),
            # never store the secret itself in the audit trail
            metadata={"secret_changed": secret is not None, "auto_publish": cfg.auto_publish},
        )
        s.commit()
    except Exception:
        s.rollback()
        current_app.logger.exception("Error saving Outrank config")
        return jsonify({"error": "Failed to save Outrank configuration"}), 500
    return jsonify({"success": True})


@bp.post("/blog/outrank-preview")
@require_admin_request
def outrank_preview():
    """Convert Markdown exactly as the webhook would and return the document + HTML."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not isinstance(data.get("markdown"), str):
        return jsonify({"error": "Body must be a JSON object with a 'markdown' string"}), 400
    document = markdown_to_rich_text(data["markdown"], native_tables=bool(data.get("native_tables")))
    return jsonify({"document": document, "html": render_html(document)})
