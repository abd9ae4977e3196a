from __future__ import annotations

import json
import time
from collections.abc import Callable

from flask import Blueprint, current_app, g, jsonify, request
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import RequestEntityTooLarge

from app.blogsync.constants import WEBHOOK_TYPE_OUTRANK
from app.blogsync.db import db_session, session_scope
from app.blogsync.modules.outrank.config_service import effective_secret, mark_synced
from app.blogsync.modules.outrank.contentful_client import ContentfulClient, client_from_config
from app.blogsync.modules.outrank.models import CONFIG_ROW_ID, OutrankConfig
from app.blogsync.modules.outrank.service import WebhookOutcome, client_ip, handle_webhook, redact_headers
from app.blogsync.modules.webhook_logs.service import record_webhook_call

bp = Blueprint("outrank_webhook", __name__)

# Non-JSON bodies are logged as text, capped.
RAW_BODY_LOG_CHARS = 10_000

PAYLOAD_TOO_LARGE = "Payload too large"


def cms_client_factory() -> Callable[[], ContentfulClient]:
    """Client installed in app.extensions["cms_client"] (tests) or one built from config."""
    app = current_app._get_current_object()  # type: ignore[attr-defined]
    installed = app.extensions.get("cms_client")
    if installed is not None:
        return lambda: installed
    return lambda: client_from_config(app.config)


def _load_config_row() -> OutrankConfig | None:
    try:
        return db_session().get(OutrankConfig, CONFIG_ROW_ID)
    except SQLAlchemyError:
        current_app.logger.exception("Could not read outrank_config; using environment settings")
        db_session().rollback()
        return None


@bp.post("/outrank-webhook")
def outrank_webhook():
    current_app.logger.info("Outrank webhook received (request_id=%s)", getattr(g, "request_id", None))
    started = time.monotonic()
    app = current_app._get_current_object()  # type: ignore[attr-defined]

    payload = None
    payload_is_json = False
    try:
        raw = request.get_data(cache=True, as_text=True)
    except RequestEntityTooLarge:
        raw = ""
        app.logger.warning(
            "Outrank webhook body too large (content_length=%s request_id=%s)",
            request.content_length,
            getattr(g, "request_id", None),
        )
        outcome = WebhookOutcome(status=413, body={"error": PAYLOAD_TOO_LARGE}, error_message=PAYLOAD_TOO_LARGE)
    else:
        try:
            payload = json.loads(raw)
            payload_is_json = True
        except ValueError:
            pass

        cfg = _load_config_row()
        outcome = handle_webhook(
            payload,
            payload_is_json=payload_is_json,
            authorization=request.headers.get("Authorization"),
            webhook_secret=effective_secret(cfg, app.config.get("OUTRANK_WEBHOOK_SECRET") or ""),
            management_token=app.config.get("CONTENTFUL_MANAGEMENT_TOKEN") or "",
            client_factory=cms_client_factory(),
            locale=app.config.get("CONTENTFUL_LOCALE") or "en-US",
            author_name=app.config.get("BLOG_AUTHOR_NAME") or "",
            auto_publish=bool(cfg.auto_publish) if cfg else True,
        )

    if outcome.result is not None:
        s = db_session()
        try:
            mark_synced(s, outcome.result.processed)
            s.commit()
        except SQLAlchemyError:
            s.rollback()
            app.logger.exception("Failed to update outrank_config sync counters")

    elapsed_ms = int((time.monotonic() - started) * 1000)
    try:
        with session_scope(app) as log_s:
            record_webhook_call(
                log_s,
                webhook_type=WEBHOOK_TYPE_OUTRANK,
                request_method=request.method,
                request_headers=redact_headers(request.headers),
                request_body=payload if payload_is_json else raw[:RAW_BODY_LOG_CHARS],
                response_status=outcome.status,
                response_body=outcome.body,
                error_message=outcome.error_message,
                ip_address=client_ip(request.headers),
                user_agent=request.headers.get("User-Agent") or "unknown",
                processing_time_ms=elapsed_ms,
            )
    except SQLAlchemyError:
        app.logger.exception("Failed to log webhook call (request_id=%s)", getattr(g, "request_id", None))

    return jsonify(outcome.body), outcome.status
