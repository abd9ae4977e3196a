import json

import pytest
from sqlalchemy.exc import SQLAlchemyError

from app.blogsync import create_app
from app.blogsync.db import session_scope
from app.blogsync.models import Base
from app.blogsync.modules.outrank import routes
from app.blogsync.modules.outrank.models import OutrankConfig
from app.blogsync.modules.webhook_logs.models import WebhookLog

SECRET = "outrank-test-secret-123"
ADMIN = {"X-Admin-Request": "true"}


@pytest.fixture()
def app(tmp_path, monkeypatch, fake_cms):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("OUTRANK_WEBHOOK_SECRET", SECRET)
    monkeypatch.setenv("CONTENTFUL_MANAGEMENT_TOKEN", "cfpat-test")
    monkeypatch.setenv("CONTENTFUL_SPACE_ID", "space1")

    app = create_app()
    Base.metadata.create_all(bind=app.extensions["sqlalchemy_engine"])
    app.extensions["cms_client"] = fake_cms
    return app


@pytest.fixture()
def client(app):
    return app.test_client()


def _payload(*articles):
    return {
        "event_type": "publish_articles",
        "timestamp": "2025-03-01T09:00:00Z",
        "data": {"articles": list(articles)},
    }


def _article(n=1, **overrides):
    a = {
        "id": f"art-{n}",
        "title": f"Post {n}",
        "slug": f"post-{n}",
        "content_markdown": "## Heading\n\n- one\n- two",
        "content_html": "<h2>Heading</h2>",
        "created_at": "2025-03-01T09:00:00Z",
    }
    a.update(overrides)
    return a


def _post(client, body, auth=f"Bearer {SECRET}", **headers):
    if auth is not None:
        headers["Authorization"] = auth
    data = body if isinstance(body, str) else json.dumps(body)
    return client.post("/api/outrank-webhook", data=data, content_type="application/json", headers=headers)


def _logs(app) -> list[WebhookLog]:
    with session_scope(app) as s:
        return s.query(WebhookLog).order_by(WebhookLog.id).all()


def test_webhook_ingests_and_logs(app, client, fake_cms):
    r = _post(client, _payload(_article(1), _article(2)), **{"X-Forwarded-For": "203.0.113.9", "User-Agent": "Outrank/1.0"})
    assert r.status_code == 200
    assert r.json["success"] is True
    assert r.json["message"] == "Processed 2 articles successfully"
    assert r.json["details"]["created"] == 2
    assert len(fake_cms.blog_posts()) == 2

    [log] = _logs(app)
    assert log.webhook_type == "outrank"
    assert log.request_method == "POST"
    assert log.response_status == 200
    assert log.error_message is None
    assert log.ip_address == "203.0.113.9"
    assert log.user_agent == "Outrank/1.0"
    assert log.processing_time_ms >= 0
    headers = json.loads(log.request_headers)
    assert headers["Authorization"] == f"Bearer {SECRET}"[:20] + "..."
    assert json.loads(log.request_body)["data"]["articles"][0]["slug"] == "post-1"
    assert json.loads(log.response_body)["details"]["processed"] == 2


def test_double_bearer_prefix_accepted(client):
    r = _post(client, _payload(_article()), auth=f"Bearer Bearer {SECRET}")
    assert r.status_code == 200


def test_unauthorized_is_logged(app, client, fake_cms):
    r = _post(client, _payload(_article()), auth="Bearer wrong")
    assert r.status_code == 401
    assert r.json == {"error": "Unauthorized - Invalid token or format"}
    assert fake_cms.blog_posts() == []

    [log] = _logs(app)
    assert log.response_status == 401
    assert log.error_message == "Unauthorized - Invalid token or format"
    assert log.ip_address == "unknown"


def test_missing_auth_header(client):
    r = _post(client, _payload(_article()), auth=None)
    assert r.status_code == 401


def test_invalid_json_body(app, client):
    r = _post(client, "{not json")
    assert r.status_code == 400
    assert r.json == {"error": "Invalid JSON body"}
    [log] = _logs(app)
    assert json.loads(log.request_body) == "{not json"


def test_invalid_payload_structure(client):
    r = _post(client, {"event_type": "x", "data": {}})
    assert r.status_code == 400
    assert r.json == {"error": "Invalid payload structure"}


def test_missing_secret(monkeypatch, tmp_path, fake_cms):
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'nosecret.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.delenv("OUTRANK_WEBHOOK_SECRET", raising=False)
    app = create_app()
    Base.metadata.create_all(bind=app.extensions["sqlalchemy_engine"])
    app.extensions["cms_client"] = fake_cms
    r = _post(app.test_client(), _payload(_article()))
    assert r.status_code == 500
    assert r.json == {"error": "Webhook secret not configured"}


def test_partial_failure_still_200(client, fake_cms):
    r = _post(client, _payload(_article(1, title=None), _article(2)))
    assert r.status_code == 200
    details = r.json["details"]
    assert (details["processed"], details["failed"]) == (1, 1)
    assert details["errors"][0] == {"article_id": "art-1", "errors": ["Missing or invalid title"]}


def test_sync_counters_updated(app, client):
    _post(client, _payload(_article(1), _article(2)))
    _post(client, _payload(_article(1)))
    with session_scope(app) as s:
        cfg = s.get(OutrankConfig, 1)
        assert cfg is not None
        assert cfg.total_synced == 3
        assert cfg.last_sync is not None


def test_existing_post_updated_on_redelivery(client, fake_cms):
    _post(client, _payload(_article(1)))
    r = _post(client, _payload(_article(1, title="Post 1 (revised)")))
    assert r.json["details"]["updated"] == 1
    [post] = fake_cms.blog_posts()
    assert post["fields"]["title"] == {"en-US": "Post 1 (revised)"}


def test_admin_secret_overrides_env(client):
    r = client.post("/api/admin/blog/outrank-config", json={"webhook_secret": "rotated", "auto_publish": True}, headers=ADMIN)
    assert r.status_code == 200

    assert _post(client, _payload(_article())).status_code == 401
    assert _post(client, _payload(_article()), auth="Bearer rotated").status_code == 200


def test_auto_publish_off_leaves_drafts(client, fake_cms):
    client.post("/api/admin/blog/outrank-config", json={"auto_publish": False}, headers=ADMIN)
    r = _post(client, _payload(_article()))
    assert r.status_code == 200
    assert len(fake_cms.blog_posts()) == 1
    assert fake_cms.published == []


def test_log_write_failure_keeps_response(app, client, monkeypatch):
    def broken_log(*_args, **_kwargs):
        raise SQLAlchemyError("webhook_logs unavailable")

    monkeypatch.setattr(routes, "record_webhook_call", broken_log)

    r = _post(client, _payload(_article()))
    assert r.status_code == 200
    assert r.json["message"] == "Processed 1 articles successfully"

    r = _post(client, _payload(_article()), auth="Bearer wrong")
    assert r.status_code == 401
    assert r.json == {"error": "Unauthorized - Invalid token or format"}
    assert _logs(app) == []


def test_oversized_body_is_rejected_and_logged(app, client, fake_cms):
    app.config["MAX_CONTENT_LENGTH"] = 64
    r = _post(client, _payload(_article()))
    assert r.status_code == 413
    assert r.json == {"error": "Payload too large"}
    assert fake_cms.blog_posts() == []

    [log] = _logs(app)
    assert log.response_status == 413
    assert log.error_message == "Payload too large"
    assert json.loads(log.request_headers)["Authorization"].endswith("...")
