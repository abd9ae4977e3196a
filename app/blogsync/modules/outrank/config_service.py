from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from app.blogsync.constants import OUTRANK_WEBHOOK_PATH
from app.blogsync.modules.outrank.models import CONFIG_ROW_ID, OutrankConfig
from app.blogsync.utils import utcnow


def get_or_create_config(s: Session) -> OutrankConfig:
    cfg = s.get(OutrankConfig, CONFIG_ROW_ID)
    if cfg is None:
        cfg = OutrankConfig(id=CONFIG_ROW_ID, webhook_secret="", auto_publish=True, total_synced=0)
        s.add(cfg)
        s.flush()
    return cfg


def effective_secret(cfg: OutrankConfig | None, env_secret: str) -> str:
    """Secret saved through the admin API wins; the environment value is the fallback."""
    stored = (cfg.webhook_secret or "").strip() if cfg else ""
    return stored or (env_secret or "").strip()


def update_config(s: Session, *, webhook_secret: str | None, auto_publish: bool | None) -> OutrankConfig:
    cfg = get_or_create_config(s)
    if webhook_secret is not None:
        cfg.webhook_secret = webhook_secret.strip()
    if auto_publish is not None:
        cfg.auto_publish = auto_publish
    cfg.updated_at = utcnow()
    return cfg


def mark_synced(s: Session, processed: int) -> OutrankConfig:
    cfg = get_or_create_config(s)
    cfg.last_sync = utcnow()
    cfg.total_synced = (cfg.total_synced or 0) + processed
    return cfg


def config_payload(cfg: OutrankConfig, env_secret: str) -> dict[str, Any]:
    secret = effective_secret(cfg, env_secret)
    return {
        "webhook_url": OUTRANK_WEBHOOK_PATH,
        "webhook_secret": secret,
        "last_sync": cfg.last_sync.isoformat() if cfg.last_sync else None,
        "auto_publish": bool(cfg.auto_publish),
        "sync_status": "connected" if secret else "disconnected",
        "total_synced": cfg.total_synced or 0,
    }
