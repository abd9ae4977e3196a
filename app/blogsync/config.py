import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str

    outrank_webhook_secret: str
    contentful_management_token: str
    contentful_space_id: str
    contentful_environment: str
    contentful_locale: str
    blog_author_name: str

    webhook_log_retention: int
    max_content_length: int


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def _getenv_int(name: str, default: int) -> int:
    raw = _getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer (got {raw!r}).") from None


def load_settings() -> Settings:
    return Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=_getenv("ENV", "development"),
        database_url=_getenv("DATABASE_URL", "sqlite:///blogsync.db"),
        outrank_webhook_secret=_getenv("OUTRANK_WEBHOOK_SECRET", ""),
        contentful_management_token=_getenv("CONTENTFUL_MANAGEMENT_TOKEN", ""),
        contentful_space_id=_getenv("CONTENTFUL_SPACE_ID", ""),
        contentful_environment=_getenv("CONTENTFUL_ENVIRONMENT", "master"),
        contentful_locale=_getenv("CONTENTFUL_LOCALE", "en-US"),
        blog_author_name=_getenv("BLOG_AUTHOR_NAME", "Noah Cheyer"),
        webhook_log_retention=_getenv_int("WEBHOOK_LOG_RETENTION", 1000),
        # webhook batches can carry full article bodies (10MB)
        max_content_length=_getenv_int("MAX_CONTENT_LENGTH", 10 * 1024 * 1024),
    )


def load_config() -> dict:
    s = load_settings()
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        "OUTRANK_WEBHOOK_SECRET": s.outrank_webhook_secret,
        "CONTENTFUL_MANAGEMENT_TOKEN": s.contentful_management_token,
        "CONTENTFUL_SPACE_ID": s.contentful_space_id,
        "CONTENTFUL_ENVIRONMENT": s.contentful_environment,
        "CONTENTFUL_LOCALE": s.contentful_locale,
        "BLOG_AUTHOR_NAME": s.blog_author_name,
        "WEBHOOK_LOG_RETENTION": s.webhook_log_retention,
        "MAX_CONTENT_LENGTH": s.max_content_length,
        "JSON_SORT_KEYS": False,
    }
