from __future__ import annotations

import hmac
import logging
import mimetypes
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Any
from urllib.parse import urlparse

from app.blogsync.constants import (
    AUTH_HEADER_LOG_CHARS,
    AUTHOR_CONTENT_TYPE,
    BLOG_POST_CONTENT_TYPE,
    EXCERPT_MAX_CHARS,
)
from app.blogsync.modules.outrank.contentful_client import ContentfulClient, entry_id, link
from app.blogsync.modules.outrank.validation import to_iso_timestamp, validate_article
from app.blogsync.modules.richtext.html import html_to_rich_text
from app.blogsync.modules.richtext.markdown import markdown_to_rich_text
from app.blogsync.modules.richtext.nodes import Node
from app.blogsync.utils import safe_text

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_CONTENT_TYPE = "image/jpeg"
DEFAULT_IMAGE_EXTENSION = ".jpg"


class WebhookError(Exception):
    """Request-level failure; carries the HTTP status returned to the caller."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(message)
        self.status = status
        self.message = message


@dataclass
class SyncResult:
    processed: int = 0
    created: int = 0
    updated: int = 0
    failed: int = 0
    errors: list[dict[str, Any]] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        return {
            "processed": self.processed,
            "created": self.created,
            "updated": self.updated,
            "failed": self.failed,
            "errors": list(self.errors),
        }


@dataclass
class WebhookOutcome:
    status: int
    body: dict[str, Any]
    error_message: str | None = None
    result: SyncResult | None = None


# ---------------------------------------------------------------------------
# Request helpers
# ---------------------------------------------------------------------------


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Header dict for logging: the authorization value is cut to a short prefix."""
    out: dict[str, str] = {}
    for key, value in headers.items():
        if key.lower() == "authorization":
            out[key] = value[:AUTH_HEADER_LOG_CHARS] + "..."
        else:
            out[key] = value
    return out


def client_ip(headers: Mapping[str, str]) -> str:
    return headers.get("X-Forwarded-For") or headers.get("X-Real-IP") or "unknown"


def is_authorized(auth_header: str | None, secret: str) -> bool:
    """
    Accept "Bearer <secret>" and "Bearer Bearer <secret>" (the sender may add its
    own "Bearer" prefix to a configured value that already has one).
    """
    if not auth_header or not secret:
        return False
    given = auth_header.encode("utf-8")
    valid = (f"Bearer {secret}", f"Bearer Bearer {secret}")
    matches = [hmac.compare_digest(given, v.encode("utf-8")) for v in valid]
    return any(matches)


# ---------------------------------------------------------------------------
# Article -> CMS entry
# ---------------------------------------------------------------------------


def article_content(article: dict[str, Any]) -> Node:
    markdown = article.get("content_markdown")
    if markdown:
        return markdown_to_rich_text(str(markdown))
    return html_to_rich_text(str(article.get("content_html") or ""))


def article_excerpt(article: dict[str, Any]) -> str:
    meta = article.get("meta_description")
    if meta:
        return str(meta)
    markdown = article.get("content_markdown")
    if markdown:
        return str(markdown)[:EXCERPT_MAX_CHARS]
    return ""


def build_entry_fields(
    article: dict[str, Any],
    *,
    locale: str,
    author_id: str | None = None,
    image_asset_id: str | None = None,
) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "title": {locale: article["title"]},
        "slug": {locale: article["slug"]},
        "content": {locale: article_content(article)},
        "excerpt": {locale: article_excerpt(article)},
        "publishedDate": {locale: to_iso_timestamp(article["created_at"])},
    }
    if author_id:
        fields["author"] = {locale: link("Entry", author_id)}
    if image_asset_id:
        fields["featuredImage"] = {locale: link("Asset", image_asset_id)}
    return fields


def image_file_info(image_url: str, slug: str) -> tuple[str, str]:
    """(content_type, file_name) for an image URL; unknown types fall back to JPEG."""
    suffix = PurePosixPath(urlparse(image_url).path).suffix.lower()
    guessed, _ = mimetypes.guess_type(f"file{suffix}") if suffix else (None, None)
    if guessed and guessed.startswith("image/"):
        return guessed, f"{slug}{suffix}"
    return DEFAULT_IMAGE_CONTENT_TYPE, f"{slug}{DEFAULT_IMAGE_EXTENSION}"


def create_featured_image(client: ContentfulClient, article: dict[str, Any], *, locale: str) -> str | None:
    """
    Upload + process + publish the article image. Returns the asset id, or None
    when anything fails (the article is still ingested without an image).
    """
    image_url = safe_text(article.get("image_url"))
    if not image_url:
        return None
    content_type, file_name = image_file_info(image_url, article["slug"])
    logger.info("Creating image asset for %s", image_url)
    try:
        asset = client.create_asset(
            {
                "title": {locale: article["title"]},
                "description": {locale: article.get("meta_description") or article["title"]},
                "file": {
                    locale: {
                        "contentType": content_type,
                        "fileName": file_name,
                        "upload": image_url,
                    }
                },
            }
        )
        asset_id = entry_id(asset)
        client.process_asset(asset, locale)
        processed = client.wait_for_asset(asset_id, locale)
        client.publish_asset(processed)
    except Exception:
        logger.exception("Failed to create image asset for %s", image_url)
        return None
    logger.info("Image asset created and linked: %s", asset_id)
    return asset_id


def find_author_id(client: ContentfulClient, author_name: str) -> str | None:
    if not author_name:
        return None
    try:
        author = client.find_entry(AUTHOR_CONTENT_TYPE, "name", author_name)
    except Exception:
        logger.exception("Error finding author entry %r; continuing without author", author_name)
        return None
    if not author:
        logger.info("Author entry %r not found, articles will have no author", author_name)
        return None
    author_id = entry_id(author)
    logger.info("Found author entry %r: %s", author_name, author_id)
    return author_id or None


def upsert_article(
    client: ContentfulClient,
    article: dict[str, Any],
    *,
    locale: str,
    author_id: str | None,
    auto_publish: bool,
) -> bool:
    """Create or update the blog post for one validated article. Returns True if created."""
    slug = article["slug"]
    existing = client.find_entry(BLOG_POST_CONTENT_TYPE, "slug", slug)
    image_asset_id = create_featured_image(client, article, locale=locale)
    fields = build_entry_fields(article, locale=locale, author_id=author_id, image_asset_id=image_asset_id)

    if existing:
        logger.info("Updating existing entry for slug: %s", slug)
        entry = client.update_entry(existing, fields)
        created = False
    else:
        logger.info("Creating new entry for slug: %s", slug)
        entry = client.create_entry(BLOG_POST_CONTENT_TYPE, fields)
        created = True

    if auto_publish:
        client.publish_entry(entry)
        logger.info("Published: %s", article.get("title"))
    else:
        logger.info("Auto-publish disabled; left as draft: %s", article.get("title"))
    return created


def process_articles(
    client: ContentfulClient,
    articles: list[Any],
    *,
    locale: str,
    author_name: str,
    auto_publish: bool = True,
) -> SyncResult:
    result = SyncResult()
    author_id = find_author_id(client, author_name)

    for article in articles:
        article_id = article.get("id") if isinstance(article, dict) else None
        try:
            errors = validate_article(article)
            if errors:
                logger.error("Validation failed for article %s: %s", article_id, errors)
                result.errors.append({"article_id": article_id, "errors": errors})
                result.failed += 1
                continue

            logger.info("Processing article: %s (%s)", article["title"], article["slug"])
            created = upsert_article(client, article, locale=locale, author_id=author_id, auto_publish=auto_publish)
        except Exception as e:
            logger.exception("Failed to process article %s", article_id)
            result.errors.append({"article_id": article_id, "error": str(e) or e.__class__.__name__})
            result.failed += 1
            continue

        if created:
            result.created += 1
        else:
            result.updated += 1
        result.processed += 1

    logger.info(
        "Webhook processing complete: processed=%s created=%s updated=%s failed=%s",
        result.processed,
        result.created,
        result.updated,
        result.failed,
    )
    return result


# ---------------------------------------------------------------------------
# Webhook contract
# ---------------------------------------------------------------------------


def _articles_from_payload(payload: Any) -> list[Any]:
    data = payload.get("data") if isinstance(payload, dict) else None
    articles = data.get("articles") if isinstance(data, dict) else None
    if not isinstance(articles, list):
        raise WebhookError(400, "Invalid payload structure")
    return articles


def handle_webhook(
    payload: Any,
    *,
    payload_is_json: bool,
    authorization: str | None,
    webhook_secret: str,
    management_token: str,
    client_factory: Callable[[], ContentfulClient],
    locale: str,
    author_name: str,
    auto_publish: bool = True,
) -> WebhookOutcome:
    """
    Authenticate, validate and ingest one webhook delivery. Never raises: every
    failure is mapped to a status + JSON body.
    """
    try:
        if not payload_is_json:
            raise WebhookError(400, "Invalid JSON body")
        if not webhook_secret:
            logger.error("Outrank webhook secret not configured")
            raise WebhookError(500, "Webhook secret not configured")
        if not is_authorized(authorization, webhook_secret):
            logger.error("Invalid authorization header (received %r)", (authorization or "")[:AUTH_HEADER_LOG_CHARS] + "...")
            raise WebhookError(401, "Unauthorized - Invalid token or format")

        articles = _articles_from_payload(payload)
        logger.info("Event type: %s timestamp: %s", payload.get("event_type"), payload.get("timestamp"))

        if not management_token:
            logger.error("CONTENTFUL_MANAGEMENT_TOKEN not configured")
            raise WebhookError(500, "Contentful management token not configured")

        result = process_articles(
            client_factory(),
            articles,
            locale=locale,
            author_name=author_name,
            auto_publish=auto_publish,
        )
    except WebhookError as e:
        return WebhookOutcome(status=e.status, body={"error": e.message}, error_message=e.message)
    except Exception as e:
        logger.exception("Webhook processing error")
        message = str(e) or e.__class__.__name__
        return WebhookOutcome(
            status=500,
            body={"error": "Failed to process webhook", "details": message},
            error_message=message,
        )

    return WebhookOutcome(
        status=200,
        body={
            "success": True,
            "message": f"Processed {result.processed} articles successfully",
            "details": result.as_dict(),
        },
        result=result,
    )
