"""
Central constants for the blog ingestion service.
"""
from __future__ import annotations

WEBHOOK_TYPE_OUTRANK = "outrank"
OUTRANK_WEBHOOK_PATH = "/api/outrank-webhook"

# CMS content model
BLOG_POST_CONTENT_TYPE = "blogPost"
AUTHOR_CONTENT_TYPE = "author"

EXCERPT_MAX_CHARS = 160

# Logged request headers never carry the full bearer token.
AUTH_HEADER_LOG_CHARS = 20

WEBHOOK_LOG_PAGE_MAX = 500
