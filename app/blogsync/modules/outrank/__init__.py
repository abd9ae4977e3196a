"""
Outrank ingestion module.

Scope:
- POST /api/outrank-webhook: bearer-authenticated article batches are converted
  to rich text and upserted as CMS blog posts (optionally published)
- /api/admin/blog/outrank-config: webhook secret + auto-publish settings
- /api/admin/blog/outrank-preview: run the Markdown converter without ingesting

Every webhook call is written to webhook_logs regardless of outcome.
"""
