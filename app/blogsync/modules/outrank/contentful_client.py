from __future__ import annotations

import json
import time
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass
from typing import Any

CONTENT_TYPE_HEADER = "application/vnd.contentful.management.v1+json"


class ContentfulError(RuntimeError):
    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class ContentfulRateLimited(ContentfulError):
    pass


def entry_id(entity: dict[str, Any]) -> str:
    return str((entity.get("sys") or {}).get("id") or "")


def entry_version(entity: dict[str, Any]) -> int:
    return int((entity.get("sys") or {}).get("version") or 0)


def link(link_type: str, target_id: str) -> dict[str, Any]:
    """Link object used for entry->entry and entry->asset references."""
    return {"sys": {"type": "Link", "linkType": link_type, "id": target_id}}


@dataclass(frozen=True)
class ContentfulClient:
    """Minimal Contentful Management API client (entries + assets)."""

    access_token: str
    space_id: str
    environment: str = "master"
    base_url: str = "https://api.contentful.com"
    timeout_seconds: int = 30
    poll_interval_seconds: float = 1.0

    def _env_path(self, path: str) -> str:
        space = urllib.parse.quote(self.space_id, safe="")
        env = urllib.parse.quote(self.environment, safe="")
        return f"/spaces/{space}/environments/{env}{path}"

    def request_json(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        retries: int = 3,
    ) -> dict[str, Any]:
        url = self.base_url.rstrip("/") + self._env_path(path)
        if params:
            url += "?" + urllib.parse.urlencode({k: v for k, v in params.items() if v is not None})
        data = json.dumps(body).encode("utf-8") if body is not None else None

        last_err: Exception | None = None
        for attempt in range(retries + 1):
            req = urllib.request.Request(url, data=data, method=method)
            req.add_header("Authorization", f"Bearer {self.access_token}")
            req.add_header("Content-Type", CONTENT_TYPE_HEADER)
            req.add_header("Accept", "application/json")
            for k, v in (headers or {}).items():
                req.add_header(k, v)
            try:
                with urllib.request.urlopen(req, timeout=self.timeout_seconds) as resp:
                    raw = resp.read()
            except urllib.error.HTTPError as e:
                if e.code == 429:
                    # rate limit; brief backoff
                    time.sleep(min(2 * (attempt + 1), 10))
                    last_err = ContentfulRateLimited("Rate limited (429)", status=429)
                    continue
                try:
                    err_body = e.read().decode("utf-8", errors="ignore")
                except Exception:
                    err_body = ""
                raise ContentfulError(f"HTTP {e.code} from Contentful {method} {path}: {err_body[:300]}", status=e.code) from e
            except (urllib.error.URLError, OSError) as e:
                last_err = e
                time.sleep(min(1 * (attempt + 1), 5))
                continue

            if not raw:
                return {}
            try:
                parsed = json.loads(raw.decode("utf-8"))
            except ValueError as e:
                raise ContentfulError(f"Invalid JSON from Contentful ({method} {path})") from e
            return parsed if isinstance(parsed, dict) else {}
        if isinstance(last_err, ContentfulError):
            raise last_err
        raise ContentfulError(f"Contentful request failed after retries: {last_err}")

    # -- entries ----------------------------------------------------------

    def find_entry(self, content_type: str, field: str, value: str) -> dict[str, Any] | None:
        j = self.request_json(
            "GET",
            "/entries",
            params={"content_type": content_type, f"fields.{field}": value, "limit": 1},
        )
        items = j.get("items") or []
        return items[0] if isinstance(items, list) and items else None

    def create_entry(self, content_type: str, fields: dict[str, Any]) -> dict[str, Any]:
        return self.request_json(
            "POST",
            "/entries",
            body={"fields": fields},
            headers={"X-Contentful-Content-Type": content_type},
        )

    def update_entry(self, entry: dict[str, Any], fields: dict[str, Any]) -> dict[str, Any]:
        merged = dict(entry.get("fields") or {})
        merged.update(fields)
        return self.request_json(
            "PUT",
            f"/entries/{urllib.parse.quote(entry_id(entry))}",
            body={"fields": merged},
            headers={"X-Contentful-Version": str(entry_version(entry))},
        )

    def publish_entry(self, entry: dict[str, Any]) -> dict[str, Any]:
        return self.request_json(
            "PUT",
            f"/entries/{urllib.parse.quote(entry_id(entry))}/published",
            headers={"X-Contentful-Version": str(entry_version(entry))},
        )

    # -- assets -----------------------------------------------------------

    def create_asset(self, fields: dict[str, Any]) -> dict[str, Any]:
        return self.request_json("POST", "/assets", body={"fields": fields})

    def get_asset(self, asset_id: str) -> dict[str, Any]:
        return self.request_json("GET", f"/assets/{urllib.parse.quote(asset_id)}")

    def process_asset(self, asset: dict[str, Any], locale: str) -> None:
        self.request_json(
            "PUT",
            f"/assets/{urllib.parse.quote(entry_id(asset))}/files/{urllib.parse.quote(locale)}/process",
            headers={"X-Contentful-Version": str(entry_version(asset))},
        )

    def wait_for_asset(self, asset_id: str, locale: str, *, attempts: int = 10) -> dict[str, Any]:
        """Poll until the processed file has a URL; returns the last fetched asset either way."""
        asset = self.get_asset(asset_id)
        tries = 0
        while not _asset_file_url(asset, locale) and tries < attempts:
            time.sleep(self.poll_interval_seconds)
            asset = self.get_asset(asset_id)
            tries += 1
        return asset

    def publish_asset(self, asset: dict[str, Any]) -> dict[str, Any]:
        return self.request_json(
            "PUT",
            f"/assets/{urllib.parse.quote(entry_id(asset))}/published",
            headers={"X-Contentful-Version": str(entry_version(asset))},
        )


def _asset_file_url(asset: dict[str, Any], locale: str) -> str | None:
    file_field = ((asset.get("fields") or {}).get("file") or {}).get(locale) or {}
    return file_field.get("url")


def client_from_config(config: dict[str, Any]) -> ContentfulClient:
    return ContentfulClient(
        access_token=str(config.get("CONTENTFUL_MANAGEMENT_TOKEN") or ""),
        space_id=str(config.get("CONTENTFUL_SPACE_ID") or ""),
        environment=str(config.get("CONTENTFUL_ENVIRONMENT") or "master"),
    )
