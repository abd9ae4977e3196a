"""Shared test doubles."""
from __future__ import annotations

import copy
import itertools

import pytest

LOCALE = "en-US"


class FakeContentful:
    """In-memory stand-in for ContentfulClient (same method names and shapes)."""

    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self.entries: dict[str, dict] = {}
        self.assets: dict[str, dict] = {}
        self.published: list[str] = []
        self.published_assets: list[str] = []
        self.fail_create_for_slugs: set[str] = set()
        self.fail_assets = False
        self.fail_author_lookup = False

    def _new_id(self, prefix: str) -> str:
        return f"{prefix}{next(self._ids)}"

    def add_entry(self, content_type: str, fields: dict) -> dict:
        eid = self._new_id("entry")
        entry = {"sys": {"id": eid, "version": 1, "contentType": content_type}, "fields": fields}
        self.entries[eid] = entry
        return copy.deepcopy(entry)

    def find_entry(self, content_type: str, field: str, value: str):
        if content_type == "author" and self.fail_author_lookup:
            raise RuntimeError("author lookup exploded")
        for entry in self.entries.values():
            if entry["sys"]["contentType"] != content_type:
                continue
            if (entry["fields"].get(field) or {}).get(LOCALE) == value:
                return copy.deepcopy(entry)
        return None

    def create_entry(self, content_type: str, fields: dict) -> dict:
        slug = (fields.get("slug") or {}).get(LOCALE)
        if slug in self.fail_create_for_slugs:
            raise RuntimeError(f"HTTP 422 from Contentful POST /entries: bad {slug}")
        return self.add_entry(content_type, copy.deepcopy(fields))

    def update_entry(self, entry: dict, fields: dict) -> dict:
        stored = self.entries[entry["sys"]["id"]]
        stored["fields"].update(copy.deepcopy(fields))
        stored["sys"]["version"] += 1
        return copy.deepcopy(stored)

    def publish_entry(self, entry: dict) -> dict:
        self.published.append(entry["sys"]["id"])
        return entry

    def create_asset(self, fields: dict) -> dict:
        if self.fail_assets:
            raise RuntimeError("asset upload failed")
        aid = self._new_id("asset")
        asset = {"sys": {"id": aid, "version": 1}, "fields": copy.deepcopy(fields)}
        self.assets[aid] = asset
        return copy.deepcopy(asset)

    def process_asset(self, asset: dict, locale: str) -> None:
        stored = self.assets[asset["sys"]["id"]]
        stored["fields"]["file"][locale]["url"] = "//images.example/" + stored["fields"]["file"][locale]["fileName"]
        stored["sys"]["version"] += 1

    def wait_for_asset(self, asset_id: str, locale: str, *, attempts: int = 10) -> dict:
        return copy.deepcopy(self.assets[asset_id])

    def get_asset(self, asset_id: str) -> dict:
        return copy.deepcopy(self.assets[asset_id])

    def publish_asset(self, asset: dict) -> dict:
        self.published_assets.append(asset["sys"]["id"])
        return asset

    def blog_posts(self) -> list[dict]:
        return [e for e in self.entries.values() if e["sys"]["contentType"] == "blogPost"]


@pytest.fixture()
def fake_cms() -> FakeContentful:
    return FakeContentful()
