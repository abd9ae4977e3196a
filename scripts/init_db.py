"""
Create tables and seed the default Outrank config row (idempotent).

Usage:
  python scripts/init_db.py
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

# Ensure repo root is on sys.path when running as a script.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from scripts._db_utils import create_script_engine, script_session  # noqa: E402


def init_schema(*, database_url: str | None = None) -> list[str]:
    """
    Create any missing tables and ensure the single outrank_config row exists.
    Returns the names of tables that were created.
    """
    from sqlalchemy import inspect

    from app.blogsync.models import Base
    from app.blogsync.modules.outrank.config_service import get_or_create_config

    db_url = (database_url or os.environ.get("DATABASE_URL") or "sqlite:///blogsync.db").strip()

    engine = create_script_engine(db_url)
    try:
        before = set(inspect(engine).get_table_names())
        Base.metadata.create_all(bind=engine)
        after = set(inspect(engine).get_table_names())
    finally:
        engine.dispose()

    with script_session(db_url) as s:
        get_or_create_config(s)

    return sorted(after - before)


def main() -> None:
    env = (os.environ.get("ENV") or "").strip().lower()
    db_url = (os.environ.get("DATABASE_URL") or "").strip()
    if env in ("prod", "production") and (not db_url or db_url.startswith("sqlite")):
        raise RuntimeError("Refusing to init schema on sqlite in production. Set DATABASE_URL to Postgres.")

    print("=== blogsync schema init ===", flush=True)
    created = init_schema(database_url=db_url or None)
    if created:
        print(f"Created tables: {', '.join(created)}", flush=True)
    else:
        print("All tables already present.", flush=True)
    print("Default outrank_config row ensured.", flush=True)


if __name__ == "__main__":
    main()
