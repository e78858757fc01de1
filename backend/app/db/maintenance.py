# File: backend/app/db/maintenance.py
# Version: v0.3.0
"""
SQLite schema maintenance helpers (non-destructive).

- ensure_schema_sqlite(engine): creates only the tables that are missing.
- Imports `backend.app.db.models` (not just Base) so Dataset and
  DatasetFeature are registered on Base.metadata before inspection.

On app startup with SCHEMA_AUTOHEAL=true this runs once and logs what it did.
It never drops or alters existing tables; there are no migrations.
"""
from __future__ import annotations

import logging
from typing import List

from sqlalchemy import inspect
from sqlalchemy.engine import Engine

import backend.app.db.models as models  # noqa: F401

logger = logging.getLogger(__name__)


def ensure_schema_sqlite(engine: Engine) -> List[str]:
    """
    Create any missing tables declared on models.Base.metadata.

    Returns a list of human-readable action strings (e.g., "created table datasets").
    """
    Base = models.Base

    existing = set(inspect(engine).get_table_names())
    actions: List[str] = []

    # sorted_tables keeps parents ahead of tables with foreign keys
    for table in Base.metadata.sorted_tables:
        if table.name in existing:
            continue
        table.create(bind=engine, checkfirst=True)
        actions.append(f"created table {table.name}")
        logger.info("Schema autoheal: created table %s", table.name)

    if not actions:
        actions.append("all tables present")

    return actions
