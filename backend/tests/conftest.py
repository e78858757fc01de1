# File: backend/tests/conftest.py
# Version: v0.2.0
"""
Test bootstrap: ensure project root is on sys.path so 'backend.*' imports work.

Also points DB_URL at a throwaway SQLite file before any backend module is
imported (the engine is created at import time) and creates the schema once
per session.
"""
import os
import sys
import tempfile
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]  # repo root (../.. from this file)
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

_DB_DIR = tempfile.mkdtemp(prefix="annotrack-tests-")
os.environ["DB_URL"] = f"sqlite:///{Path(_DB_DIR) / 'test.db'}"

FIXTURES = Path(__file__).resolve().parent / "fixtures"


@pytest.fixture(scope="session", autouse=True)
def _schema():
    from backend.app.db.maintenance import ensure_schema_sqlite
    from backend.app.db.session import engine

    ensure_schema_sqlite(engine)
    yield


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES
