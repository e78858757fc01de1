# File: backend/app/db/session.py
# Version: v0.2.0
"""
SQLAlchemy engine and session factory.

- Uses SQLite by default (file path from settings.DB_URL or `sqlite:///backend/app/data/annotrack.db`)
- Provides `get_db()` FastAPI dependency to manage session lifecycle.
- Creates the parent directory if using SQLite file URLs.
- Turns on SQLite foreign keys so deleting a dataset removes its features.
"""
from __future__ import annotations

from pathlib import Path
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session

from backend.app.core.config import settings

DB_URL = settings.DB_URL
if DB_URL.startswith("sqlite:///"):
    db_path = DB_URL.replace("sqlite:///", "", 1)
    db_dir = Path(db_path).resolve().parent
    db_dir.mkdir(parents=True, exist_ok=True)

engine = create_engine(DB_URL, future=True)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

if DB_URL.startswith("sqlite"):
    @event.listens_for(engine, "connect")
    def _enable_sqlite_fk(dbapi_connection, _record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def get_db() -> Generator[Session, None, None]:
    """Yield a database session and guarantee closing it after use."""
    db: Session = SessionLocal()
    try:
        yield db
    finally:
        db.close()
