# services/api/adapters/sqlite/__init__.py
from __future__ import annotations

import os
import sqlite3
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    event,
    insert,
    select,
    text,
)
from sqlalchemy.engine import Engine

from models import BOOL_COLUMNS, INT_COLUMNS, LIST_COLUMNS, SUBMISSION_COLUMNS, ClientSubmission

# ---- Engine (SQLite) with WAL & pragmas -------------------------------------

def _ensure_dir(path: str):
    d = os.path.dirname(path)
    if d and not os.path.isdir(d):
        os.makedirs(d, exist_ok=True)

def make_engine(db_url: str) -> Engine:
    # Create data dir if sqlite file
    if db_url.startswith("sqlite:///"):
        file_path = db_url.replace("sqlite:///", "", 1)
        _ensure_dir(file_path)

    engine = create_engine(db_url, future=True, pool_pre_ping=True)

    # Apply pragmas per-connection
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):  # type: ignore
        if isinstance(dbapi_connection, sqlite3.Connection):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL;")
            cursor.execute("PRAGMA synchronous=NORMAL;")
            cursor.close()

    return engine

# ---- Schema via SQLAlchemy Core ---------------------------------------------

metadata = MetaData()


def _column(name: str) -> Column:
    if name == "id":
        return Column("id", String, primary_key=True)
    if name == "created_at":
        # ISO-8601 UTC text sorts chronologically
        return Column("created_at", String, nullable=False)
    if name in LIST_COLUMNS:
        return Column(name, JSON, nullable=False, default=list)
    if name in BOOL_COLUMNS:
        return Column(name, Boolean, nullable=False, default=False)
    if name in INT_COLUMNS:
        return Column(name, Integer)
    return Column(name, Text)


client_submissions = Table(
    "client_submissions",
    metadata,
    *(_column(name) for name in SUBMISSION_COLUMNS),
)

Index("idx_submissions_created", client_submissions.c.created_at)

# ---- Adapter implementation --------------------------------------------------

@dataclass(frozen=True)
class SqliteAdapter:
    engine: Engine
    backend_name: str = "sqlite"

    @classmethod
    def from_url(cls, db_url: str = "sqlite:///data/intake.db") -> "SqliteAdapter":
        eng = make_engine(db_url)
        metadata.create_all(eng)
        return cls(engine=eng)

    def create_submission(self, data: Dict[str, Any]) -> Dict[str, Any]:
        record = ClientSubmission(data=dict(data)).to_record()
        values = {col: record.get(col) for col in SUBMISSION_COLUMNS}
        for col in LIST_COLUMNS:
            values[col] = values[col] or []
        for col in BOOL_COLUMNS:
            values[col] = bool(values[col])
        with self.engine.begin() as conn:
            conn.execute(insert(client_submissions).values(**values))
        return record

    def get_submission(self, submission_id: str) -> Optional[Dict[str, Any]]:
        with self.engine.begin() as conn:
            row = conn.execute(
                select(client_submissions).where(client_submissions.c.id == submission_id)
            ).mappings().first()
            return dict(row) if row else None

    def list_submissions(self) -> List[Dict[str, Any]]:
        with self.engine.begin() as conn:
            rows = conn.execute(
                select(client_submissions).order_by(
                    client_submissions.c.created_at.desc(),
                    # same timestamp: later insert first
                    text("rowid DESC"),
                )
            ).mappings().all()
            return [dict(row) for row in rows]

    def ping(self) -> bool:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
