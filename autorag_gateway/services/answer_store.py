"""SavedAnswerStore: saved question/answer pairs in a relational database.

Thin adapter over a SQLAlchemy engine. Every operation is a single prepared
statement with bind parameters against ``saved_answers``; ``created_at`` is
filled by the column default at insert time. SQLAlchemy errors are mapped
to the gateway taxonomy:
- ``IntegrityError`` -> ``ConstraintViolation``
- any other ``SQLAlchemyError`` -> ``UpstreamFailure``
"""

from __future__ import annotations

import logging
import os
from typing import Any, List, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from autorag_gateway.config import Config
from autorag_gateway.errors import ConstraintViolation, UpstreamFailure
from autorag_gateway.schemas import SavedAnswer

logger = logging.getLogger(__name__)


# created_at default in epoch milliseconds, per dialect
_NOW_MS = {
    "sqlite": "(CAST((julianday('now') - 2440587.5) * 86400000 AS INTEGER))",
    "postgresql": "((EXTRACT(EPOCH FROM clock_timestamp()) * 1000)::BIGINT)",
}

_SCHEMA = """
CREATE TABLE IF NOT EXISTS saved_answers (
    id TEXT PRIMARY KEY,
    question TEXT NOT NULL,
    answer TEXT NOT NULL,
    created_at BIGINT NOT NULL DEFAULT {now}
)
"""

_INSERT = text("INSERT INTO saved_answers (id, question, answer) VALUES (:id, :question, :answer)")
_SELECT_ALL = text("SELECT id, question, answer, created_at FROM saved_answers ORDER BY created_at DESC")
_SELECT_ONE = text("SELECT id, question, answer, created_at FROM saved_answers WHERE id = :id")
_DELETE = text("DELETE FROM saved_answers WHERE id = :id")


def _root_message(e: SQLAlchemyError) -> str:
    orig = getattr(e, "orig", None)
    return str(orig) if orig is not None else str(e)


class SavedAnswerStore:
    def __init__(self, engine: Engine):
        self.engine = engine
        self._schema_ready = False

    @classmethod
    def from_url(cls, url: str) -> "SavedAnswerStore":
        if url.startswith("sqlite:///"):
            folder = os.path.dirname(url[len("sqlite:///"):])
            if folder:
                os.makedirs(folder, exist_ok=True)
        return cls(create_engine(url, pool_pre_ping=True))

    def ensure_schema(self) -> None:
        if self._schema_ready:
            return
        dialect = self.engine.dialect.name
        now = _NOW_MS.get(dialect)
        if now is None:
            raise UpstreamFailure(details=f"Unsupported database dialect: {dialect}")
        try:
            with self.engine.begin() as conn:
                conn.execute(text(_SCHEMA.format(now=now)))
        except SQLAlchemyError as e:
            raise UpstreamFailure(details=_root_message(e)) from e
        self._schema_ready = True

    def insert(self, answer_id: str, question: str, answer: str) -> None:
        self.ensure_schema()
        try:
            with self.engine.begin() as conn:
                conn.execute(_INSERT, {"id": answer_id, "question": question, "answer": answer})
        except IntegrityError as e:
            raise ConstraintViolation("Database constraint error.", details=_root_message(e)) from e
        except SQLAlchemyError as e:
            raise UpstreamFailure(details=_root_message(e)) from e

    def list_all(self) -> List[SavedAnswer]:
        self.ensure_schema()
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(_SELECT_ALL).mappings().all()
        except SQLAlchemyError as e:
            raise UpstreamFailure(details=_root_message(e)) from e
        return [SavedAnswer(**dict(r)) for r in rows]

    def get(self, answer_id: str) -> Optional[SavedAnswer]:
        self.ensure_schema()
        try:
            with self.engine.connect() as conn:
                row = conn.execute(_SELECT_ONE, {"id": answer_id}).mappings().first()
        except SQLAlchemyError as e:
            raise UpstreamFailure(details=_root_message(e)) from e
        if row is None:
            return None
        return SavedAnswer(**dict(row))

    def delete(self, answer_id: str) -> int:
        """Delete by id and return the number of rows removed (0 is fine)."""
        self.ensure_schema()
        try:
            with self.engine.begin() as conn:
                result = conn.execute(_DELETE, {"id": answer_id})
        except SQLAlchemyError as e:
            raise UpstreamFailure(details=_root_message(e)) from e
        changes: Any = result.rowcount
        return int(changes or 0)


def build_answer_store(cfg: Config = Config) -> SavedAnswerStore:
    return SavedAnswerStore.from_url(cfg.DATABASE_URL)
