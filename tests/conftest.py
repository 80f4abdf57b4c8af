from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from autorag_gateway import create_app
from autorag_gateway.config import Config
from autorag_gateway.services.answer_store import SavedAnswerStore
from autorag_gateway.services.blob_store import LocalBlobStore


def make_config(tmp_path: Path, **overrides: Any) -> type:
    data = tmp_path / "data"
    attrs = {
        "LOG_LEVEL": "DEBUG",
        "DATA_DIR": str(data),
        "FILES_DIR": str(data / "files"),
        "INDEX_DIR": str(data / "index"),
        "DB_DIR": str(data / "db"),
        "STATIC_DIR": str(tmp_path / "static"),
        "DATABASE_URL": f"sqlite:///{data / 'db' / 'test.db'}",
        "SEARCH_BACKEND": "faiss",
        "BLOB_BACKEND": "local",
    }
    attrs.update(overrides)
    return type("TestConfig", (Config,), attrs)


RANKED = {
    "object": "vector_store.search_results.page",
    "search_query": "what is x",
    "data": [
        {
            "file_id": "f-1",
            "filename": "report (final).pdf",
            "score": 0.91,
            "attributes": {"timestamp": 1700000000},
            "content": [{"id": "c-1", "type": "text", "text": "x is a letter."}],
        }
    ],
    "has_more": False,
    "next_page": None,
}


class FakeSearchEngine:
    def __init__(
        self,
        ai_response: Optional[Dict[str, Any]] = None,
        results: Optional[Dict[str, Any]] = None,
        error: Optional[Exception] = None,
    ):
        self.ai_response = ai_response if ai_response is not None else {"response": "x is a letter."}
        self.results = results if results is not None else RANKED
        self.error = error
        self.calls: List[tuple] = []

    def search(self, query: str) -> Dict[str, Any]:
        self.calls.append(("search", query))
        if self.error is not None:
            raise self.error
        return self.results

    def ai_search(self, query: str) -> Dict[str, Any]:
        self.calls.append(("ai_search", query))
        if self.error is not None:
            raise self.error
        return self.ai_response


@pytest.fixture
def cfg(tmp_path):
    return make_config(tmp_path)


@pytest.fixture
def engine():
    return FakeSearchEngine()


@pytest.fixture
def store(cfg):
    return SavedAnswerStore.from_url(cfg.DATABASE_URL)


@pytest.fixture
def blob_dir(cfg):
    path = Path(cfg.FILES_DIR)
    path.mkdir(parents=True, exist_ok=True)
    return path


@pytest.fixture
def app(cfg, engine, store, blob_dir):
    app = create_app(cfg, search_engine=engine, answer_store=store, blob_store=LocalBlobStore(str(blob_dir)))
    app.config.update(TESTING=True)
    return app


@pytest.fixture
def client(app):
    return app.test_client()
