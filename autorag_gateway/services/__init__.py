"""Service layer package housing the backend adapters.

Contains the search engines (local FAISS + Gemini, Cloudflare AutoRAG),
the saved-answers store, the PDF blob stores and the local index builder.
``Backends`` holds one instance of each adapter per app, built lazily so a
misconfigured backend only fails the requests that need it.
"""

from __future__ import annotations

from typing import Any, Optional

from autorag_gateway.config import Config


class Backends:
    def __init__(
        self,
        cfg: Config = Config,
        search_engine: Optional[Any] = None,
        answer_store: Optional[Any] = None,
        blob_store: Optional[Any] = None,
    ):
        self.cfg = cfg
        self._search_engine = search_engine
        self._answer_store = answer_store
        self._blob_store = blob_store

    @property
    def search_engine(self):
        if self._search_engine is None:
            from autorag_gateway.services.search_service import build_search_engine

            self._search_engine = build_search_engine(self.cfg)
        return self._search_engine

    @property
    def answer_store(self):
        if self._answer_store is None:
            from autorag_gateway.services.answer_store import build_answer_store

            self._answer_store = build_answer_store(self.cfg)
        return self._answer_store

    @property
    def blob_store(self):
        if self._blob_store is None:
            from autorag_gateway.services.blob_store import build_blob_store

            self._blob_store = build_blob_store(self.cfg)
        return self._blob_store


EXTENSION_KEY = "autorag_gateway"


def current_backends() -> Backends:
    from flask import current_app

    return current_app.extensions[EXTENSION_KEY]
