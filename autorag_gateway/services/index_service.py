"""IndexService: builds the local FAISS index used by FaissSearchEngine.

Loads every PDF under the local blob directory with PyMuPDF, splits pages
with LangChain's RecursiveCharacterTextSplitter, embeds the chunks with
Gemini embeddings and saves a single FAISS index into ``Config.INDEX_DIR``.
Chunk metadata carries what search results report per hit: ``file_id``,
``filename``, ``timestamp``, ``chunk_id`` and ``page``.
"""

from __future__ import annotations

import hashlib
import logging
import os
from typing import Any, Dict, List

from autorag_gateway.config import Config, ensure_data_dirs
from autorag_gateway.utils.ids import document_id

logger = logging.getLogger(__name__)

MIN_CHUNK_CHARS = 50


def cosine_relevance(distance: float) -> float:
    """Map the squared L2 distance of two unit vectors onto [0, 1].

    With normalized embeddings ``distance == 2 - 2 * cos``, so this is
    ``(1 + cos) / 2``: identical texts score 1.0, opposite ones 0.0.
    """
    return 1.0 - distance / 4.0


# Used both when building and when loading the index; save_local does not persist them.
FAISS_OPTIONS: Dict[str, Any] = {"normalize_L2": True, "relevance_score_fn": cosine_relevance}


class IndexService:
    def __init__(self, cfg: Config = Config, embeddings: Any = None):
        self.cfg = cfg
        self._embeddings = embeddings

    def _pdf_keys(self) -> List[str]:
        keys = []
        for dirpath, _, filenames in os.walk(self.cfg.FILES_DIR):
            for name in filenames:
                if name.lower().endswith(".pdf"):
                    full = os.path.join(dirpath, name)
                    keys.append(os.path.relpath(full, self.cfg.FILES_DIR).replace(os.sep, "/"))
        return sorted(keys)

    def _split(self, key: str) -> List[Any]:
        from langchain_community.document_loaders import PyMuPDFLoader
        from langchain_text_splitters import RecursiveCharacterTextSplitter

        path = os.path.join(self.cfg.FILES_DIR, key)
        pages = PyMuPDFLoader(path).load()
        splitter = RecursiveCharacterTextSplitter(
            chunk_size=self.cfg.CHUNK_SIZE,
            chunk_overlap=self.cfg.CHUNK_OVERLAP,
            separators=["\n\n", "\n", ". ", "? ", "! ", "; ", ", ", " ", ""],
        )
        file_id = document_id(key)
        timestamp = int(os.path.getmtime(path))
        chunks = []
        for page in pages:
            if not page.page_content or not page.page_content.strip():
                continue
            for piece in splitter.split_documents([page]):
                text = piece.page_content.strip()
                if len(text) < MIN_CHUNK_CHARS:
                    continue
                i = len(chunks)
                piece.metadata = {
                    "chunk_id": hashlib.sha1(f"{file_id}|{i}|{text[:100]}".encode("utf-8")).hexdigest(),
                    "file_id": file_id,
                    "filename": key,
                    "timestamp": timestamp,
                    "page": page.metadata.get("page", 0),
                }
                chunks.append(piece)
        return chunks

    def build_from_blobs(self) -> Dict[str, Any]:
        """Index all local PDFs and return ``{n_files, n_chunks, index_dir}``."""
        from langchain_community.vectorstores import FAISS

        ensure_data_dirs(self.cfg)
        keys = self._pdf_keys()
        if not keys:
            raise RuntimeError(f"No PDFs found under {self.cfg.FILES_DIR}")

        docs: List[Any] = []
        for key in keys:
            chunks = self._split(key)
            logger.info("Split %s into %d chunks", key, len(chunks))
            docs.extend(chunks)
        if not docs:
            raise RuntimeError("No text could be extracted from the PDFs")

        embeddings = self._embeddings
        if embeddings is None:
            from langchain_google_genai import GoogleGenerativeAIEmbeddings

            embeddings = GoogleGenerativeAIEmbeddings(model=self.cfg.EMBED_MODEL)
        vs = FAISS.from_documents(documents=docs, embedding=embeddings, **FAISS_OPTIONS)
        vs.save_local(folder_path=self.cfg.INDEX_DIR, index_name="index")
        logger.info("Saved FAISS index with %d chunks to %s", len(docs), self.cfg.INDEX_DIR)
        return {"n_files": len(keys), "n_chunks": len(docs), "index_dir": self.cfg.INDEX_DIR}
