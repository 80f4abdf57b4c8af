"""ID helpers for saved answers and indexed documents.

Provides:
- ``new_answer_id()``: a random UUID4 string; saved-answer ids are always
  generated here, never taken from the client.
- ``document_id(filename)``: stable sha1 hex id for a PDF in the blob store.
"""

from __future__ import annotations

import hashlib
import uuid


def new_answer_id() -> str:
    return str(uuid.uuid4())


def document_id(filename: str) -> str:
    """Derive a stable document id from a blob key.

    The same filename always maps to the same id, so re-indexing keeps
    ``file_id`` values in search results unchanged.
    """
    return hashlib.sha1(filename.encode("utf-8", errors="ignore")).hexdigest()
