"""Blob stores: read-only access to source PDFs by filename.

``get(key)`` returns a ``BlobObject`` (size + chunked body) or None when the
key does not exist. Backends:
- ``LocalBlobStore``: files under a directory (``Config.FILES_DIR`` by default).
- ``MinioBlobStore``: objects in an S3-compatible bucket via the MinIO client.
Configuration problems and backend errors raise ``UpstreamFailure``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Iterator, Optional

from autorag_gateway.config import Config
from autorag_gateway.errors import UpstreamFailure
from autorag_gateway.utils.io_utils import iter_chunks, resolve_under

logger = logging.getLogger(__name__)

_MISSING_KEY_CODES = {"NoSuchKey", "NoSuchObject", "NotFound", "ResourceNotFound"}


@dataclass
class BlobObject:
    key: str
    size: int
    chunks: Iterable[bytes]
    on_close: Optional[Callable[[], None]] = field(default=None, repr=False)

    def __iter__(self) -> Iterator[bytes]:
        return iter(self.chunks)

    def close(self) -> None:
        if self.on_close is not None:
            self.on_close()
            self.on_close = None


class LocalBlobStore:
    def __init__(self, root: str, chunk_size: int = Config.BLOB_CHUNK_SIZE):
        self.root = root
        self.chunk_size = chunk_size

    def get(self, key: str) -> Optional[BlobObject]:
        if not self.root or not os.path.isdir(self.root):
            raise UpstreamFailure(details=f"Blob store directory is not configured: {self.root!r}")
        path = resolve_under(self.root, key)
        if path is None or not os.path.isfile(path):
            return None
        try:
            size = os.path.getsize(path)
            fh = open(path, "rb")
        except OSError as e:
            raise UpstreamFailure(details=str(e)) from e
        return BlobObject(key=key, size=size, chunks=iter_chunks(fh, self.chunk_size), on_close=fh.close)


class MinioBlobStore:
    def __init__(self, cfg: Config = Config, client: Any = None, chunk_size: int = Config.BLOB_CHUNK_SIZE):
        self.cfg = cfg
        self.bucket = cfg.MINIO_BUCKET
        self.chunk_size = chunk_size
        self._client = client

    def _get_client(self):
        if self._client is None:
            if not self.cfg.MINIO_ENDPOINT:
                raise UpstreamFailure(details="MINIO_ENDPOINT is not configured")
            from minio import Minio

            self._client = Minio(
                self.cfg.MINIO_ENDPOINT,
                access_key=self.cfg.MINIO_ACCESS_KEY or None,
                secret_key=self.cfg.MINIO_SECRET_KEY or None,
                secure=self.cfg.MINIO_USE_SSL,
            )
        return self._client

    def get(self, key: str) -> Optional[BlobObject]:
        from minio.error import S3Error

        if not self.bucket:
            raise UpstreamFailure(details="MINIO_BUCKET is not configured")
        client = self._get_client()
        try:
            stat = client.stat_object(self.bucket, key)
            resp = client.get_object(self.bucket, key)
        except S3Error as e:
            if e.code in _MISSING_KEY_CODES:
                return None
            raise UpstreamFailure(details=str(e)) from e
        except Exception as e:
            raise UpstreamFailure(details=str(e) or e.__class__.__name__) from e

        def release() -> None:
            resp.close()
            resp.release_conn()

        return BlobObject(key=key, size=int(stat.size), chunks=resp.stream(self.chunk_size), on_close=release)


def build_blob_store(cfg: Config = Config):
    backend = (cfg.BLOB_BACKEND or "").lower()
    if backend == "local":
        return LocalBlobStore(cfg.FILES_DIR, chunk_size=cfg.BLOB_CHUNK_SIZE)
    if backend == "minio":
        return MinioBlobStore(cfg, chunk_size=cfg.BLOB_CHUNK_SIZE)
    raise UpstreamFailure(details=f"Unknown BLOB_BACKEND: {cfg.BLOB_BACKEND!r}")
