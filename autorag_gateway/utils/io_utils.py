"""IO utilities for blob paths and chunked streaming.

Provides:
- ``resolve_under(root, key)``: absolute path of ``key`` inside ``root``, or
  None when the key would escape the root (``..``, absolute paths).
- ``iter_chunks(fileobj, chunk_size)``: yield a binary file in fixed-size chunks.
"""

from __future__ import annotations

import os
from typing import BinaryIO, Iterator, Optional


def resolve_under(root: str, key: str) -> Optional[str]:
    if not key or "\x00" in key:
        return None
    base = os.path.realpath(root)
    path = os.path.realpath(os.path.join(base, key))
    if os.path.commonpath([base, path]) != base or path == base:
        return None
    return path


def iter_chunks(fileobj: BinaryIO, chunk_size: int = 64 * 1024) -> Iterator[bytes]:
    while True:
        chunk = fileobj.read(chunk_size)
        if not chunk:
            break
        yield chunk
