"""PDF route: GET /api/pdf/<filename>

Streams a source document from the blob store. The filename arrives
percent-encoded in the path and is looked up decoded. The response is
``application/pdf`` with an explicit Content-Length, an inline
Content-Disposition and byte-range support.
"""

from __future__ import annotations

import logging
from urllib.parse import quote

from flask import Blueprint, Response, request
from werkzeug.exceptions import HTTPException

from autorag_gateway.envelope import guarded
from autorag_gateway.errors import NotFound, UpstreamFailure
from autorag_gateway.services import current_backends

logger = logging.getLogger(__name__)

pdf_bp = Blueprint("pdf", __name__)


@pdf_bp.get("/pdf/<remainder:filename>")
@guarded("Failed to fetch PDF")
def get_pdf(filename: str):
    logger.info("Received /api/pdf request for file: %s", filename)
    try:
        blob = current_backends().blob_store.get(filename)
    except UpstreamFailure as e:
        e.extra.setdefault("requestedPath", request.path)
        raise
    except Exception as e:
        raise UpstreamFailure(
            details=str(e) or e.__class__.__name__, extra={"requestedPath": request.path}
        ) from e
    if blob is None:
        raise NotFound("PDF file not found", extra={"requestedFile": filename})

    resp = Response(blob, mimetype="application/pdf", direct_passthrough=True)
    resp.call_on_close(blob.close)
    resp.headers["Content-Length"] = str(blob.size)
    resp.headers["Content-Disposition"] = f'inline; filename="{quote(filename, safe="")}"'
    resp.headers["Accept-Ranges"] = "bytes"
    logger.debug("Streaming %s (%d bytes)", filename, blob.size)
    try:
        return resp.make_conditional(request, accept_ranges=True, complete_length=blob.size)
    except HTTPException:
        blob.close()
        raise
