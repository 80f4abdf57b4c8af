"""Content route: every non-API path.

Serves the built front-end from ``STATIC_DIR``: existing files as-is and
index.html for anything else (client-side routes like /answer/<id>).
Without a build the answer is a plain 404.
"""

from __future__ import annotations

import os

from flask import Blueprint, Response, current_app, send_from_directory

from autorag_gateway.utils.io_utils import resolve_under

content_bp = Blueprint("content", __name__)


@content_bp.get("/", defaults={"path": ""})
@content_bp.get("/<path:path>")
def serve_content(path: str):
    root = current_app.config["STATIC_DIR"]
    if path:
        full = resolve_under(root, path)
        if full is not None and os.path.isfile(full):
            return send_from_directory(root, path)
    if os.path.isfile(os.path.join(root, "index.html")):
        return send_from_directory(root, "index.html")
    return Response("Not Found", status=404, mimetype="text/plain")
