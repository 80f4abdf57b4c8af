"""Flask app factory and blueprint registration.

Defines ``create_app()`` to initialize the Flask app, load configuration,
enable CORS, attach the backend adapters and register the API and
front-end blueprints. Backends can be passed in (tests, embedding apps);
otherwise they are built from the config on first use.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import click
from flask import Flask
from flask_cors import CORS

from autorag_gateway.config import Config, ensure_data_dirs
from autorag_gateway.routes import register_routes
from autorag_gateway.services import EXTENSION_KEY, Backends


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(
    cfg: Any = Config,
    *,
    search_engine: Optional[Any] = None,
    answer_store: Optional[Any] = None,
    blob_store: Optional[Any] = None,
) -> Flask:
    _configure_logging(cfg.LOG_LEVEL)
    # Every non-API path goes through the content blueprint instead
    app = Flask(__name__, static_folder=None)
    app.config.from_object(cfg)
    CORS(
        app,
        resources={rf"{cfg.API_PREFIX}/*": {"origins": "*"}},
        supports_credentials=False,
        expose_headers=["Content-Disposition", "Content-Length", "Content-Range", "Accept-Ranges"],
        allow_headers=["Content-Type", "Range"],
        methods=["GET", "POST", "DELETE", "OPTIONS"],
    )

    app.extensions[EXTENSION_KEY] = Backends(
        cfg,
        search_engine=search_engine,
        answer_store=answer_store,
        blob_store=blob_store,
    )

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.cli.command("index-pdfs")
    def index_pdfs():
        """Build the local FAISS index from the PDFs in the blob directory."""
        from autorag_gateway.services.index_service import IndexService

        ensure_data_dirs(cfg)
        stats = IndexService(cfg).build_from_blobs()
        click.echo(f"Indexed {stats['n_chunks']} chunks from {stats['n_files']} PDFs into {stats['index_dir']}")

    register_routes(app)
    return app
