"""Configuration for environment variables and runtime knobs.

Provides a simple config object with data paths and backend selection
for the search engine, the saved-answers database and the PDF blob store.
This keeps the rest of the codebase decoupled from direct env access.
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

# Load .env for local dev before any setting is read
load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Base
    GATEWAY_ENV = os.getenv("GATEWAY_ENV", "dev")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    API_PREFIX = "/api"
    DATA_DIR = os.getenv("GATEWAY_DATA_DIR", os.path.abspath(os.path.join(os.getcwd(), "data")))

    # Subdirs
    FILES_DIR = os.path.join(DATA_DIR, "files")
    INDEX_DIR = os.path.join(DATA_DIR, "index")
    DB_DIR = os.path.join(DATA_DIR, "db")

    # Built front-end served for every non-API path
    STATIC_DIR = os.getenv("STATIC_DIR", os.path.abspath(os.path.join(os.getcwd(), "build", "client")))

    # Saved answers (SQLAlchemy URL)
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///" + os.path.join(DB_DIR, "saved_answers.db"))

    # Search engine: "faiss" (local LangChain index) or "autorag" (Cloudflare REST)
    SEARCH_BACKEND = os.getenv("SEARCH_BACKEND", "faiss")
    SEARCH_TOP_K = int(os.getenv("SEARCH_TOP_K", "8"))
    # Gemini embedding model via langchain-google-genai
    EMBED_MODEL = os.getenv("EMBED_MODEL", "models/gemini-embedding-001")
    # Chat model used to synthesize answers from retrieved excerpts
    LLM_MODEL = os.getenv("LLM_MODEL", "gemini-2.5-flash")

    AUTORAG_BASE_URL = os.getenv("AUTORAG_BASE_URL", "https://api.cloudflare.com/client/v4")
    AUTORAG_ACCOUNT_ID = os.getenv("AUTORAG_ACCOUNT_ID", "")
    AUTORAG_API_TOKEN = os.getenv("AUTORAG_API_TOKEN", "")
    AUTORAG_INSTANCE = os.getenv("AUTORAG_INSTANCE", "my-autorag")
    AUTORAG_TIMEOUT = float(os.getenv("AUTORAG_TIMEOUT", "60"))

    # Chunking defaults for the local index builder
    CHUNK_SIZE = int(os.getenv("CHUNK_SIZE", "1100"))
    CHUNK_OVERLAP = int(os.getenv("CHUNK_OVERLAP", "120"))

    # PDF blob store: "local" (FILES_DIR) or "minio"
    BLOB_BACKEND = os.getenv("BLOB_BACKEND", "local")
    MINIO_ENDPOINT = os.getenv("MINIO_ENDPOINT", "")
    MINIO_ACCESS_KEY = os.getenv("MINIO_ACCESS_KEY", "")
    MINIO_SECRET_KEY = os.getenv("MINIO_SECRET_KEY", "")
    MINIO_BUCKET = os.getenv("MINIO_BUCKET", "")
    MINIO_USE_SSL = _env_bool("MINIO_USE_SSL")

    # Streaming chunk size for PDF responses
    BLOB_CHUNK_SIZE = 64 * 1024


def ensure_data_dirs(cfg: Config = Config) -> None:
    """Ensure required data directories exist."""
    for p in [cfg.DATA_DIR, cfg.FILES_DIR, cfg.INDEX_DIR, cfg.DB_DIR]:
        os.makedirs(p, exist_ok=True)
