"""Search engines behind /api/ask.

Both engines expose the same two calls:
- ``search(query)``: ranked source excerpts, AutoRAG page shape
  ``{object, search_query, data: [{file_id, filename, score, attributes,
  content: [{id, type, text}]}], has_more, next_page}``.
- ``ai_search(query)``: ``{"response": str, ...}`` with a synthesized answer.

``FaissSearchEngine`` runs locally on a FAISS index built by IndexService,
with Gemini embeddings and chat model via LangChain. ``AutoRagSearchEngine``
calls the Cloudflare AutoRAG REST API. Failures raise ``UpstreamFailure``.
"""

from __future__ import annotations

import atexit
import logging
import os
from typing import Any, Dict, List, Optional, Tuple

import httpx

from autorag_gateway.config import Config
from autorag_gateway.errors import UpstreamFailure
from autorag_gateway.prompts import ANSWER_SYSTEM_PROMPT, ANSWER_HUMAN_PROMPT
from autorag_gateway.services.index_service import FAISS_OPTIONS

logger = logging.getLogger(__name__)


def _message_text(out: Any) -> Any:
    content = getattr(out, "content", out)
    if isinstance(content, list):
        # Gemini can reply with a list of content blocks
        return "".join(
            part if isinstance(part, str) else part.get("text") or ""
            for part in content
            if isinstance(part, str) or (isinstance(part, dict) and part.get("type") == "text")
        )
    return content


class FaissSearchEngine:
    def __init__(self, cfg: Config = Config, vectorstore: Any = None, llm: Any = None):
        self.cfg = cfg
        self.top_k = cfg.SEARCH_TOP_K
        self._vs = vectorstore
        self._llm = llm

    def _load_vectorstore(self):
        if self._vs is not None:
            return self._vs
        try:
            from langchain_community.vectorstores import FAISS
            from langchain_google_genai import GoogleGenerativeAIEmbeddings
        except Exception as e:  # pragma: no cover
            raise UpstreamFailure(details=f"Missing langchain-community or langchain-google-genai: {e}") from e

        if not os.path.exists(os.path.join(self.cfg.INDEX_DIR, "index.faiss")):
            raise UpstreamFailure(details="FAISS index not found; run `flask index-pdfs` first.")
        embeddings = GoogleGenerativeAIEmbeddings(model=self.cfg.EMBED_MODEL)
        # allow_dangerous_deserialization is required for FAISS load_local
        self._vs = FAISS.load_local(
            self.cfg.INDEX_DIR,
            embeddings=embeddings,
            index_name="index",
            allow_dangerous_deserialization=True,
            **FAISS_OPTIONS,
        )
        return self._vs

    def _load_llm(self):
        if self._llm is None:
            from langchain_google_genai import ChatGoogleGenerativeAI

            self._llm = ChatGoogleGenerativeAI(model=self.cfg.LLM_MODEL, temperature=0.2)
        return self._llm

    def _hits(self, query: str) -> List[Tuple[Any, float]]:
        vs = self._load_vectorstore()
        try:
            return vs.similarity_search_with_relevance_scores(query, k=self.top_k)
        except Exception as e:
            raise UpstreamFailure(details=f"Retrieval error: {e}") from e

    @staticmethod
    def _to_item(doc: Any, score: float) -> Dict[str, Any]:
        meta = doc.metadata or {}
        return {
            "file_id": meta.get("file_id"),
            "filename": meta.get("filename"),
            "score": min(1.0, max(0.0, float(score))),
            "attributes": {"timestamp": meta.get("timestamp")},
            "content": [{"id": meta.get("chunk_id"), "type": "text", "text": doc.page_content or ""}],
        }

    def search(self, query: str) -> Dict[str, Any]:
        data = [self._to_item(doc, score) for doc, score in self._hits(query)]
        data.sort(key=lambda item: item["score"], reverse=True)
        return {
            "object": "vector_store.search_results.page",
            "search_query": query,
            "data": data,
            "has_more": False,
            "next_page": None,
        }

    def _join_excerpts(self, data: List[Dict[str, Any]], max_chars: int = 15000) -> str:
        parts = []
        used = 0
        for item in data:
            text = "\n".join(c.get("text") or "" for c in item["content"])
            block = f"<file name=\"{item['filename']}\">\n{text}\n</file>"
            if used + len(block) > max_chars:
                break
            parts.append(block)
            used += len(block)
        return "\n\n".join(parts)

    def ai_search(self, query: str) -> Dict[str, Any]:
        from langchain_core.prompts import ChatPromptTemplate

        results = self.search(query)
        prompt = ChatPromptTemplate.from_messages(
            [("system", ANSWER_SYSTEM_PROMPT), ("human", ANSWER_HUMAN_PROMPT)]
        )
        chain = prompt | self._load_llm()
        try:
            out = chain.invoke({"query": query, "excerpts": self._join_excerpts(results["data"])})
        except Exception as e:
            raise UpstreamFailure(details=f"Generation error: {e}") from e
        return {"response": _message_text(out), "search_query": query, "data": results["data"]}


class AutoRagSearchEngine:
    def __init__(self, cfg: Config = Config, client: Optional[httpx.Client] = None):
        self.cfg = cfg
        self.instance = cfg.AUTORAG_INSTANCE
        self._client = client
        self._owns_client = False

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            if not self.cfg.AUTORAG_ACCOUNT_ID or not self.cfg.AUTORAG_API_TOKEN:
                raise UpstreamFailure(details="AUTORAG_ACCOUNT_ID and AUTORAG_API_TOKEN must be set")
            self._client = httpx.Client(
                base_url=self.cfg.AUTORAG_BASE_URL,
                headers={"Authorization": f"Bearer {self.cfg.AUTORAG_API_TOKEN}"},
                timeout=self.cfg.AUTORAG_TIMEOUT,
            )
            self._owns_client = True
            atexit.register(self.close)
        return self._client

    def close(self) -> None:
        """Close the HTTP client if this engine created it."""
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None
            self._owns_client = False

    def _call(self, action: str, query: str) -> Dict[str, Any]:
        path = f"/accounts/{self.cfg.AUTORAG_ACCOUNT_ID}/autorag/rags/{self.instance}/{action}"
        logger.info("AutoRAG %s on instance %s", action, self.instance)
        try:
            resp = self._get_client().post(path, json={"query": query})
            body = resp.json()
        except httpx.HTTPError as e:
            raise UpstreamFailure(details=f"AutoRAG request failed: {e}") from e
        except ValueError as e:
            raise UpstreamFailure(details=f"AutoRAG returned invalid JSON (HTTP {resp.status_code})") from e

        if resp.status_code >= 400 or not isinstance(body, dict) or not body.get("success", False):
            errors = body.get("errors") if isinstance(body, dict) else None
            messages = [str(err.get("message", err)) if isinstance(err, dict) else str(err) for err in errors or []]
            raise UpstreamFailure(
                details=f"AutoRAG {action} failed (HTTP {resp.status_code}): " + ("; ".join(messages) or "no details")
            )
        result = body.get("result")
        if not isinstance(result, dict):
            raise UpstreamFailure(details=f"AutoRAG {action} returned no result")
        return result

    def search(self, query: str) -> Dict[str, Any]:
        return self._call("search", query)

    def ai_search(self, query: str) -> Dict[str, Any]:
        return self._call("ai-search", query)


def build_search_engine(cfg: Config = Config):
    backend = (cfg.SEARCH_BACKEND or "").lower()
    if backend == "faiss":
        return FaissSearchEngine(cfg)
    if backend == "autorag":
        return AutoRagSearchEngine(cfg)
    raise UpstreamFailure(details=f"Unknown SEARCH_BACKEND: {cfg.SEARCH_BACKEND!r}")
