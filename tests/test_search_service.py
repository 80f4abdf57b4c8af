from __future__ import annotations

import json

import httpx
import pytest
from langchain_core.documents import Document
from langchain_core.language_models.fake_chat_models import FakeListChatModel
from langchain_core.messages import AIMessage
from langchain_core.runnables import RunnableLambda

from autorag_gateway.errors import UpstreamFailure
from autorag_gateway.services.search_service import (
    AutoRagSearchEngine,
    FaissSearchEngine,
    build_search_engine,
)
from tests.conftest import make_config


class FakeVectorStore:
    def __init__(self, hits=None, error=None):
        self.hits = hits or []
        self.error = error
        self.queries = []

    def similarity_search_with_relevance_scores(self, query, k=4):
        self.queries.append((query, k))
        if self.error is not None:
            raise self.error
        return self.hits[:k]


HITS = [
    (
        Document(
            page_content="Budget details for 2023.",
            metadata={"file_id": "f-2", "filename": "budget.pdf", "timestamp": 2, "chunk_id": "c-2"},
        ),
        0.42,
    ),
    (
        Document(
            page_content="x is a letter.",
            metadata={"file_id": "f-1", "filename": "report (final).pdf", "timestamp": 1, "chunk_id": "c-1"},
        ),
        1.07,
    ),
]


def test_faiss_search_returns_ranked_page(tmp_path):
    vs = FakeVectorStore(HITS)
    engine = FaissSearchEngine(make_config(tmp_path, SEARCH_TOP_K=5), vectorstore=vs)
    page = engine.search("what is x")

    assert vs.queries == [("what is x", 5)]
    assert page["object"] == "vector_store.search_results.page"
    assert page["search_query"] == "what is x"
    assert [item["filename"] for item in page["data"]] == ["report (final).pdf", "budget.pdf"]
    top = page["data"][0]
    assert top["score"] == 1.0
    assert top["file_id"] == "f-1"
    assert top["attributes"] == {"timestamp": 1}
    assert top["content"] == [{"id": "c-1", "type": "text", "text": "x is a letter."}]
    assert all(0.0 <= item["score"] <= 1.0 for item in page["data"])


def test_faiss_ai_search_answers_from_excerpts(tmp_path):
    llm = FakeListChatModel(responses=["x is a letter (report (final).pdf)."])
    engine = FaissSearchEngine(make_config(tmp_path), vectorstore=FakeVectorStore(HITS), llm=llm)
    out = engine.ai_search("what is x")
    assert out["response"] == "x is a letter (report (final).pdf)."
    assert out["search_query"] == "what is x"
    assert len(out["data"]) == 2


def test_faiss_ai_search_joins_content_blocks(tmp_path):
    blocks = [{"type": "text", "text": "x is "}, {"type": "thinking", "thinking": "..."}, {"type": "text", "text": "a letter."}]
    llm = RunnableLambda(lambda prompt_value: AIMessage(content=blocks))
    engine = FaissSearchEngine(make_config(tmp_path), vectorstore=FakeVectorStore(HITS), llm=llm)
    assert engine.ai_search("what is x")["response"] == "x is a letter."


def test_faiss_retrieval_error_is_upstream_failure(tmp_path):
    engine = FaissSearchEngine(make_config(tmp_path), vectorstore=FakeVectorStore(error=ValueError("bad index")))
    with pytest.raises(UpstreamFailure) as exc:
        engine.search("q")
    assert "bad index" in exc.value.details


def test_faiss_missing_index_is_upstream_failure(tmp_path):
    engine = FaissSearchEngine(make_config(tmp_path))
    with pytest.raises(UpstreamFailure) as exc:
        engine.search("q")
    assert "index-pdfs" in exc.value.details


def _autorag(tmp_path, handler):
    cfg = make_config(tmp_path, SEARCH_BACKEND="autorag", AUTORAG_ACCOUNT_ID="acct", AUTORAG_INSTANCE="docs-rag")
    client = httpx.Client(transport=httpx.MockTransport(handler), base_url="https://api.example.test/client/v4")
    return AutoRagSearchEngine(cfg, client=client)


def test_autorag_ai_search_returns_result(tmp_path):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path, json.loads(request.content)))
        return httpx.Response(200, json={"success": True, "result": {"response": "x is a letter.", "data": []}})

    out = _autorag(tmp_path, handler).ai_search("what is x")
    assert out == {"response": "x is a letter.", "data": []}
    assert seen == [("POST", "/client/v4/accounts/acct/autorag/rags/docs-rag/ai-search", {"query": "what is x"})]


def test_autorag_search_uses_search_endpoint(tmp_path):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path.endswith("/autorag/rags/docs-rag/search")
        return httpx.Response(200, json={"success": True, "result": {"search_query": "q", "data": []}})

    assert _autorag(tmp_path, handler).search("q") == {"search_query": "q", "data": []}


@pytest.mark.parametrize(
    "response, fragment",
    [
        (httpx.Response(403, json={"success": False, "errors": [{"code": 10000, "message": "Authentication error"}]}), "Authentication error"),
        (httpx.Response(200, json={"success": True}), "no result"),
        (httpx.Response(502, text="<html>bad gateway</html>"), "invalid JSON"),
    ],
)
def test_autorag_failures_are_upstream_failure(tmp_path, response, fragment):
    engine = _autorag(tmp_path, lambda request: response)
    with pytest.raises(UpstreamFailure) as exc:
        engine.ai_search("q")
    assert fragment in exc.value.details


def test_autorag_transport_error_is_upstream_failure(tmp_path):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(UpstreamFailure) as exc:
        _autorag(tmp_path, handler).search("q")
    assert "connection refused" in exc.value.details


def test_autorag_requires_credentials(tmp_path):
    engine = AutoRagSearchEngine(make_config(tmp_path, AUTORAG_ACCOUNT_ID="", AUTORAG_API_TOKEN=""))
    with pytest.raises(UpstreamFailure):
        engine.search("q")


def test_build_search_engine(tmp_path):
    assert isinstance(build_search_engine(make_config(tmp_path)), FaissSearchEngine)
    assert isinstance(build_search_engine(make_config(tmp_path, SEARCH_BACKEND="autorag")), AutoRagSearchEngine)
    with pytest.raises(UpstreamFailure):
        build_search_engine(make_config(tmp_path, SEARCH_BACKEND="elastic"))


def test_autorag_close_releases_own_client(tmp_path):
    engine = AutoRagSearchEngine(make_config(tmp_path, AUTORAG_ACCOUNT_ID="acct", AUTORAG_API_TOKEN="token"))
    client = engine._get_client()
    assert not client.is_closed
    engine.close()
    assert client.is_closed
    engine.close()


def test_autorag_close_leaves_injected_client_open(tmp_path):
    engine = _autorag(tmp_path, lambda request: httpx.Response(200, json={}))
    engine.close()
    assert not engine._client.is_closed
