"""Ask route: POST /api/ask

Request JSON: { query, mode? } with mode "AI_SYNTHESIS" (default) or
"RAW_SEARCH". AI_SYNTHESIS answers { answer: <text> }; RAW_SEARCH answers
{ answer: <ranked results object> } exactly as the engine returned it.
Nothing is persisted.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from flask import Blueprint, request
from pydantic import ValidationError

from autorag_gateway.envelope import guarded, payload
from autorag_gateway.errors import InvalidInput
from autorag_gateway.schemas import AskRequest, SearchMode, describe_errors
from autorag_gateway.services import current_backends

logger = logging.getLogger(__name__)

ask_bp = Blueprint("ask", __name__)

NO_ANSWER = "No specific answer generated."


@ask_bp.route("/ask", methods=["POST"])
@guarded("Failed to process request")
def ask():
    body: Dict[str, Any] = request.get_json(silent=True) or {}
    try:
        req = AskRequest.model_validate(body)
    except ValidationError as e:
        raise InvalidInput("Invalid query provided", details=describe_errors(e)) from e
    logger.info("Received /api/ask request (mode=%s) with query: %r", req.mode.value, req.query)

    engine = current_backends().search_engine
    if req.mode is SearchMode.RAW_SEARCH:
        results = engine.search(req.query)
        return payload({"answer": results})

    resp = engine.ai_search(req.query)
    answer = None
    if isinstance(resp, dict) and isinstance(resp.get("response"), str):
        answer = resp["response"]
    logger.info("Extracted answer: %s", "none" if answer is None else f"{len(answer)} chars")
    return payload({"answer": answer if answer is not None else NO_ANSWER})
