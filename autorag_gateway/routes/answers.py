"""Saved answers routes: POST /api/save, GET /api/saved,
GET /api/answer/<id>, DELETE /api/delete/<id>

- save:   { question, answer } -> 201 { success, id } (id generated here)
- saved:  -> { success, answers: [SavedAnswer] }, newest first
- answer: -> { success, answer: SavedAnswer } or 404 { error }
- delete: -> { success } whether or not the id existed; errors carry
  ``success: false`` as well
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from flask import Blueprint, request
from pydantic import ValidationError

from autorag_gateway.envelope import guarded, success
from autorag_gateway.errors import InvalidInput, NotFound
from autorag_gateway.schemas import SaveRequest, describe_errors
from autorag_gateway.services import current_backends
from autorag_gateway.utils.ids import new_answer_id

logger = logging.getLogger(__name__)

answers_bp = Blueprint("answers", __name__)

MISSING_ID = "Invalid or missing ID"


@answers_bp.route("/save", methods=["POST"])
@guarded("Failed to save answer")
def save_answer():
    body: Dict[str, Any] = request.get_json(silent=True) or {}
    try:
        req = SaveRequest.model_validate(body)
    except ValidationError as e:
        raise InvalidInput("Invalid question or answer provided", details=describe_errors(e)) from e

    answer_id = new_answer_id()
    current_backends().answer_store.insert(answer_id, req.question, req.answer)
    logger.info("Saved answer %s", answer_id)
    return success(201, id=answer_id)


@answers_bp.get("/saved")
@guarded("Failed to fetch saved answers")
def list_saved():
    answers = current_backends().answer_store.list_all()
    return success(answers=[a.model_dump() for a in answers])


# <remainder:...> also matches an empty id, which is a 400.
@answers_bp.get("/answer/<remainder:answer_id>")
@guarded("Failed to fetch answer")
def get_answer(answer_id: str):
    logger.info("Received /api/answer request for ID: %s", answer_id)
    if not answer_id:
        raise InvalidInput(MISSING_ID)
    found = current_backends().answer_store.get(answer_id)
    if found is None:
        logger.info("Answer not found in DB for ID: %s", answer_id)
        raise NotFound("Answer not found")
    return success(answer=found.model_dump())


@answers_bp.delete("/delete/<remainder:answer_id>")
@guarded("Failed to delete answer", with_success=True)
def delete_answer(answer_id: str):
    logger.info("Received /api/delete request for ID: %s", answer_id)
    if not answer_id:
        raise InvalidInput(MISSING_ID)
    changes = current_backends().answer_store.delete(answer_id)
    if changes == 0:
        # Deleting an unknown id is still a success.
        logger.info("No answer found with ID %s to delete.", answer_id)
    return success()
