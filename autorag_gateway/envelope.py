"""Response envelope builder for every non-streaming API response.

- ``success(status, **fields)``: ``{"success": true, ...fields}``.
- ``payload(body, status)``: a bare JSON body (Ask answers without a flag).
- ``failure(err, message, with_success)``: ``{"error", "details"?, ...extra}``,
  optionally prefixed with ``"success": false`` (the delete family).
- ``guarded(message, with_success)``: view decorator that funnels every
  exception raised by a handler through ``failure``.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable, Dict, Optional

from flask import jsonify
from werkzeug.exceptions import HTTPException

from autorag_gateway.errors import GatewayError, UpstreamFailure

logger = logging.getLogger(__name__)


def success(status: int = 200, **fields: Any):
    body: Dict[str, Any] = {"success": True}
    body.update(fields)
    return jsonify(body), status


def payload(body: Dict[str, Any], status: int = 200):
    return jsonify(body), status


def failure(err: GatewayError, message: Optional[str] = None, with_success: bool = False):
    body: Dict[str, Any] = {}
    if with_success:
        body["success"] = False
    if err.status_code < 500:
        # caller errors carry their own text, the handler message is for 5xx
        body["error"] = err.message or err.default_message
    else:
        body["error"] = err.message or message or err.default_message
    details = err.details
    if not details and err.status_code >= 500:
        details = "Internal Server Error"
    if details:
        body["details"] = details
    body.update(err.extra)
    return jsonify(body), err.status_code


def guarded(message: str, with_success: bool = False) -> Callable:
    """Wrap a view so no exception escapes it as an unhandled fault.

    Taxonomy errors keep their status; anything else becomes an
    ``UpstreamFailure`` whose details carry the exception message. Werkzeug
    HTTP exceptions (e.g. 416 from range handling) are left to Flask.
    """

    def decorator(view: Callable) -> Callable:
        @functools.wraps(view)
        def wrapper(*args: Any, **kwargs: Any):
            try:
                return view(*args, **kwargs)
            except HTTPException:
                raise
            except GatewayError as e:
                if e.status_code >= 500:
                    logger.exception("%s: %s", message, e)
                else:
                    logger.info("%s (%s): %s", view.__name__, e.status_code, e)
                return failure(e, message=message, with_success=with_success)
            except Exception as e:
                logger.exception("%s: unexpected error", message)
                err = UpstreamFailure(details=str(e) or e.__class__.__name__)
                return failure(err, message=message, with_success=with_success)

        return wrapper

    return decorator
