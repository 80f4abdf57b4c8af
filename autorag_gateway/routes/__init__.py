"""Route blueprints package for the API and the front-end.

``api_bp`` mounts every /api operation: ask, save/saved/answer/delete and
pdf. Any other /api path or method answers the 404 envelope. Paths outside
/api go to ``content_bp``, which serves the built front-end.
"""

from __future__ import annotations

from flask import Blueprint, Flask, jsonify
from werkzeug.routing import PathConverter

from autorag_gateway.config import Config
from autorag_gateway.routes.answers import answers_bp
from autorag_gateway.routes.ask import ask_bp
from autorag_gateway.routes.content import content_bp
from autorag_gateway.routes.pdf import pdf_bp

ANY_METHOD = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


class RemainderConverter(PathConverter):
    """Rest of the path after a fixed prefix, possibly empty.

    Unlike a separate ``/prefix/`` rule, an empty match never triggers
    Werkzeug's trailing-slash redirect for ``/prefix``.
    """

    regex = "(?:[^/].*?)?"


api_bp = Blueprint("api", __name__, url_prefix=Config.API_PREFIX)
api_bp.register_blueprint(ask_bp)
api_bp.register_blueprint(answers_bp)
api_bp.register_blueprint(pdf_bp)


# Lowest priority under the prefix: matched only when no operation matched
# both path and method.
@api_bp.route("/<remainder:rest>", methods=ANY_METHOD, provide_automatic_options=False)
def api_not_found(rest: str):
    return jsonify({"error": "API endpoint not found"}), 404


def register_routes(app: Flask) -> None:
    app.url_map.converters["remainder"] = RemainderConverter
    app.register_blueprint(api_bp)
    app.register_blueprint(content_bp)
