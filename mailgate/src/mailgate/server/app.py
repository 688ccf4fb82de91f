"""Flask routes for the initialization endpoints.

What:
  Serve ``GET /init/status``, ``POST /init`` and the deprecated
  ``GET /init/<secret>`` under an API prefix.

Why:
  The client protocol needs a concrete backend to run against locally and in
  end-to-end tests, and the legacy path must warn on every call.

How:
  Register a blueprint whose handlers delegate to :class:`InitService` and
  return plain-text bodies, except for the JSON status document. The static
  ``/init/status`` rule takes precedence over the legacy converter rule.

Interfaces:
  :func:`create_app`, :data:`DEPRECATION_WARNING`.
"""
from __future__ import annotations

import logging

from flask import Blueprint, Flask, Response, current_app, jsonify, request

from .init_service import InitResult, InitService


LOGGER = logging.getLogger("mailgate.server.app")

DEPRECATION_WARNING = (
    "[SECURITY WARNING] Using deprecated GET /init endpoint. Please use POST /init instead."
)
SERVICE_KEY = "mailgate.init_service"


def _service() -> InitService:
    return current_app.extensions[SERVICE_KEY]


def _text(result: InitResult) -> Response:
    return Response(result.message, status=result.status, mimetype="text/plain")


blueprint = Blueprint("init", __name__)


@blueprint.get("/init/status")
def init_status():
    return jsonify({"initialized": _service().is_initialized()})


@blueprint.post("/init")
def init_post():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}
    secret = payload.get("secret")
    if not isinstance(secret, str):
        secret = ""
    return _text(_service().initialize(secret, confirmed=payload.get("confirmInit") is True))


@blueprint.get("/init/<path:secret>")
def init_legacy(secret: str):
    LOGGER.warning(DEPRECATION_WARNING)
    return _text(_service().initialize(secret, confirmed=True))


def create_app(service: InitService, url_prefix: str = "/api") -> Flask:
    """Build the Flask application serving ``service`` under ``url_prefix``."""

    app = Flask(__name__)
    app.extensions[SERVICE_KEY] = service
    app.register_blueprint(blueprint, url_prefix=url_prefix or None)
    return app
