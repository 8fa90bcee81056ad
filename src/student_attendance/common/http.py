from __future__ import annotations

import logging
from typing import Any, Optional

from flask import Flask, current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from ..core.exceptions import DomainError, ValidationError
from .pagination import Page, PageRequest

logger = logging.getLogger(__name__)


def success(data: Any = None, *, message: Optional[str] = None, status: int = 200, page: Optional[Page] = None):
    body: dict = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    if page is not None:
        body["pagination"] = page.meta()
    return jsonify(body), status


def failure(message: str, *, kind: str, status: int):
    return jsonify({"success": False, "message": message, "error": kind}), status


def json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def page_request() -> PageRequest:
    return PageRequest.build(
        request.args.get("page", type=int),
        request.args.get("limit", type=int),
        default_limit=int(current_app.config.get("DEFAULT_PAGE_SIZE", 10)),
        max_limit=int(current_app.config.get("MAX_PAGE_SIZE", 100)),
    )


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        logger.debug("%s %s rejected: %s", request.method, request.path, e)
        return failure(str(e), kind=e.kind, status=e.status_code)

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return failure(e.description or e.name, kind="http", status=e.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        message = f"Internal error: {e}" if app.config.get("DEBUG") else "Internal server error"
        return failure(message, kind="internal", status=500)
