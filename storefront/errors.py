# storefront/errors.py
from __future__ import annotations

from flask import jsonify
from werkzeug.exceptions import HTTPException

from storefront.extensions import db


class StoreError(Exception):
    """Error a service can raise; the app turns it into a JSON response."""

    status_code = 500

    def __init__(self, message: str, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(StoreError):
    status_code = 400


class Unauthorized(StoreError):
    status_code = 401


class Forbidden(StoreError):
    status_code = 403


class NotFound(StoreError):
    status_code = 404


class Conflict(StoreError):
    # duplicate registration is answered with 400
    status_code = 400


class InternalError(StoreError):
    status_code = 500


def register_error_handlers(app):
    @app.errorhandler(StoreError)
    def _store_error(exc: StoreError):
        if exc.status_code >= 500:
            app.logger.error("%s: %s", exc.message, exc.details)
        response = jsonify(exc.to_dict())
        response.status_code = exc.status_code
        if isinstance(exc, Unauthorized):
            response.headers["WWW-Authenticate"] = "Bearer"
        return response

    @app.errorhandler(HTTPException)
    def _http_error(exc: HTTPException):
        response = jsonify({"error": exc.description or exc.name})
        response.status_code = exc.code or 500
        return response

    @app.errorhandler(Exception)
    def _unhandled(exc: Exception):
        db.session.rollback()
        app.logger.exception("Unhandled exception")
        return jsonify({"error": "Server error", "details": str(exc)}), 500
