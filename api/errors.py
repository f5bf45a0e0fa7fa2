from flask import jsonify, current_app
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError
import logging

from services.errors import SessionError
from utils.security import ConfigurationError, PasswordHashingError
from utils.upstream import UpstreamError

logger = logging.getLogger(__name__)

ERROR_NAMES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    422: "VALIDATION_ERROR",
}


def error_response(error: str, message: str, status: int, details: dict | None = None):
    payload = {"error": error, "message": message, "status": status}
    if details:
        payload["details"] = details
    return jsonify(payload), status


def register_error_handlers(app):
    # Session controller taxonomy: Conflict / Unauthorized / Forbidden / NotFound / Internal
    @app.errorhandler(SessionError)
    def handle_session_error(err: SessionError):
        if err.status_code >= 500:
            logger.error("session error: %s", err, exc_info=err.__cause__)
        return error_response(err.error, err.message, err.status_code)

    @app.errorhandler(ConfigurationError)
    def handle_configuration_error(err: ConfigurationError):
        logger.error("configuration error: %s", err)
        return error_response("INTERNAL_ERROR", "Server is not configured", 500)

    @app.errorhandler(PasswordHashingError)
    def handle_hashing_error(err: PasswordHashingError):
        logger.error("password hashing failed: %s", err)
        return error_response("INTERNAL_ERROR", "An unexpected error occurred", 500)

    @app.errorhandler(UpstreamError)
    def handle_upstream_error(err: UpstreamError):
        details = {"upstream_status": err.status} if err.status else None
        return error_response("BAD_GATEWAY", str(err), 502, details=details)

    # Marshmallow validation errors map to 422
    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        return error_response("VALIDATION_ERROR", "Invalid input", 422, details=err.messages)

    # Integrity errors (unique constraints, FK violations)
    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        message = str(getattr(err, "orig", err))
        lower_msg = message.lower()
        if current_app and current_app.debug:
            logging.exception("Integrity error", exc_info=err)
        if "unique constraint" in lower_msg or "unique violation" in lower_msg:
            return error_response("CONFLICT", "Unique constraint violated.", 409)
        if "foreign key constraint" in lower_msg or "foreign key mismatch" in lower_msg:
            return error_response("BAD_REQUEST", "Foreign key constraint failed.", 400)
        return error_response("BAD_REQUEST", "Integrity error.", 400)

    # Werkzeug HTTPExceptions (abort(...)) map to their status codes
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        code = err.code or 400
        return error_response(ERROR_NAMES.get(code, "HTTP_ERROR"), err.description, code)

    # 500 Internal Error (catch-all)
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        logging.exception("Unhandled exception", exc_info=err)
        details = None
        if current_app and current_app.debug:
            details = {"type": err.__class__.__name__, "message": str(err)}
        return error_response("INTERNAL_ERROR", "An unexpected error occurred", 500, details=details)
