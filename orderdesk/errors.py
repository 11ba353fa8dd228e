from flask import jsonify
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException


class ApiError(Exception):
    """Base class for errors that map straight onto a JSON error response."""

    status_code = 500
    message = "Internal server error"

    def __init__(self, message=None, details=None):
        super().__init__(message or self.message)
        if message:
            self.message = message
        self.details = details

    def to_dict(self):
        payload = {"error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class Unauthorized(ApiError):
    status_code = 401
    message = "Unauthorized"


class Forbidden(ApiError):
    status_code = 403
    message = "Access forbidden"


class NotFound(ApiError):
    status_code = 404
    message = "Not found"


class Conflict(ApiError):
    # Reported as 400 to keep the documented approve endpoint contract
    status_code = 400
    message = "Order has already been reviewed"


class InvalidRequest(ApiError):
    status_code = 400
    message = "Invalid request"


class ProviderError(ApiError):
    status_code = 500
    message = "Payment provider error"


class PersistenceError(ApiError):
    status_code = 500
    message = "Failed to record the approval"


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def handle_api_error(err):
        if err.status_code >= 500:
            app.logger.error(f"{err.__class__.__name__}: {err.message}")
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(ValidationError)
    def handle_validation_error(err):
        return jsonify({"error": "Invalid request", "details": err.messages}), 400

    @app.errorhandler(HTTPException)
    def handle_http_exception(err):
        return jsonify({"error": err.description}), err.code

    @app.errorhandler(Exception)
    def handle_unexpected(err):
        app.logger.exception(f"Unhandled error: {err}")
        return jsonify({"error": "Internal server error"}), 500
