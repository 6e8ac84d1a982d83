from flask import jsonify, request
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

DEFAULT_RATE_LIMIT_MESSAGE = "Too many requests, please try again later."


class AppError(Exception):
    status_code = 400

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        return {"error": self.message}


class ValidationError(AppError):
    status_code = 400

    def __init__(self, details):
        self.details = list(details)
        super().__init__(", ".join(self.details))

    def to_dict(self):
        return {"error": self.message, "details": self.details}


class AuthError(AppError):
    status_code = 401

    def __init__(self, message="Authentication required"):
        super().__init__(message)


class NotFoundError(AppError):
    status_code = 404


class RateLimitError(AppError):
    status_code = 429


class UpstreamUnavailable(Exception):
    """A registry or identity provider call failed; callers degrade to unverified."""


def register_error_handlers(app):
    @app.errorhandler(AppError)
    def handle_app_error(err):
        if err.status_code >= 500:
            app.logger.error("%s %s failed: %s", request.method, request.path, err.message)
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(_err):
        app.logger.warning("Database integrity error on %s %s", request.method, request.path)
        return jsonify({"error": "Conflict. Resource already exists."}), 409

    @app.errorhandler(400)
    def bad_request(_err):
        return jsonify({"error": "Bad request"}), 400

    @app.errorhandler(401)
    def unauthorized(_err):
        return jsonify({"error": "Authentication required"}), 401

    @app.errorhandler(404)
    def not_found(_err):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(_err):
        return jsonify({"error": "Method not allowed"}), 405

    @app.errorhandler(413)
    def payload_too_large(_err):
        return jsonify({"error": "Payload too large"}), 413

    @app.errorhandler(429)
    def too_many_requests(err):
        limit = getattr(err, "limit", None)
        message = getattr(limit, "error_message", None) or DEFAULT_RATE_LIMIT_MESSAGE
        app.logger.warning("Rate limit exceeded on %s %s", request.method, request.path)
        return jsonify({"error": message}), 429

    @app.errorhandler(500)
    def server_error(_err):
        app.logger.exception("Internal server error")
        return jsonify({"error": "Internal server error"}), 500

    @app.errorhandler(Exception)
    def unhandled_error(err):
        if isinstance(err, HTTPException):
            return jsonify({"error": err.description or err.name}), err.code
        app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"error": "Internal server error"}), 500
