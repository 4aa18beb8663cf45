"""
Error types raised by the portal and the Flask handlers that render them.

Every API error is returned as JSON ``{"error": "..."}``; validation errors
may carry a ``details`` list as well.
"""
import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class PortalError(HTTPException):
    code = 500
    description = "Internal server error"

    def __init__(self, description=None, details=None):
        super().__init__(description=description or self.description)
        self.details = details


class ValidationFailed(PortalError):
    code = 400
    description = "Validation error"


class AuthenticationRequired(PortalError):
    code = 401
    description = "Access token required"


class AdminRequired(PortalError):
    code = 403
    description = "Admin access required"


class RecordNotFound(PortalError):
    code = 404
    description = "Resource not found"

    def __init__(self, resource=None):
        super().__init__(f"{resource} not found" if resource else None)


class DuplicateRecord(PortalError):
    code = 409
    description = "Record already exists"


class DuplicateSubmission(DuplicateRecord):
    description = "Feedback already submitted for this subject"


class ScheduleConflict(DuplicateRecord):
    description = "Timetable entry overlaps an existing session"


def _error_response(error, status):
    body = {'error': error.description}
    details = getattr(error, 'details', None)
    if details:
        body['details'] = details
    return jsonify(body), status


def register_error_handlers(app):
    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return _error_response(error, error.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        logger.exception(f"Unhandled error: {error}")
        return jsonify({'error': 'Internal server error'}), 500
