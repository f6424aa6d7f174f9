"""
Error Types
Domain errors raised by services and rendered as JSON by the app
"""
import logging

from flask import jsonify

logger = logging.getLogger(__name__)


class ExamPrepError(Exception):
    """Base error; subclasses set the HTTP status"""
    status_code = 500
    default_message = "Request failed"

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_dict(self):
        return {"error": self.message}


class ValidationError(ExamPrepError):
    """Missing or malformed input"""
    status_code = 400
    default_message = "Invalid input"


class Unauthorized(ExamPrepError):
    """Resolved role does not permit the operation"""
    status_code = 403
    default_message = "Unauthorized"


class NotFound(ExamPrepError):
    """Referenced user, assignment, question or result does not exist"""
    status_code = 404
    default_message = "Not found"


class DuplicateSubmission(ExamPrepError):
    """Submission token already produced a result"""
    status_code = 409
    default_message = "Test already submitted"

    def __init__(self, result_id=None, message=None):
        super().__init__(message)
        self.result_id = result_id

    def to_dict(self):
        payload = super().to_dict()
        payload["testResultId"] = self.result_id
        return payload


class InvalidTransition(ExamPrepError):
    """Operation not allowed in the session's current state"""
    status_code = 409
    default_message = "Operation not allowed in the current state"


class PersistenceFailure(ExamPrepError):
    """Underlying store failed; nothing from the unit of work is visible"""
    status_code = 500
    default_message = "Failed to save changes"


def register_error_handlers(app):
    """Render domain errors as {"error": ...} JSON"""

    @app.errorhandler(ExamPrepError)
    def handle_exam_prep_error(error):
        if error.status_code >= 500:
            logger.error("%s: %s", type(error).__name__, error.message)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def handle_not_found(error):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(405)
    def handle_method_not_allowed(error):
        return jsonify({"error": "Method not allowed"}), 405
