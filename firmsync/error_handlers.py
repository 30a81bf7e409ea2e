"""
Global Error Handlers for FirmSync
Turns FirmSync errors and HTTP exceptions into JSON error responses
"""

import traceback
from datetime import datetime

from flask import current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from .errors import FirmSyncError
from .monitoring import ErrorReporter, get_logger

logger = get_logger('error_handlers')


def _error_reporter() -> ErrorReporter:
    return current_app.extensions['firmsync'].error_reporter


def create_error_response(error_type, message, status_code=500, details=None, error_id=None):
    """
    Create standardized error response

    Args:
        error_type: Type of error (string)
        message: Error message
        status_code: HTTP status code
        details: Additional error details (dict)
        error_id: Id handed out by the error reporter

    Returns:
        Tuple of (response_dict, status_code)
    """
    response = {
        'error': error_type,
        'message': message,
        'status_code': status_code,
        'timestamp': datetime.now().isoformat()
    }

    if error_id:
        response['error_id'] = error_id

    if details:
        response['details'] = details

    return response, status_code


def register_error_handlers(app):
    """Register global error handlers with Flask app"""

    @app.errorhandler(FirmSyncError)
    def handle_firmsync_error(error):
        status_code = error.http_status
        error_id = None

        if status_code >= 500:
            error_id = _error_reporter().report_error(
                error.error_code,
                error.message,
                {
                    'path': request.path,
                    'method': request.method,
                    'details': error.details
                }
            )
            logger.error("Request failed",
                         path=request.path,
                         method=request.method,
                         error_code=error.error_code,
                         error_id=error_id,
                         exception=error)
        else:
            logger.warning("Request rejected",
                           path=request.path,
                           method=request.method,
                           error_code=error.error_code,
                           status_code=status_code,
                           error_message=error.message)

        body, status = create_error_response(error.error_code, error.message, status_code,
                                             details=error.details, error_id=error_id)
        return jsonify(body), status

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        """Handle general HTTP exceptions"""
        logger.warning("HTTP Exception",
                       status_code=error.code,
                       path=request.path,
                       method=request.method,
                       description=error.description)

        body, status = create_error_response(error.name, error.description, error.code)
        return jsonify(body), status

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        """Handle unexpected exceptions"""
        error_id = _error_reporter().report_error(
            'unexpected_error',
            str(error),
            {
                'path': request.path,
                'method': request.method,
                'remote_addr': request.remote_addr,
                'traceback': traceback.format_exc(),
                'error_type': type(error).__name__
            }
        )

        logger.critical("Unexpected error",
                        path=request.path,
                        method=request.method,
                        error_id=error_id,
                        error_type=type(error).__name__,
                        exception=error)

        body, status = create_error_response(
            'Unexpected Error',
            'An unexpected error occurred. The development team has been notified.',
            500,
            error_id=error_id
        )
        return jsonify(body), status
