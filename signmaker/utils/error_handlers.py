"""
Error Handlers

JSON error bodies for the HTTP errors Flask raises outside route handlers.
"""

from flask import jsonify
from .api_utils import response_formatter


def json_error(message, status_code, error_code):
    return jsonify(response_formatter.format_error(message, error_code)), status_code


def register_error_handlers(app):
    """Register error handlers with the Flask app"""

    @app.errorhandler(400)
    def bad_request(error):
        return json_error('Bad request.', 400, 'BAD_REQUEST')

    @app.errorhandler(404)
    def not_found(error):
        return json_error('The requested resource does not exist.', 404, 'NOT_FOUND')

    @app.errorhandler(405)
    def method_not_allowed(error):
        return json_error('Method not allowed.', 405, 'METHOD_NOT_ALLOWED')

    @app.errorhandler(413)
    def request_too_large(error):
        return json_error('Request too large. Maximum 64KB allowed.', 413, 'REQUEST_TOO_LARGE')

    @app.errorhandler(500)
    def internal_error(error):
        from ..models import db
        db.session.rollback()
        app.logger.error(f"Unhandled server error: {error}")
        return jsonify(response_formatter.format_server_error()), 500
