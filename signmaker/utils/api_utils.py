"""
API Utilities Module

FLOW OVERVIEW
- APIRequestValidator
  • validate_request_size → enforce the 64KB body limit.
  • validate_json_request → parse/validate JSON and return (ok, data, error).
  • validate_required → report the first missing/blank required field.

- APIResponseFormatter
  • format_error → `{success: false, error, error_code}` plus any extra keys.
  • format_server_error → consistent unexpected error payload.

- parse_json_request() combines size + JSON checks for route handlers and
  returns either the body or a ready-to-return (response, status) pair.
"""

import logging
from typing import Dict, Any, Tuple, Optional, Iterable
from flask import request, jsonify


MAX_BODY_BYTES = 65536


def get_client_ip() -> str:
    """Client IP, honouring the first X-Forwarded-For hop"""
    forwarded = request.headers.get('X-Forwarded-For', '')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.remote_addr or 'unknown'


class APIRequestValidator:
    """Handles common request validation logic."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def validate_json_request(self, client_ip: str = None) -> Tuple[bool, Optional[Dict[str, Any]], Optional[Dict[str, Any]]]:
        """
        Validate and parse JSON request.

        Args:
            client_ip: Client IP for logging

        Returns:
            Tuple of (is_valid, data, error_response)
        """
        try:
            data = request.get_json(force=True)
        except Exception as e:
            self.logger.warning(f"Invalid JSON from {client_ip}: {str(e)}")
            return False, None, response_formatter.format_error(
                'Invalid JSON format. Request must be valid JSON.', 'INVALID_JSON')

        if data is None:
            self.logger.warning(f"Empty request body from {client_ip}")
            return False, None, response_formatter.format_error(
                'Invalid request format. JSON payload required.', 'MISSING_JSON')

        if not isinstance(data, dict):
            self.logger.warning(f"Invalid data type from {client_ip}: {type(data)}")
            return False, None, response_formatter.format_error(
                'Request data must be a JSON object.', 'INVALID_DATA_TYPE')

        return True, data, None

    def validate_request_size(self, client_ip: str = None) -> Tuple[bool, Optional[Dict[str, Any]]]:
        """
        Validate request size limits.

        Args:
            client_ip: Client IP for logging

        Returns:
            Tuple of (is_valid, error_response)
        """
        content_length = request.content_length or 0
        if content_length > MAX_BODY_BYTES:
            self.logger.warning(f"Large request blocked from {client_ip}: {content_length} bytes")
            return False, response_formatter.format_error(
                'Request too large. Maximum 64KB allowed.', 'REQUEST_TOO_LARGE')

        return True, None

    def validate_required(self, data: Dict[str, Any], fields: Iterable[str],
                          client_ip: str = None) -> Tuple[bool, Optional[Dict[str, Any]]]:
        """Check that every field is present and not blank."""
        for field in fields:
            value = data.get(field)
            if value is None or (isinstance(value, str) and not value.strip()):
                self.logger.info(f"Missing required field '{field}' from {client_ip}")
                return False, response_formatter.format_error(f'{field} is required', 'MISSING_FIELD')
        return True, None


class APIResponseFormatter:
    """Handles common response formatting logic."""

    @staticmethod
    def format_error(message: str, error_code: str = 'VALIDATION_ERROR', **extra) -> Dict[str, Any]:
        """Format a client error payload."""
        response = {
            'success': False,
            'error': message,
            'error_code': error_code,
        }
        response.update(extra)
        return response

    @staticmethod
    def format_server_error(message: str = 'Internal server error. Please try again later.',
                            error_code: str = 'INTERNAL_SERVER_ERROR') -> Dict[str, Any]:
        """Format server error response."""
        return {
            'success': False,
            'error': message,
            'error_code': error_code,
        }


def parse_json_request():
    """Return (data, None) or (None, (response, status)) for a JSON route."""
    client_ip = get_client_ip()

    ok, error = request_validator.validate_request_size(client_ip)
    if not ok:
        return None, (jsonify(error), 413)

    ok, data, error = request_validator.validate_json_request(client_ip)
    if not ok:
        return None, (jsonify(error), 400)

    return data, None


# Global instances
request_validator = APIRequestValidator()
response_formatter = APIResponseFormatter()
