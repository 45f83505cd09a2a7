#!/usr/bin/env python3
"""
Unit tests for the API utilities module
"""

import pytest
from signmaker.utils.api_utils import (
    APIRequestValidator, APIResponseFormatter, request_validator, response_formatter,
    parse_json_request, get_client_ip, MAX_BODY_BYTES
)


class TestAPIRequestValidator:
    """Test the APIRequestValidator class."""

    def test_validator_creation(self):
        """Test creating an APIRequestValidator."""
        validator = APIRequestValidator()
        assert validator is not None

    def test_validate_json_request_valid(self, app):
        """Test validating a valid JSON request."""
        with app.test_request_context(json={'question': 'What is a raceway?'}):
            validator = APIRequestValidator()
            is_valid, data, error = validator.validate_json_request('127.0.0.1')

            assert is_valid is True
            assert data == {'question': 'What is a raceway?'}
            assert error is None

    def test_validate_json_request_invalid_json(self, app):
        """Test validating an invalid JSON request."""
        with app.test_request_context(data='invalid json', content_type='application/json'):
            validator = APIRequestValidator()
            is_valid, data, error = validator.validate_json_request('127.0.0.1')

            assert is_valid is False
            assert data is None
            assert error['error_code'] == 'INVALID_JSON'

    def test_validate_json_request_empty_data(self, app):
        """Test validating an empty request."""
        with app.test_request_context():
            validator = APIRequestValidator()
            is_valid, data, error = validator.validate_json_request('127.0.0.1')

            assert is_valid is False
            assert data is None
            assert error['error_code'] == 'INVALID_JSON'  # Flask returns INVALID_JSON for empty requests

    def test_validate_json_request_invalid_type(self, app):
        """Test validating a request with invalid data type."""
        with app.test_request_context(json="not a dict"):
            validator = APIRequestValidator()
            is_valid, data, error = validator.validate_json_request('127.0.0.1')

            assert is_valid is False
            assert data is None
            assert error['error_code'] == 'INVALID_DATA_TYPE'

    def test_validate_request_size(self, app):
        """Bodies over the 64KB limit are rejected."""
        with app.test_request_context(data='x' * (MAX_BODY_BYTES + 1), content_type='application/json'):
            is_valid, error = request_validator.validate_request_size('127.0.0.1')
            assert is_valid is False
            assert error['error_code'] == 'REQUEST_TOO_LARGE'

        with app.test_request_context(json={'ok': True}):
            is_valid, error = request_validator.validate_request_size('127.0.0.1')
            assert is_valid is True
            assert error is None

    def test_validate_required(self):
        """The first missing or blank field is reported."""
        ok, error = request_validator.validate_required({'user_id': 'abc'}, ['user_id'])
        assert ok is True
        assert error is None

        ok, error = request_validator.validate_required({'user_id': '  '}, ['user_id', 'content'])
        assert ok is False
        assert error['error'] == 'user_id is required'
        assert error['error_code'] == 'MISSING_FIELD'

        ok, error = request_validator.validate_required({'user_id': 'abc'}, ['user_id', 'content'])
        assert error['error'] == 'content is required'


class TestAPIResponseFormatter:
    """Test the APIResponseFormatter class."""

    def test_format_error(self):
        error = APIResponseFormatter.format_error('Invalid action', 'INVALID_ACTION')
        assert error == {'success': False, 'error': 'Invalid action', 'error_code': 'INVALID_ACTION'}

    def test_format_error_default_code_and_extras(self):
        error = response_formatter.format_error('Quote is incomplete', errors={'5': ['First name is required']})
        assert error['error_code'] == 'VALIDATION_ERROR'
        assert error['errors'] == {'5': ['First name is required']}

    def test_format_server_error(self):
        error = response_formatter.format_server_error()
        assert error['success'] is False
        assert error['error_code'] == 'INTERNAL_SERVER_ERROR'


class TestParseJsonRequest:
    """Test the combined parse helper used by the routes."""

    def test_returns_data(self, app):
        with app.test_request_context(json={'email': 'dana@example.com'}):
            data, error = parse_json_request()
            assert data == {'email': 'dana@example.com'}
            assert error is None

    def test_returns_ready_response(self, app):
        with app.test_request_context(json=[1, 2, 3]):
            data, error = parse_json_request()
            assert data is None
            response, status = error
            assert status == 400
            assert response.get_json()['error_code'] == 'INVALID_DATA_TYPE'

    @pytest.mark.parametrize('headers,expected', [
        ({'X-Forwarded-For': '203.0.113.9, 10.0.0.1'}, '203.0.113.9'),
        ({}, '127.0.0.1'),
    ])
    def test_client_ip(self, app, headers, expected):
        with app.test_request_context(headers=headers, environ_base={'REMOTE_ADDR': '127.0.0.1'}):
            assert get_client_ip() == expected
