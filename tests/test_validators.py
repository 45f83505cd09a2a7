"""
Tests for Input Validation Utilities

Covers the email, phone, free-text and choice validators used by the intake,
alert, feedback and admin endpoints.
"""

import pytest
from signmaker.utils.validators import (
    InputValidator, ValidationResult, validate_email, validate_phone,
    validate_text, validate_choice, sanitize_input
)


class TestEmailValidation:
    """Test email validation"""

    def test_valid_emails(self):
        """Test that valid email addresses pass validation"""
        valid_emails = [
            "test@example.com",
            "user.name@domain.co.uk",
            "user+tag@example.org",
            "user-name@subdomain.example.com",
            "user_name@example.com",
            "a@b.c",  # Minimal valid email
        ]

        for email in valid_emails:
            result = validate_email(email)
            assert result.is_valid, f"Email '{email}' should be valid: {result.error_message}"
            assert result.sanitized_value == email.lower()

    def test_invalid_emails(self):
        """Test that invalid email addresses fail validation"""
        invalid_emails = [
            "",
            "   ",
            "invalid-email",
            "@example.com",
            "user@",
            "user name@example.com",
            "user@example..com",
            ".user@example.com",
        ]

        for email in invalid_emails:
            result = validate_email(email)
            assert not result.is_valid, f"Email '{email}' should be invalid"
            assert result.error_message is not None

    def test_email_is_lowercased_and_trimmed(self):
        result = validate_email("  Owner@SignShop.COM ")
        assert result.is_valid
        assert result.sanitized_value == "owner@signshop.com"

    def test_email_length_limit(self):
        long_email = "a" * 60 + "@" + "b" * 250 + ".com"
        result = validate_email(long_email)
        assert not result.is_valid
        assert "too long" in result.error_message

    def test_non_string_email(self):
        assert not validate_email(None).is_valid
        assert not validate_email(12345).is_valid


class TestPhoneValidation:
    """Test phone validation"""

    def test_common_formats(self):
        for phone in ["(512) 555-0142", "512-555-0142", "+1 512 555 0142", "512.555.0142"]:
            result = validate_phone(phone)
            assert result.is_valid, f"Phone '{phone}' should be valid"
            assert result.sanitized_value == phone

    def test_empty_phone_optional(self):
        result = validate_phone("")
        assert result.is_valid
        assert result.sanitized_value is None

    def test_empty_phone_required(self):
        result = validate_phone(None, required=True)
        assert not result.is_valid
        assert result.error_message == "Phone is required"

    def test_too_long(self):
        result = validate_phone("1" * 21)
        assert not result.is_valid

    def test_letters_rejected(self):
        assert not validate_phone("call me maybe").is_valid


class TestTextValidation:
    """Test free-text validation"""

    def test_required_text(self):
        result = validate_text("", "name", required=True)
        assert not result.is_valid
        assert result.error_message == "name is required"

    def test_optional_blank_text(self):
        result = validate_text("   ", "business_name")
        assert result.is_valid
        assert result.sanitized_value is None

    def test_length_limit(self):
        result = validate_text("x" * 101, "name", max_length=100)
        assert not result.is_valid
        assert "100 characters" in result.error_message

    def test_markup_rejected(self):
        for value in ["<script>alert(1)</script>", "javascript:alert(1)", '<img src=x onerror="x()">']:
            result = validate_text(value, "comment")
            assert not result.is_valid, f"'{value}' should be rejected"

    def test_trims_and_normalizes(self):
        result = validate_text("  Halo lit\r\nletters  ", "question")
        assert result.is_valid
        assert result.sanitized_value == "Halo lit\nletters"

    def test_non_string(self):
        assert not validate_text(42, "name").is_valid


class TestChoiceValidation:
    """Test enumerated value validation"""

    def test_valid_choice(self):
        result = validate_choice("helpful", "rating", ("helpful", "not_helpful"))
        assert result.is_valid
        assert result.sanitized_value == "helpful"

    def test_invalid_choice_lists_options(self):
        result = validate_choice("meh", "rating", ("helpful", "not_helpful"))
        assert not result.is_valid
        assert "helpful, not_helpful" in result.error_message

    def test_missing_required_choice(self):
        result = validate_choice(None, "intent", ("shopping",))
        assert not result.is_valid
        assert result.error_message == "intent is required"

    def test_missing_optional_choice(self):
        assert validate_choice("", "timeline", ("asap",), required=False).is_valid


class TestSanitizeInput:
    """Test input sanitization"""

    def test_strips_null_bytes(self):
        assert sanitize_input("abc\x00def") == "abcdef"

    def test_truncates(self):
        assert sanitize_input("x" * 20, max_length=5) == "xxxxx"

    def test_empty(self):
        assert sanitize_input(None) == ""

    def test_class_and_function_agree(self):
        assert InputValidator.sanitize_input(" hi ") == sanitize_input(" hi ")


def test_validation_result_defaults():
    result = ValidationResult(True)
    assert result.error_message is None
    assert result.sanitized_value is None
