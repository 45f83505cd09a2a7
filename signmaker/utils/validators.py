"""
Input Validation Utilities

FLOW OVERVIEW
- validate_email(email)
  • RFC-like syntax checks; returns sanitized lowercased value.
- validate_phone(phone)
  • Accepts digits, spaces and + - ( ) . characters, max 20 chars after trimming.
- validate_text(value, field, max_length, required)
  • Trim, bound length, reject markup injection.
- validate_choice(value, field, choices)
  • Enumerated fields (experience level, rating, alert type, ...).
- sanitize_input(input, max_length)
  • Trim, bound length, normalize, and remove null bytes.
"""

import re
from typing import Optional, Iterable
from dataclasses import dataclass


@dataclass
class ValidationResult:
    """Result of validation operation"""
    is_valid: bool
    error_message: Optional[str] = None
    sanitized_value: Optional[str] = None


class InputValidator:
    """Validation helpers shared by the intake, quote and admin endpoints"""

    EMAIL_PATTERN = re.compile(
        r'^[a-zA-Z0-9.!#$%&\'*+/=?^_`{|}~-]+@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)+$'
    )

    PHONE_PATTERN = re.compile(r'^\+?[0-9 ()\-.]{7,20}$')

    MARKUP_PATTERNS = [
        r'<script[^>]*>',
        r'javascript:',
        r'<iframe[^>]*>',
        r'data:text/html',
        r'vbscript:',
        r'<[a-z]+[^>]*\son\w+\s*=',
    ]

    @classmethod
    def validate_email(cls, email: str, max_length: int = 255) -> ValidationResult:
        """
        Validate an email address

        Args:
            email: Email address to validate
            max_length: Column limit for the address

        Returns:
            ValidationResult with validation status and sanitized value
        """
        if not email or not isinstance(email, str):
            return ValidationResult(False, "Email must be a non-empty string")

        email = email.strip()
        if email == "":
            return ValidationResult(False, "Email cannot be empty")

        if len(email) > max_length:
            return ValidationResult(False, f"Email address too long (max {max_length} characters)")

        if not cls.EMAIL_PATTERN.match(email):
            return ValidationResult(False, "Invalid email format")

        local_part, domain = email.rsplit('@', 1)
        if len(local_part) > 64:
            return ValidationResult(False, "Email local part too long (max 64 characters)")

        if local_part.startswith('.') or local_part.endswith('.') or '..' in local_part:
            return ValidationResult(False, "Invalid email format")

        if '..' in domain:
            return ValidationResult(False, "Domain cannot contain consecutive dots")

        return ValidationResult(True, sanitized_value=email.lower())

    @classmethod
    def validate_phone(cls, phone: str, required: bool = False) -> ValidationResult:
        """Validate a phone number; empty is allowed unless required"""
        if phone is None or (isinstance(phone, str) and phone.strip() == ""):
            if required:
                return ValidationResult(False, "Phone is required")
            return ValidationResult(True, sanitized_value=None)

        if not isinstance(phone, str):
            return ValidationResult(False, "Phone must be a string")

        phone = phone.strip()
        if len(phone) > 20:
            return ValidationResult(False, "Phone number too long (max 20 characters)")

        if not cls.PHONE_PATTERN.match(phone):
            return ValidationResult(False, "Invalid phone number")

        return ValidationResult(True, sanitized_value=phone)

    @classmethod
    def validate_text(cls, value, field: str, max_length: int = 1000,
                      required: bool = False) -> ValidationResult:
        """Validate a free-text field"""
        if value is None or (isinstance(value, str) and value.strip() == ""):
            if required:
                return ValidationResult(False, f"{field} is required")
            return ValidationResult(True, sanitized_value=None)

        if not isinstance(value, str):
            return ValidationResult(False, f"{field} must be a string")

        value = value.strip()
        if len(value) > max_length:
            return ValidationResult(False, f"{field} must be {max_length} characters or less")

        if cls._contains_markup(value):
            return ValidationResult(False, f"{field} contains invalid content")

        return ValidationResult(True, sanitized_value=cls.sanitize_input(value, max_length))

    @classmethod
    def validate_choice(cls, value, field: str, choices: Iterable[str],
                        required: bool = True) -> ValidationResult:
        """Validate that value is one of the allowed choices"""
        if value is None or value == "":
            if required:
                return ValidationResult(False, f"{field} is required")
            return ValidationResult(True, sanitized_value=None)

        choices = tuple(choices)
        if value not in choices:
            return ValidationResult(False, f"{field} must be one of: {', '.join(choices)}")

        return ValidationResult(True, sanitized_value=value)

    @classmethod
    def sanitize_input(cls, input_string: str, max_length: int = 1000) -> str:
        """
        Sanitize user input

        Args:
            input_string: Input string to sanitize
            max_length: Maximum allowed length

        Returns:
            Sanitized string
        """
        if not input_string:
            return ""

        sanitized = str(input_string).strip()

        if len(sanitized) > max_length:
            sanitized = sanitized[:max_length]

        sanitized = sanitized.replace('\x00', '')
        sanitized = sanitized.replace('\r\n', '\n').replace('\r', '\n')

        return sanitized

    @classmethod
    def _contains_markup(cls, text: str) -> bool:
        """Check if text contains script/markup injection patterns"""
        for pattern in cls.MARKUP_PATTERNS:
            if re.search(pattern, text, re.IGNORECASE):
                return True
        return False


# Convenience functions for common validations
def validate_email(email: str, max_length: int = 255) -> ValidationResult:
    """Validate email address"""
    return InputValidator.validate_email(email, max_length)


def validate_phone(phone: str, required: bool = False) -> ValidationResult:
    """Validate phone number"""
    return InputValidator.validate_phone(phone, required)


def validate_text(value, field: str, max_length: int = 1000, required: bool = False) -> ValidationResult:
    """Validate free text"""
    return InputValidator.validate_text(value, field, max_length, required)


def validate_choice(value, field: str, choices, required: bool = True) -> ValidationResult:
    """Validate enumerated value"""
    return InputValidator.validate_choice(value, field, choices, required)


def sanitize_input(input_string: str, max_length: int = 1000) -> str:
    """Sanitize user input"""
    return InputValidator.sanitize_input(input_string, max_length)
