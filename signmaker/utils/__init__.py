"""
Utilities Package

Request plumbing (api_utils, error_handlers, auth_utils, validators), outbound
services (chat, llm_client, image_search, mailer, quote_webhook, insights) and
pure business rules (lead_extraction, personas, quote_wizard, glossary, branding).
"""

from . import auth_utils
from . import validators
from . import error_handlers

__all__ = [
    'auth_utils',
    'validators',
    'error_handlers'
]
