"""
Model Utilities

This module contains utility functions for the models package.
"""

import uuid


def generate_uuid():
    """Generate a string UUID4 used as primary key"""
    return str(uuid.uuid4())


def generate_session_token():
    """Generate an admin session token (36-char UUID string)"""
    return str(uuid.uuid4())


def isoformat(value):
    """Serialize a date/datetime column for JSON, passing None through"""
    return value.isoformat() if value is not None else None


def apply_updates(instance, updates, editable_fields):
    """Copy whitelisted keys from `updates` onto a model instance.

    Returns the list of field names that were changed.
    """
    changed = []
    for field in editable_fields:
        if field in updates:
            setattr(instance, field, updates[field])
            changed.append(field)
    return changed
