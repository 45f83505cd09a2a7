"""
Routes Package

This package contains all Flask route blueprints.
"""

from .main import main_bp
from .api import api_bp
from .quote import quote_bp
from .admin import admin_bp

__all__ = [
    'main_bp',
    'api_bp',
    'quote_bp',
    'admin_bp',
]
