"""
Database Configuration

FLOW OVERVIEW
- Provides the global SQLAlchemy instance `db` used across all models.
- Initialized in the app factory (signmaker/__init__.py) with app context.
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
