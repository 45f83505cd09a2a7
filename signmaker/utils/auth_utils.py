"""
Admin Authentication Utilities

FLOW OVERVIEW
- hash_password(password) → SHA-256 hex digest (what ADMIN_PASSWORD_HASH stores).
- verify_password(password, password_hash) → constant-time comparison.
- start_admin_session(hours) → purge expired sessions, issue a new token.
- admin_required → route decorator; requires a live session token in X-Admin-Token.
"""

import hashlib
import hmac
from functools import wraps
from flask import request, jsonify, g, current_app
from ..models import db, AdminSession
from .api_utils import response_formatter

ADMIN_TOKEN_HEADER = 'X-Admin-Token'
ADMIN_TOKEN_LENGTH = 36


def hash_password(password):
    """Hash a password using SHA-256"""
    return hashlib.sha256(password.encode()).hexdigest()


def verify_password(password, password_hash):
    """Verify a password against its hash"""
    return hmac.compare_digest(hash_password(password), (password_hash or '').lower())


def start_admin_session(expires_in_hours=24):
    """Create a fresh admin session after clearing expired ones"""
    AdminSession.purge_expired()
    session = AdminSession(expires_in_hours=expires_in_hours)
    db.session.add(session)
    db.session.commit()
    return session


def end_admin_session(token):
    """Delete the session for token; returns True if one existed"""
    deleted = AdminSession.query.filter_by(token=token).delete()
    db.session.commit()
    return deleted > 0


def admin_required(f):
    """Decorator to require a live admin session token"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = (request.headers.get(ADMIN_TOKEN_HEADER) or '').strip()
        if len(token) != ADMIN_TOKEN_LENGTH:
            current_app.logger.warning("Admin request with malformed or missing token")
            return jsonify(response_formatter.format_error('Unauthorized', 'UNAUTHORIZED')), 401

        session = AdminSession.get_live(token)
        if session is None:
            current_app.logger.warning("Admin request with unknown or expired token")
            return jsonify(response_formatter.format_error('Unauthorized', 'UNAUTHORIZED')), 401

        session.touch()
        g.admin_session = session
        return f(*args, **kwargs)
    return decorated_function
