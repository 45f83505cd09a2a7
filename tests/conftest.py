"""
Test configuration and shared fixtures for SignMaker.ai tests.

This file contains:
- Centralized test configuration
- Shared fixtures used across multiple test files
- Common test utilities
"""

import pytest
from datetime import datetime, timedelta
from signmaker import create_app
from signmaker.models import db, User, Conversation, Message
from signmaker.utils.auth_utils import hash_password, start_admin_session


ADMIN_PASSWORD = 'admin-test-pass'

# Centralized test configuration
TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SECRET_KEY': 'test-secret-key',
    'MAIL_SERVER': 'localhost',
    'MAIL_PORT': 587,
    'MAIL_USE_TLS': False,
    'MAIL_USE_SSL': False,
    'MAIL_USERNAME': 'test@example.com',
    'MAIL_PASSWORD': 'test-password',
    'MAIL_DEFAULT_SENDER': 'test@example.com',
    'MAIL_SUPPRESS_SEND': True,
    'TRANSCRIPT_SENDER': 'SignMaker.ai <ask@signmaker.ai>',
    'ALERT_SENDER': 'SignMaker.ai Alerts <notifications@signmaker.ai>',
    'ALERT_RECIPIENT': 'alerts@example.com',
    'CHAT_WEBHOOK_URL': '',
    'QUOTE_WEBHOOK_URL': '',
    'GOOGLE_CSE_API_KEY': '',
    'GOOGLE_CSE_ID': '',
    'OPEN_AI_API_KEYS': '',
    'ADMIN_PASSWORD_HASH': hash_password(ADMIN_PASSWORD),
    'CORS_ALLOWED_ORIGINS': ['https://signmaker.ai'],
}


@pytest.fixture
def app():
    """Create and configure a new app instance for each test."""
    app = create_app(TEST_CONFIG)
    return app


@pytest.fixture
def client(app):
    """Create a test client for the app."""
    return app.test_client()


@pytest.fixture
def app_context(app):
    """Create an application context for database operations."""
    with app.app_context():
        yield


@pytest.fixture
def db_session(app_context):
    """Create a database session and clean up after tests."""
    db.create_all()
    yield db.session
    db.session.remove()
    db.drop_all()


@pytest.fixture
def sample_user(db_session):
    """A professional user with no phone on file."""
    user = User('Dana Fabricator', 'dana@example.com', experience_level='veteran',
                intent='active', tos_accepted=True)
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def shopper_user(db_session):
    """A shopper with a business name."""
    user = User('Sam Shopper', 'sam@example.com', experience_level='new',
                intent='shopping', tos_accepted=True, business_name="Sam's Bakery")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def sample_conversation(db_session, sample_user):
    """An empty conversation owned by sample_user."""
    conversation = Conversation(user_id=sample_user.id, offers_shown=[])
    db_session.add(conversation)
    db_session.commit()
    return conversation


@pytest.fixture
def conversation_with_messages(db_session, sample_conversation):
    """A conversation holding one question and one answer."""
    db_session.add(Message(conversation_id=sample_conversation.id, role='user',
                           content='What is the best LED module for channel letters?',
                           created_at=datetime.utcnow() - timedelta(minutes=2)))
    db_session.add(Message(conversation_id=sample_conversation.id, role='assistant',
                           content='For most channel letters a 3-LED module works well.\nSpace them evenly.',
                           created_at=datetime.utcnow() - timedelta(minutes=1)))
    db_session.commit()
    return sample_conversation


@pytest.fixture
def admin_token(db_session):
    """A live admin session token."""
    return start_admin_session().token


@pytest.fixture
def admin_headers(admin_token):
    return {'X-Admin-Token': admin_token}


@pytest.fixture
def admin_password():
    """Plain-text password matching ADMIN_PASSWORD_HASH."""
    return ADMIN_PASSWORD
