"""
Application Configuration

FLOW OVERVIEW
- Config.__init__
  • Reads FLASK_ENV to select which .env file to load (dev/prod). Testing bypasses file load.
- Properties expose configuration values, defaulting to sensible development-safe defaults.
- Outbound integrations (chat webhook, quote webhook, Google CSE, OpenAI) are
  optional; an unset value switches the matching feature to its fallback.
"""

import os
from dotenv import load_dotenv

class Config:
    """Base configuration class"""

    def __init__(self):
        env_file = os.getenv('FLASK_ENV', 'development')
        if env_file == 'testing':
            # For testing, don't load config files, use environment variables directly
            pass
        elif env_file == 'production':
            load_dotenv('config.prod.env')
        else:
            load_dotenv('config.env')  # Default to development

    @property
    def SECRET_KEY(self):
        """Application secret key"""
        return os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')

    @property
    def SQLALCHEMY_DATABASE_URI(self):
        """Database connection URI"""
        return os.getenv('DATABASE_URL', 'sqlite:///signmaker.db')

    @property
    def SQLALCHEMY_TRACK_MODIFICATIONS(self):
        return False

    @property
    def MAX_CONTENT_LENGTH(self):
        """Largest accepted request body in bytes"""
        return int(os.getenv('MAX_CONTENT_LENGTH', 65536))

    @property
    def MAIL_SERVER(self):
        """Mail server hostname"""
        return os.getenv('MAIL_SERVER', 'smtp.gmail.com')

    @property
    def MAIL_PORT(self):
        return int(os.getenv('MAIL_PORT', 587))

    @property
    def MAIL_USE_TLS(self):
        return os.getenv('MAIL_USE_TLS', 'True').lower() == 'true'

    @property
    def MAIL_USE_SSL(self):
        return os.getenv('MAIL_USE_SSL', 'False').lower() == 'true'

    @property
    def MAIL_USERNAME(self):
        return os.getenv('MAIL_USERNAME')

    @property
    def MAIL_PASSWORD(self):
        return os.getenv('MAIL_PASSWORD')

    @property
    def MAIL_DEFAULT_SENDER(self):
        """Default sender email address"""
        return os.getenv('MAIL_DEFAULT_SENDER', 'SignMaker.ai <ask@signmaker.ai>')

    @property
    def TRANSCRIPT_SENDER(self):
        """From address for conversation transcripts"""
        return os.getenv('TRANSCRIPT_SENDER', 'SignMaker.ai <ask@signmaker.ai>')

    @property
    def ALERT_SENDER(self):
        """From address for internal alerts and reports"""
        return os.getenv('ALERT_SENDER', 'SignMaker.ai Alerts <notifications@signmaker.ai>')

    @property
    def ALERT_RECIPIENT(self):
        """Inbox that receives alerts and weekly insights"""
        return os.getenv('ALERT_RECIPIENT', 'ask@signmaker.ai')

    @property
    def SITE_URL(self):
        """Public site URL used in email links"""
        return os.getenv('SITE_URL', 'https://signmaker.ai')

    @property
    def CHAT_WEBHOOK_URL(self):
        """External chat orchestration webhook; empty means ask the LLM directly"""
        return os.getenv('CHAT_WEBHOOK_URL', '')

    @property
    def QUOTE_WEBHOOK_URL(self):
        """Webhook notified of each quote submission"""
        return os.getenv('QUOTE_WEBHOOK_URL', '')

    @property
    def WEBHOOK_TIMEOUT(self):
        """Seconds to wait on outbound webhooks"""
        return float(os.getenv('WEBHOOK_TIMEOUT', 30))

    @property
    def GOOGLE_CSE_API_KEY(self):
        return os.getenv('GOOGLE_CSE_API_KEY', '')

    @property
    def GOOGLE_CSE_ID(self):
        return os.getenv('GOOGLE_CSE_ID', '')

    @property
    def OPEN_AI_API_KEYS(self):
        """Comma separated OpenAI keys; one is picked per call"""
        return os.getenv('OPEN_AI_API_KEYS', '')

    @property
    def CHAT_MODEL(self):
        return os.getenv('CHAT_MODEL', 'gpt-4o')

    @property
    def INSIGHTS_MODEL(self):
        return os.getenv('INSIGHTS_MODEL', 'gpt-4o')

    @property
    def ADMIN_PASSWORD_HASH(self):
        """SHA-256 hex digest of the admin password"""
        return os.getenv('ADMIN_PASSWORD_HASH', '')

    @property
    def ADMIN_SESSION_HOURS(self):
        return int(os.getenv('ADMIN_SESSION_HOURS', 24))

    @property
    def CORS_ALLOWED_ORIGINS(self):
        """Origins allowed to call the JSON API from a browser"""
        origins = os.getenv('CORS_ALLOWED_ORIGINS', 'https://signmaker.ai,http://localhost:5173')
        return [o.strip() for o in origins.split(',') if o.strip()]

    @property
    def SESSION_COOKIE_SECURE(self):
        return False  # Set to True in production with HTTPS

    @property
    def SESSION_COOKIE_HTTPONLY(self):
        return True
