#!/usr/bin/env python3
"""
SignMaker.ai application entry point.

Creates the Flask application via `create_app`. When executed directly it runs
the development server; in production a WSGI server imports `app` from here.

Environment variables of interest:
- FLASK_ENV: 'testing' switches to an in-memory database with mail suppressed.
- DATABASE_URL, SECRET_KEY, MAIL_*, webhook and API keys: consumed by `Config`.
"""

import os
import logging
from signmaker import create_app

logging.basicConfig(
    level=os.getenv('LOG_LEVEL', 'INFO'),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)

if os.getenv('FLASK_ENV') == 'testing':
    test_config = {
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': os.getenv('DATABASE_URL', 'sqlite:///:memory:'),
        'SECRET_KEY': os.getenv('SECRET_KEY', 'test-secret-key'),
        'MAIL_SUPPRESS_SEND': True,
    }
    app = create_app(test_config)
else:
    app = create_app()

if __name__ == '__main__':
    app.run(debug=os.getenv('FLASK_ENV') != 'production', host='0.0.0.0', port=int(os.getenv('PORT', 5000)))
