"""
SignMaker.ai Application Package

FLOW OVERVIEW
- create_app(test_config=None)
  • Build Flask app, apply config (env-based, then test overrides), init extensions (DB, Mail).
  • Register blueprints: main (/), api (/api), quote (/api/quote), admin (/admin).
  • Register global error handlers, CORS headers and per-request Prometheus timing.
  • Create missing tables.
"""

import time
from flask import Flask, g, request
from .models import db
from .routes import main_bp, api_bp, quote_bp, admin_bp
from .config import Config
from .utils.mailer import mail, register_template_filters
from .utils.prom_metrics import observe_request

CORS_ALLOWED_HEADERS = 'authorization, x-client-info, apikey, content-type, x-admin-token'
CORS_ALLOWED_METHODS = 'GET, POST, DELETE, OPTIONS'


def register_request_hooks(app):
    """CORS headers and request metrics for every response"""

    @app.before_request
    def start_timer():
        g.request_started = time.time()

    @app.after_request
    def finish_request(response):
        origin = request.headers.get('Origin')
        allowed = app.config.get('CORS_ALLOWED_ORIGINS') or []
        if origin and (origin in allowed or '*' in allowed):
            response.headers['Access-Control-Allow-Origin'] = origin
            response.headers['Vary'] = 'Origin'
            response.headers['Access-Control-Allow-Headers'] = CORS_ALLOWED_HEADERS
            response.headers['Access-Control-Allow-Methods'] = CORS_ALLOWED_METHODS

        started = g.pop('request_started', None)
        if started is not None:
            observe_request(request.endpoint or 'unknown', response.status_code, time.time() - started)
        return response


def create_app(test_config=None):
    """Application factory pattern for production deployment"""
    app = Flask(__name__)

    # Configuration
    app.config.from_object(Config())
    if test_config:
        # Test configuration overrides the environment
        app.config.update(test_config)

    # Initialize extensions
    db.init_app(app)
    mail.init_app(app)
    register_template_filters(app)

    # Register blueprints
    app.register_blueprint(main_bp)
    app.register_blueprint(api_bp, url_prefix='/api')
    app.register_blueprint(quote_bp, url_prefix='/api/quote')
    app.register_blueprint(admin_bp, url_prefix='/admin')

    # Register error handlers
    from .utils.error_handlers import register_error_handlers
    register_error_handlers(app)
    register_request_hooks(app)

    with app.app_context():
        db.create_all()

    return app
