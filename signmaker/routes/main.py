"""
Main Routes

FLOW OVERVIEW
- / [GET]
  • Service banner (the chat UI is served separately).
- /health [GET]
  • JSON health check, including a database ping.
- /metrics [GET]
  • Prometheus exposition.
"""

from datetime import datetime
from flask import Blueprint, jsonify, Response, current_app
from sqlalchemy import text
from ..models import db
from ..utils.prom_metrics import metrics_latest, CONTENT_TYPE_LATEST

main_bp = Blueprint('main', __name__)


@main_bp.route('/')
def home():
    return jsonify({'service': 'SignMaker.ai API', 'status': 'ok'})


@main_bp.route('/health')
def health():
    """Health check endpoint"""
    try:
        db.session.execute(text('SELECT 1'))
        database = 'ok'
    except Exception as e:
        current_app.logger.error(f"Health check database ping failed: {str(e)}")
        database = 'unavailable'

    status_code = 200 if database == 'ok' else 503
    return jsonify({
        'status': 'healthy' if status_code == 200 else 'degraded',
        'database': database,
        'timestamp': datetime.utcnow().isoformat(),
    }), status_code


@main_bp.route('/metrics')
def metrics():
    """Prometheus metrics endpoint."""
    output = metrics_latest()
    return Response(output, mimetype=CONTENT_TYPE_LATEST)
