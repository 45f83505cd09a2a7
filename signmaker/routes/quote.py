"""
Quote Wizard Routes

FLOW OVERVIEW
- /api/quote/options [GET]
  • Reference data: lighting profiles, heights, quantities, budgets, artwork rules.
- /api/quote/environment [POST]
  • {"environment"} → the default lighting profile the wizard switches to.
- /api/quote/validate [POST]
  • {"step", "form"} → {"valid", "errors"} for that step.
- /api/quote/artwork [POST]
  • {"filename", "size"} → whether the upload would be accepted.
- /api/quote/submit [POST]
  • Validate every step, store a QuoteSubmission, forward it to the quote webhook.
"""

from flask import Blueprint, jsonify, current_app
from ..models import db, QuoteSubmission
from ..utils.api_utils import parse_json_request, response_formatter
from ..utils import quote_wizard
from ..utils.quote_wizard import QuoteForm
from ..utils.quote_webhook import send_quote_webhook

quote_bp = Blueprint('quote', __name__)


@quote_bp.route('/options', methods=['GET'])
def quote_options():
    return jsonify(quote_wizard.options())


@quote_bp.route('/environment', methods=['POST'])
def select_environment():
    data, error = parse_json_request()
    if error:
        return error

    form = QuoteForm()
    try:
        form.select_environment(data.get('environment'))
    except ValueError as e:
        return jsonify(response_formatter.format_error(str(e))), 400

    return jsonify({
        'indoor_outdoor': form.indoor_outdoor,
        'lighting_profile_sku': form.lighting_profile_sku,
        'lighting_profile_name': form.lighting_profile_name,
    })


@quote_bp.route('/validate', methods=['POST'])
def validate_step():
    data, error = parse_json_request()
    if error:
        return error

    step = data.get('step')
    if not isinstance(step, int) or isinstance(step, bool) or step not in quote_wizard.STEPS:
        return jsonify(response_formatter.format_error('step must be between 1 and 5')), 400

    form = data.get('form') or {}
    if not isinstance(form, dict):
        return jsonify(response_formatter.format_error('form must be an object')), 400

    errors = quote_wizard.validate_step(step, QuoteForm.from_dict(form))
    return jsonify({'valid': not errors, 'errors': errors})


@quote_bp.route('/artwork', methods=['POST'])
def check_artwork():
    data, error = parse_json_request()
    if error:
        return error

    size = data.get('size')
    if not isinstance(size, int) or isinstance(size, bool):
        size = None

    result = quote_wizard.check_artwork(data.get('filename'), size)
    if not result.is_valid:
        return jsonify(response_formatter.format_error(result.error_message, 'INVALID_ARTWORK')), 400
    return jsonify({'valid': True})


@quote_bp.route('/submit', methods=['POST'])
def submit_quote():
    """
    Submit a completed quote wizard.

    Returns:
    - 201 {"success": true, "submission_id", "webhook_sent"}
    - 400 {"success": false, "errors": {step: [...]}} when any step is incomplete
    """
    data, error = parse_json_request()
    if error:
        return error

    form = QuoteForm.from_dict(data.get('form') if isinstance(data.get('form'), dict) else data)
    failures = quote_wizard.validate_all(form)
    if failures:
        return jsonify(response_formatter.format_error(
            'Quote is incomplete', 'INCOMPLETE_QUOTE',
            errors={str(step): errors for step, errors in failures.items()},
        )), 400

    payload = quote_wizard.build_payload(form)
    try:
        submission = QuoteSubmission(**payload)
        db.session.add(submission)
        db.session.commit()
    except Exception:
        db.session.rollback()
        current_app.logger.error("Failed to store quote submission", exc_info=True)
        return jsonify(response_formatter.format_server_error()), 500

    current_app.logger.info(f"Quote {submission.id} stored for {submission.email}")
    webhook_sent = send_quote_webhook(submission, payload)

    return jsonify({
        'success': True,
        'submission_id': submission.id,
        'webhook_sent': webhook_sent,
    }), 201
