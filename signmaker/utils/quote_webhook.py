"""
Quote webhook delivery.

A stored QuoteSubmission is POSTed as JSON (its payload plus `id` and `submission_id`)
to QUOTE_WEBHOOK_URL. A 2xx response marks the row webhook_sent; anything else
is logged and left for follow-up, the submission itself stays saved.
"""

import time
import logging

import requests
from flask import current_app

from .prom_metrics import observe_outbound_call

logger = logging.getLogger(__name__)


def send_quote_webhook(submission, payload):
    """Deliver a submission; returns True when the webhook accepted it"""
    url = current_app.config.get('QUOTE_WEBHOOK_URL')
    if not url:
        logger.info(f"QUOTE_WEBHOOK_URL not set; submission {submission.id} stored only")
        return False

    body = dict(payload, id=submission.id, submission_id=submission.id)
    started = time.time()
    try:
        response = requests.post(url, json=body, timeout=current_app.config.get('WEBHOOK_TIMEOUT', 30))
    except requests.RequestException as e:
        observe_outbound_call('quote_webhook', time.time() - started, ok=False)
        logger.error(f"Quote webhook failed for {submission.id}: {str(e)}")
        return False

    observe_outbound_call('quote_webhook', time.time() - started, ok=response.ok)
    if not response.ok:
        logger.error(f"Quote webhook returned {response.status_code} for {submission.id}")
        return False

    submission.mark_webhook_sent()
    logger.info(f"Quote {submission.id} delivered to webhook")
    return True
