"""
Email delivery via Flask-Mail

FLOW OVERVIEW
- mail: the Flask-Mail extension, bound in create_app().
- send_email(kind, subject, recipients, html, ...)
  • Build a flask_mail.Message, send it, record the outcome metric.
  • Returns True/False; failures are logged, never raised to the caller.
- transcript_subject(messages) / render_transcript(...): conversation transcript email.
- render_alert(...): internal alert email.
- render_insights(...): weekly insights report email.
- nl2br: template filter that escapes text and turns newlines into <br>.
"""

import logging
from datetime import datetime
from flask import current_app, render_template
from flask_mail import Mail, Message
from markupsafe import Markup, escape
from .prom_metrics import observe_email

logger = logging.getLogger(__name__)

mail = Mail()

SUBJECT_PREVIEW_CHARS = 50

ALERT_STYLES = {
    'b2b_inquiry': {'emoji': '💼', 'priority': 'high', 'color': '#28a745'},
    'hot_lead': {'emoji': '🔥', 'priority': 'high', 'color': '#dc3545'},
    'quality_issue': {'emoji': '⚠️', 'priority': 'high', 'color': '#ffc107'},
    'enterprise_interest': {'emoji': '🏢', 'priority': 'high', 'color': '#17a2b8'},
}
DEFAULT_ALERT_STYLE = {'emoji': '🔔', 'priority': 'normal', 'color': '#667eea'}


def nl2br(value):
    """Escape text and convert newlines to <br> tags"""
    return Markup('<br>').join(escape(value or '').split('\n'))


def register_template_filters(app):
    app.add_template_filter(nl2br, 'nl2br')


def mail_configured():
    """True when outbound mail has credentials (or is suppressed for tests)"""
    config = current_app.config
    return bool(config.get('MAIL_USERNAME')) or bool(config.get('MAIL_SUPPRESS_SEND'))


def long_date(value):
    """e.g. 'Saturday, October 18, 2026'"""
    return f"{value:%A, %B} {value.day}, {value.year}"


def send_email(kind, subject, recipients, html, sender=None, reply_to=None):
    """Send an HTML email; returns True when handed to the mail server"""
    try:
        msg = Message(
            subject=subject,
            recipients=list(recipients),
            html=html,
            sender=sender or current_app.config.get('MAIL_DEFAULT_SENDER'),
            reply_to=reply_to,
        )
        mail.send(msg)
        observe_email(kind, True)
        logger.info(f"Sent {kind} email to {len(msg.recipients)} recipient(s)")
        return True
    except Exception as e:
        observe_email(kind, False)
        logger.error(f"Failed to send {kind} email: {str(e)}", exc_info=True)
        return False


def transcript_subject(messages):
    """Subject line previewing the first user question"""
    first_question = next((m.content for m in messages if m.role == 'user'), 'Your conversation')
    preview = first_question[:SUBJECT_PREVIEW_CHARS]
    if len(first_question) > SUBJECT_PREVIEW_CHARS:
        preview += '...'
    return f'Your SignMaker.ai Conversation — "{preview}"'


def render_transcript(messages, user_name=None, sent_on=None):
    return render_template(
        'email/transcript.html',
        messages=messages,
        user_name=user_name or 'there',
        date=long_date(sent_on or datetime.utcnow()),
        site_url=current_app.config.get('SITE_URL', 'https://signmaker.ai'),
    )


def alert_style(alert_type):
    return ALERT_STYLES.get(alert_type, DEFAULT_ALERT_STYLE)


def alert_subject(alert_type, subject):
    return f"{alert_style(alert_type)['emoji']} [{alert_type.upper()}]: {subject}"


def render_alert(alert_type, subject, details, user=None, conversation_id=None, sent_at=None):
    return render_template(
        'email/alert.html',
        style=alert_style(alert_type),
        subject=subject,
        details=details or {},
        user=user,
        conversation_id=conversation_id,
        sent_at=(sent_at or datetime.utcnow()).strftime('%Y-%m-%d %H:%M UTC'),
        site_url=current_app.config.get('SITE_URL', 'https://signmaker.ai'),
    )


def render_insights(metrics, insights_html, period_start, period_end):
    return render_template(
        'email/insights.html',
        metrics=metrics,
        insights_html=Markup(insights_html),
        period_label=f"{period_start:%B} {period_start.day} - {period_end:%B} {period_end.day}, {period_end.year}",
        site_url=current_app.config.get('SITE_URL', 'https://signmaker.ai'),
    )
