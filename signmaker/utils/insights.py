"""
Weekly Insights Report

FLOW OVERVIEW
- generate_weekly_report(now=None)
  1) Period = the 7 days ending now.
  2) collect_metrics(start) aggregates users, conversations, messages,
     referrals, B2B inquiries, feedback, usage stats, follow-up clicks and
     unresolved knowledge gaps.
  3) build_prompt(...) combines the metrics JSON, up to 30 recent user
     questions and the top 5 open knowledge gaps.
  4) The LLM writes the report (INSIGHTS_MODEL); a failed call raises InsightsError.
  5) The report is stored as a weekly InsightsReport and, when mail is
     configured, emailed to ALERT_RECIPIENT as HTML.
"""

import json
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List

from flask import current_app
from markupsafe import escape

from ..models import (
    db, User, Conversation, Message, Referral, B2BInquiry, Feedback,
    UsageStat, KnowledgeGap, FollowupClick, InsightsReport
)
from .llm_client import llm_client
from .mailer import mail_configured, render_insights, send_email

logger = logging.getLogger(__name__)

PERIOD_DAYS = 7
RECENT_QUESTIONS = 50
SAMPLE_QUESTIONS = 30
TOP_GAPS = 5
EXPERIENCE_LEVELS = User.EXPERIENCE_LEVELS
REFERRAL_STATUSES = ('new', 'contacted', 'converted')

REPORT_INSTRUCTIONS = """GENERATE A REPORT WITH:

1. KEY METRICS (2-3 sentences)
- Summarize activity levels
- Note any significant patterns

2. USER BEHAVIOR INSIGHTS (3-5 bullets)
- What are users asking about most?
- Any patterns in question types?
- Where are users getting stuck?
- Shopper vs professional breakdown

3. CONVERSION ANALYSIS (2-3 bullets)
- Referral request rate (referrals / conversations)
- B2B inquiry rate
- What's driving conversions?

4. QUALITY & ENGAGEMENT (2-3 bullets)
- Feedback score analysis
- Follow-up click engagement
- Off-topic/spam issues

5. KNOWLEDGE GAPS (2-3 bullets)
- What topics need improvement?
- Priority additions to knowledge base

6. TOP 3 RECOMMENDATIONS
- Specific, actionable suggestions
- Prioritized by impact

Keep the report under 400 words. Be direct and actionable. Use bullet points."""


class InsightsError(Exception):
    """The analysis could not be generated"""


@dataclass
class InsightsResult:
    report: InsightsReport
    metrics: Dict[str, Any]
    period_start: datetime
    period_end: datetime
    email_sent: bool = False

    def to_dict(self):
        return {
            'success': True,
            'metrics': self.metrics,
            'period': {
                'start': self.period_start.isoformat(),
                'end': self.period_end.isoformat(),
            },
        }


def collect_metrics(start: datetime) -> Dict[str, Any]:
    users = User.query.filter(User.created_at >= start).all()
    conversations = Conversation.query.filter(Conversation.created_at >= start).all()
    messages = Message.query.filter(Message.created_at >= start).all()
    referrals = Referral.query.filter(Referral.created_at >= start).all()
    b2b_count = B2BInquiry.query.filter(B2BInquiry.created_at >= start).count()
    feedback = Feedback.query.filter(Feedback.created_at >= start).all()
    usage = UsageStat.query.filter(UsageStat.date >= start.date()).all()
    clicks = FollowupClick.query.filter(FollowupClick.created_at >= start).count()
    open_gaps = KnowledgeGap.query.filter_by(resolved=False).count()

    user_messages = sum(1 for m in messages if m.role == 'user')
    assistant_messages = sum(1 for m in messages if m.role == 'assistant')
    helpful = sum(1 for f in feedback if f.rating == 'helpful')
    unhelpful = sum(1 for f in feedback if f.rating == 'not_helpful')
    shoppers = sum(1 for u in users if u.is_shopper)

    def usage_total(column):
        return sum(getattr(s, column) or 0 for s in usage)

    return {
        'new_users': len(users),
        'user_types': {
            'shoppers': shoppers,
            'professionals': len(users) - shoppers,
            'by_experience': {
                level: sum(1 for u in users if u.experience_level == level)
                for level in EXPERIENCE_LEVELS
            },
        },
        'total_conversations': len(conversations),
        'total_messages': len(messages),
        'user_messages': user_messages,
        'assistant_messages': assistant_messages,
        'avg_messages_per_conversation': (
            round(len(messages) / len(conversations), 1) if conversations else 0
        ),
        'referrals_requested': len(referrals),
        'referrals_by_status': {
            status: sum(1 for r in referrals if r.status == status)
            for status in REFERRAL_STATUSES
        },
        'b2b_inquiries': b2b_count,
        'transcript_emails_sent': sum(1 for c in conversations if c.transcript_emailed),
        'helpful_ratings': helpful,
        'unhelpful_ratings': unhelpful,
        'feedback_score': round(helpful / len(feedback) * 100) if feedback else 0,
        'total_api_calls': usage_total('total_api_calls'),
        'total_blocked_spam': usage_total('total_blocked_spam'),
        'total_blocked_limit': usage_total('total_blocked_limit'),
        'total_off_topic': usage_total('total_off_topic'),
        'estimated_cost_dollars': usage_total('estimated_cost_cents') / 100,
        'followup_clicks': clicks,
        'unresolved_knowledge_gaps': open_gaps,
    }


def recent_questions(start: datetime) -> List[str]:
    rows = (Message.query
            .filter(Message.role == 'user', Message.created_at >= start)
            .order_by(Message.created_at.desc())
            .limit(RECENT_QUESTIONS)
            .all())
    return [m.content for m in rows[:SAMPLE_QUESTIONS]]


def top_knowledge_gaps() -> List[str]:
    gaps = (KnowledgeGap.query
            .filter_by(resolved=False)
            .order_by(KnowledgeGap.frequency.desc())
            .limit(TOP_GAPS)
            .all())
    return [g.question for g in gaps]


def build_prompt(metrics, questions, gaps, start, end) -> str:
    sample = '\n- '.join(questions) if questions else 'No questions this period'
    top_gaps = '\n- '.join(gaps) if gaps else 'None'
    return (
        f"You are analyzing SignMaker.ai chatbot data for the past {PERIOD_DAYS} days "
        f"({start:%m/%d/%Y} - {end:%m/%d/%Y}). Generate a brief, actionable insights report.\n\n"
        f"METRICS:\n{json.dumps(metrics, indent=2)}\n\n"
        f"SAMPLE USER QUESTIONS:\n- {sample}\n\n"
        f"UNRESOLVED KNOWLEDGE GAPS:\n- {top_gaps}\n\n"
        f"{REPORT_INSTRUCTIONS}"
    )


def markdown_to_html(text: str) -> str:
    """Minimal markdown → HTML for the report email (bold, bullets, paragraphs)"""
    html = str(escape(text or ''))
    html = re.sub(r'\*\*(.*?)\*\*', r'<strong>\1</strong>', html)
    html = html.replace('\n- ', '\n<li>')
    html = html.replace('\n\n', '</p><p>')
    html = re.sub(r'^- ', '<li>', html, flags=re.MULTILINE)
    return html


def generate_weekly_report(now: datetime = None) -> InsightsResult:
    end = now or datetime.utcnow()
    start = end - timedelta(days=PERIOD_DAYS)
    logger.info(f"Generating insights for {start:%Y-%m-%d} to {end:%Y-%m-%d}")

    metrics = collect_metrics(start)
    prompt = build_prompt(metrics, recent_questions(start), top_knowledge_gaps(), start, end)

    completion = llm_client.complete(
        'You are an analytics assistant for a sign-industry chatbot.',
        prompt,
        model=current_app.config.get('INSIGHTS_MODEL'),
        temperature=0.3,
        max_tokens=1500,
    )
    if not completion.get('success'):
        raise InsightsError(completion.get('error') or 'Failed to generate insights')
    insights = completion['content']

    report = InsightsReport(
        report_type='weekly',
        period_start=start.date(),
        period_end=end.date(),
        metrics=metrics,
        insights=insights,
    )
    db.session.add(report)
    db.session.commit()

    result = InsightsResult(report=report, metrics=metrics, period_start=start, period_end=end)
    if mail_configured():
        result.email_sent = send_email(
            'insights',
            f"📊 Weekly Insights — {start:%m/%d/%Y} to {end:%m/%d/%Y}",
            [current_app.config['ALERT_RECIPIENT']],
            render_insights(metrics, markdown_to_html(insights), start, end),
            sender=current_app.config.get('ALERT_SENDER'),
            reply_to=current_app.config.get('ALERT_RECIPIENT'),
        )
    return result
