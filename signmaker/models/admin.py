"""
Admin Models

FLOW OVERVIEW
- AdminSession: token issued by /admin/auth login; expires after N hours.
  • purge_expired() runs on every login so stale tokens do not pile up.
  • get_live(token) returns the session only while unexpired.
- Setting: named, admin-editable values (e.g. the chat `system_prompt`).
- Alert: internal notification log, used for one-hour de-duplication.
- InsightsReport: stored weekly analytics report.
"""

from datetime import datetime, timedelta
from .database import db
from .utils import generate_uuid, generate_session_token, isoformat


class AdminSession(db.Model):
    """Admin dashboard session"""
    __tablename__ = 'admin_sessions'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    token = db.Column(db.String(36), unique=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    expires_at = db.Column(db.DateTime, nullable=False)
    last_accessed_at = db.Column(db.DateTime, default=datetime.utcnow)

    def __init__(self, expires_in_hours=24):
        self.token = generate_session_token()
        self.expires_at = datetime.utcnow() + timedelta(hours=expires_in_hours)
        self.last_accessed_at = datetime.utcnow()

    def is_valid(self):
        return datetime.utcnow() < self.expires_at

    def touch(self):
        self.last_accessed_at = datetime.utcnow()
        db.session.commit()

    @classmethod
    def purge_expired(cls):
        """Delete expired sessions, returning how many were removed"""
        removed = cls.query.filter(cls.expires_at < datetime.utcnow()).delete()
        db.session.commit()
        return removed

    @classmethod
    def get_live(cls, token):
        if not token:
            return None
        session = cls.query.filter_by(token=token).first()
        if session and session.is_valid():
            return session
        return None


class Setting(db.Model):
    """Admin-editable setting"""
    __tablename__ = 'settings'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    setting_name = db.Column(db.String(100), unique=True, nullable=False)
    setting_value = db.Column(db.Text, nullable=False)
    is_active = db.Column(db.Boolean, default=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @classmethod
    def get_active_value(cls, name, default=None):
        setting = cls.query.filter_by(setting_name=name, is_active=True).first()
        return setting.setting_value if setting else default

    def to_dict(self):
        return {
            'id': self.id,
            'setting_name': self.setting_name,
            'setting_value': self.setting_value,
            'is_active': self.is_active,
            'updated_at': isoformat(self.updated_at),
        }


class Alert(db.Model):
    """Internal alert that was emailed to the team"""
    __tablename__ = 'alerts'

    TYPES = ('b2b_inquiry', 'hot_lead', 'quality_issue', 'enterprise_interest', 'custom')

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    alert_type = db.Column(db.String(30), nullable=False)
    subject = db.Column(db.String(255), nullable=False)
    details = db.Column(db.JSON, default=dict)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'))
    conversation_id = db.Column(db.String(36), db.ForeignKey('conversations.id'))
    sent_at = db.Column(db.DateTime, default=datetime.utcnow)

    @classmethod
    def sent_recently(cls, alert_type, subject, window=timedelta(hours=1)):
        """True when the same alert went out inside the window"""
        since = datetime.utcnow() - window
        return cls.query.filter(
            cls.alert_type == alert_type,
            cls.subject == subject,
            cls.sent_at >= since,
        ).first() is not None

    def to_dict(self):
        return {
            'id': self.id,
            'alert_type': self.alert_type,
            'subject': self.subject,
            'details': self.details or {},
            'user_id': self.user_id,
            'conversation_id': self.conversation_id,
            'sent_at': isoformat(self.sent_at),
        }


class InsightsReport(db.Model):
    """Generated analytics report"""
    __tablename__ = 'insights_reports'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    report_type = db.Column(db.String(20), default='weekly')
    period_start = db.Column(db.Date, nullable=False)
    period_end = db.Column(db.Date, nullable=False)
    metrics = db.Column(db.JSON)
    insights = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'report_type': self.report_type,
            'period_start': isoformat(self.period_start),
            'period_end': isoformat(self.period_end),
            'metrics': self.metrics,
            'insights': self.insights,
            'created_at': isoformat(self.created_at),
        }
