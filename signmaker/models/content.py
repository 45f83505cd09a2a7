"""
Content & Engagement Models

FLOW OVERVIEW
- GlossaryTerm / GlossaryInteraction: sign-industry glossary and hover/click tracking.
- ImageSearchCache: normalized query → image results with an expiry.
- SuggestedFollowup / FollowupClick: follow-up question shortcuts and A/B click tracking.
- KnowledgeGap: questions the assistant could not answer well.
- UsageStat: per-day counters (api calls, blocks, estimated cost).
"""

from datetime import datetime, timedelta
from .database import db
from .utils import generate_uuid, isoformat


class GlossaryTerm(db.Model):
    __tablename__ = 'glossary'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    term = db.Column(db.String(100), nullable=False)
    short_definition = db.Column(db.String(500), nullable=False)
    full_definition = db.Column(db.Text)
    image_url = db.Column(db.String(500))
    category = db.Column(db.String(50))
    aliases = db.Column(db.JSON, default=list)
    related_terms = db.Column(db.JSON, default=list)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    @classmethod
    def get_active(cls):
        return cls.query.filter_by(is_active=True).order_by(cls.term).all()

    def to_dict(self):
        return {
            'id': self.id,
            'term': self.term,
            'short_definition': self.short_definition,
            'full_definition': self.full_definition,
            'image_url': self.image_url,
            'category': self.category,
            'aliases': list(self.aliases or []),
            'related_terms': list(self.related_terms or []),
        }


class GlossaryInteraction(db.Model):
    __tablename__ = 'glossary_analytics'

    ACTIONS = ('hover', 'click')

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    term_id = db.Column(db.String(36), db.ForeignKey('glossary.id'), nullable=False)
    action = db.Column(db.String(10), nullable=False)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'))
    conversation_id = db.Column(db.String(36), db.ForeignKey('conversations.id'))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)


class ImageSearchCache(db.Model):
    __tablename__ = 'image_search_cache'

    DEFAULT_TTL = timedelta(days=7)

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    search_query = db.Column('query', db.String(255), unique=True, nullable=False)
    results = db.Column(db.JSON, default=list)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    expires_at = db.Column(db.DateTime, nullable=False)

    def is_expired(self):
        return datetime.utcnow() >= self.expires_at

    @classmethod
    def lookup(cls, query):
        """Unexpired cache row for a normalized query, or None"""
        entry = cls.query.filter_by(search_query=query).first()
        if entry and not entry.is_expired():
            return entry
        return None

    @classmethod
    def store(cls, query, results, ttl=None):
        """Upsert results for a normalized query"""
        ttl = ttl or cls.DEFAULT_TTL
        entry = cls.query.filter_by(search_query=query).first()
        if entry is None:
            entry = cls(search_query=query)
            db.session.add(entry)
        entry.results = results
        entry.created_at = datetime.utcnow()
        entry.expires_at = entry.created_at + ttl
        db.session.commit()
        return entry


class SuggestedFollowup(db.Model):
    __tablename__ = 'suggested_followups'

    EDITABLE_FIELDS = ('category', 'followup_questions', 'trigger_keywords', 'is_active', 'variant_group')

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    category = db.Column(db.String(50))
    trigger_keywords = db.Column(db.JSON, default=list)
    followup_questions = db.Column(db.JSON, default=list)
    variant_group = db.Column(db.String(50), default='control')
    is_active = db.Column(db.Boolean, default=True)
    click_count = db.Column(db.Integer, default=0)
    impression_count = db.Column(db.Integer, default=0)
    usage_count = db.Column(db.Integer, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    @property
    def success_rate(self):
        if not self.impression_count:
            return 0.0
        return round((self.click_count or 0) / self.impression_count * 100, 1)

    def to_dict(self):
        return {
            'id': self.id,
            'category': self.category,
            'trigger_keywords': list(self.trigger_keywords or []),
            'followup_questions': list(self.followup_questions or []),
            'variant_group': self.variant_group,
            'is_active': self.is_active,
            'click_count': self.click_count or 0,
            'impression_count': self.impression_count or 0,
            'usage_count': self.usage_count or 0,
            'success_rate': self.success_rate,
            'created_at': isoformat(self.created_at),
        }


class FollowupClick(db.Model):
    __tablename__ = 'followup_clicks'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    followup_id = db.Column(db.String(36), db.ForeignKey('suggested_followups.id'))
    clicked_question = db.Column(db.Text, nullable=False)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'))
    conversation_id = db.Column(db.String(36), db.ForeignKey('conversations.id'))
    variant_group = db.Column(db.String(50), default='control')
    created_at = db.Column(db.DateTime, default=datetime.utcnow)


class KnowledgeGap(db.Model):
    __tablename__ = 'knowledge_gaps'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    question = db.Column(db.Text, nullable=False)
    frequency = db.Column(db.Integer, default=1)
    resolved = db.Column(db.Boolean, default=False)
    resolution = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'question': self.question,
            'frequency': self.frequency,
            'resolved': self.resolved,
            'resolution': self.resolution,
            'created_at': isoformat(self.created_at),
        }


class UsageStat(db.Model):
    """Daily usage counters"""
    __tablename__ = 'usage_stats'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    date = db.Column(db.Date, unique=True, nullable=False)
    total_api_calls = db.Column(db.Integer, default=0)
    total_blocked_spam = db.Column(db.Integer, default=0)
    total_blocked_limit = db.Column(db.Integer, default=0)
    total_off_topic = db.Column(db.Integer, default=0)
    estimated_cost_cents = db.Column(db.Float, default=0.0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @classmethod
    def record_call(cls, cost_cents=0.0, day=None):
        """Increment today's (UTC) API call counter and cost"""
        day = day or datetime.utcnow().date()
        stat = cls.query.filter_by(date=day).first()
        if stat is None:
            stat = cls(date=day, total_api_calls=0, estimated_cost_cents=0.0)
            db.session.add(stat)
        stat.total_api_calls = (stat.total_api_calls or 0) + 1
        stat.estimated_cost_cents = (stat.estimated_cost_cents or 0.0) + float(cost_cents)
        db.session.commit()
        return stat
