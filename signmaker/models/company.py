"""
Company Models

FLOW OVERVIEW
- Company: white-label tenant with branding (logo, colours, support email).
- UserRole: user ↔ company role assignment (admin, expert, member).
- ExpertKnowledge: expert-contributed knowledge, scoped to a company or global.
- KnowledgeNote: a user's private notes collected while chatting.
"""

from datetime import datetime
from .database import db
from .utils import generate_uuid, isoformat


class Company(db.Model):
    """White-label tenant"""
    __tablename__ = 'companies'

    EDITABLE_FIELDS = ('name', 'slug', 'logo_url', 'primary_color', 'secondary_color', 'bot_avatar_url',
                       'support_email', 'subscription_tier', 'active')

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    name = db.Column(db.String(200), nullable=False)
    slug = db.Column(db.String(100), unique=True, nullable=False)
    logo_url = db.Column(db.String(500))
    primary_color = db.Column(db.String(7))
    secondary_color = db.Column(db.String(7))
    bot_avatar_url = db.Column(db.String(500))
    support_email = db.Column(db.String(255))
    subscription_tier = db.Column(db.String(20), default='basic')
    active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f'<Company {self.slug}>'

    @classmethod
    def get_active_by_slug(cls, slug):
        return cls.query.filter_by(slug=slug, active=True).first()

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'slug': self.slug,
            'logo_url': self.logo_url,
            'primary_color': self.primary_color,
            'secondary_color': self.secondary_color,
            'bot_avatar_url': self.bot_avatar_url,
            'support_email': self.support_email,
            'subscription_tier': self.subscription_tier,
            'active': self.active,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }


class UserRole(db.Model):
    """Role a user holds inside a company"""
    __tablename__ = 'user_roles'

    ROLES = ('admin', 'expert', 'member')

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False)
    company_id = db.Column(db.String(36), db.ForeignKey('companies.id'))
    role = db.Column(db.String(20), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint('user_id', 'company_id', 'role', name='unique_user_company_role'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'company_id': self.company_id,
            'role': self.role,
            'created_at': isoformat(self.created_at),
        }


class ExpertKnowledge(db.Model):
    """Knowledge contributed by a sign expert"""
    __tablename__ = 'expert_knowledge'

    SCOPES = ('company', 'global')
    EDITABLE_FIELDS = ('topic', 'knowledge_text', 'knowledge_type', 'verified')

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    scope = db.Column(db.String(20), nullable=False, default='company')  # company, global
    company_id = db.Column(db.String(36), db.ForeignKey('companies.id'))
    expert_id = db.Column(db.String(36), db.ForeignKey('users.id'))
    topic = db.Column(db.String(200), nullable=False)
    knowledge_text = db.Column(db.Text, nullable=False)
    knowledge_type = db.Column(db.String(50), default='correction')
    verified = db.Column(db.Boolean, default=False)
    upvotes = db.Column(db.Integer, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'scope': self.scope,
            'company_id': self.company_id,
            'expert_id': self.expert_id,
            'topic': self.topic,
            'knowledge_text': self.knowledge_text,
            'knowledge_type': self.knowledge_type,
            'verified': self.verified,
            'upvotes': self.upvotes,
            'created_at': isoformat(self.created_at),
        }


class KnowledgeNote(db.Model):
    """Private note a user keeps from their conversations"""
    __tablename__ = 'knowledge_notes'

    NOTE_TYPES = ('tip', 'process', 'pricing', 'material', 'general')

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False)
    company_id = db.Column(db.String(36), db.ForeignKey('companies.id'))
    content = db.Column(db.Text, nullable=False)
    note_type = db.Column(db.String(20), default='general')
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    @classmethod
    def for_user(cls, user_id):
        """Notes for a user, newest first"""
        return cls.query.filter_by(user_id=user_id).order_by(cls.created_at.desc()).all()

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'company_id': self.company_id,
            'content': self.content,
            'note_type': self.note_type,
            'created_at': isoformat(self.created_at),
        }
